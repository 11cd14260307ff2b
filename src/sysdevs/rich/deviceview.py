# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Tree views of device collections.

The device tree is derived from the collection:
parentless devices appear as top-level branches under a common anchor.

Unit tests and examples: tests/test_sysdevs_rich.py
"""


from typing import cast, Collection, Dict, Generator, Optional

from rich.console import RenderableType
from rich.tree import Tree

from sysdevs.config import SysdevsConfig
from sysdevs.device import Device, DeviceSorter, roots
from sysdevs.path import SysfsPath
from sysdevs.rich.tui import View


_sysdevsconf: SysdevsConfig = SysdevsConfig.getinstance()


class ViewDeviceTree(View):
    """POSIX-like tree view of a device collection."""

    _tree: Optional[Tree]
    _devices: Collection[Device]
    _base: Optional[str]

    def __init__(
        self, devices: Collection[Device], base: Optional[str] = None
    ) -> None:
        """New view.

        The view will remain an empty placeholder until walk_layout() is called.

        Args:
            devices: The devices to render.
            base: Path roots are labeled relative to, typically
              the sysfs device tree directory (e.g. "/sys/devices").
              Roots that are not below base are labeled by their full path.
        """
        super().__init__()
        self._devices = devices
        self._base = base
        # Initialized on walk_layout().
        self._tree = None

    @property
    def renderable(self) -> RenderableType:
        """A rich Tree."""
        return self._tree or super().renderable

    def walk_layout(
        self,
        order_by: Optional[DeviceSorter] = None,
        reverse: bool = False,
        fixed_depth: int = 0,
    ) -> Generator[Device, None, None]:
        """Layout this tree in order of traversal.

        Args:
            order_by: Children ordering while walking branches.
              None will preserve the collection order.
            reverse: Whether to reverse children order.
            fixed_depth: The depth limit, defaults to 0,
              walking through to leaf devices.

        Yields:
            The added devices in order of traversal.
        """
        self._tree = Tree(_sysdevsconf.pref_tree_anchor)
        # Map devices to their Tree representation.
        branch2tree: Dict[Device, Tree] = {}

        top = list(roots(self._devices))
        if order_by:
            top = order_by.sort(top, reverse=reverse)
        elif reverse:
            top.reverse()

        for root in top:
            walker = root.walk(
                self._devices,
                order_by=order_by,
                reverse=reverse,
                fixed_depth=fixed_depth,
            )
            # Roots are first in order of traversal.
            branch2tree[root] = self._tree.add(self.mk_anchor(root))
            yield next(walker)

            for device in walker:
                # Walked devices always have a parent within the branch.
                parent = cast(Device, device.parent(self._devices))
                anchor = branch2tree[parent]
                branch2tree[device] = anchor.add(self.mk_label(device))
                yield device

    def do_layout(
        self,
        order_by: Optional[DeviceSorter] = None,
        reverse: bool = False,
        fixed_depth: int = 0,
    ) -> None:
        """Same as walk_layout(), but consuming the generator."""
        for _ in self.walk_layout(order_by, reverse, fixed_depth):
            pass

    def mk_anchor(self, root: Device) -> RenderableType:
        """View factory for top-level branches (roots).

        Args:
            root: A parentless device.

        Returns:
            The root path, relative to the view's base if possible.
        """
        if _sysdevsconf.pref_tree_fullpath:
            return root.path
        if self._base and SysfsPath.is_ancestor(self._base, root.path):
            return SysfsPath.relpath(root.path, self._base)
        return root.path

    def mk_label(self, device: Device) -> RenderableType:
        """View factory for the Tree labels (devices).

        Args:
            device: The device to make the label of.

        Returns:
            The device name, or full path if so configured.
        """
        if _sysdevsconf.pref_tree_fullpath:
            return device.path
        return device.name
