# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Device handles.

Rationale:

- a device is nothing more than its canonical path in the sysfs device tree
- the sysfs does not give explicit parent or children links:
  the hierarchy is derived from path containment
- relationships are always relative to a collection of devices
  supplied by the caller (e.g. a scan result, or a subset of it),
  there's no global devices universe

Implementation notes:

- identity: permits to build sets (uniqueness) of devices
  and filter out duplicates, implies equality
- equality: testing equality with objects of other types is allowed
  and answers false
- default order: by path, comparing devices with objects of other types
  is an API violation
- relationship queries never fail, and never mutate the collection:
  no relation is represented by None or an empty view

Unit tests and examples: tests/test_sysdevs_device.py
"""


from typing import Any, Collection, Iterator, List, Optional, Sequence, Tuple

from sysdevs.path import SysfsPath


class Device:
    """Handle for a device connected to the host."""

    # Canonical path in the sysfs device tree.
    _path: str

    # Path segments, compared when deciding relationships.
    _segments: Tuple[str, ...]

    def __init__(self, path: str) -> None:
        """New device handle.

        Devices are typically created by scanners,
        unit tests may also create them from known paths.

        Args:
            path: Canonical path of the device in the sysfs.
              Must be absolute, and free of "." or ".." references.

        Raises:
            ValueError: Invalid path name.
        """
        SysfsPath.check_path_name(path)
        self._path = SysfsPath.normpath(path)
        self._segments = tuple(SysfsPath.split(self._path))

    @property
    def path(self) -> str:
        """Path to the Linux sysfs entry for this device."""
        return self._path

    @property
    def name(self) -> str:
        """The device name (last path segment)."""
        return SysfsPath.basename(self._path)

    @property
    def depth(self) -> int:
        """Number of path segments."""
        return len(self._segments)

    def is_ancestor_of(self, other: "Device") -> bool:
        """Answer whether this device is an ancestor of another.

        Args:
            other: The candidate descendant.

        Returns:
            True if this device's path is a strict, segment-aligned
            prefix of the other device's path.
        """
        n = len(self._segments)
        return (
            len(other._segments) > n and other._segments[:n] == self._segments
        )

    def parent(self, devices: Collection["Device"]) -> Optional["Device"]:
        """Find the parent of this device in a collection of devices.

        The parent is the closest ancestor, i.e. the ancestor
        with the most path segments.

        Args:
            devices: The devices to search.

        Returns:
            The parent device, or None if this device is a root
            within the collection.
        """
        parent: Optional[Device] = None
        for device in devices:
            if device is self or not device.is_ancestor_of(self):
                continue
            # Strict comparison: the first one wins on (unlikely) ties.
            if parent is None or device.depth > parent.depth:
                parent = device
        return parent

    def ancestors(self, devices: Collection["Device"]) -> List["Device"]:
        """Walk backward from this device through to its root.

        Args:
            devices: The devices to search.

        Returns:
            The ancestors of this device within the collection,
            nearest first.
        """
        ancestors: List[Device] = []
        parent = self.parent(devices)
        while parent is not None:
            ancestors.append(parent)
            parent = parent.parent(devices)
        return ancestors

    def descendants(self, devices: Collection["Device"]) -> "DeviceView":
        """Iterate over the descendants of this device in a collection.

        Descendants include devices at any depth, not only direct children.

        Args:
            devices: The devices to search.

        Returns:
            A view of the descendants, in collection order.
        """
        return DeviceView(devices, DescendantCriterion(self))

    def children(self, devices: Collection["Device"]) -> "DeviceView":
        """Iterate over the direct children of this device in a collection.

        A descendant is a direct child when no other device
        of the collection stands between them.

        Args:
            devices: The devices to search.

        Returns:
            A view of the children, in collection order.
        """
        return DeviceView(devices, ChildCriterion(self, devices))

    def walk(
        self,
        devices: Collection["Device"],
        /,
        order_by: Optional["DeviceSorter"] = None,
        reverse: bool = False,
        fixed_depth: int = 0,
    ) -> Iterator["Device"]:
        """Walk the branch derived under this device.

        Args:
            devices: The devices the branch is derived from.
            order_by: Children ordering while walking through branches.
              None will preserve the collection order.
            reverse: Whether to reverse children order.
            fixed_depth: The depth limit.
              Defaults to 0, which means walking through to leaf devices.

        Returns:
            An iterator yielding the devices in order of traversal,
            starting with this device.
        """
        return self._walk(
            self,
            devices,
            order_by=order_by,
            reverse=reverse,
            fixed_depth=fixed_depth,
        )

    def _walk(
        self,
        device: "Device",
        devices: Collection["Device"],
        /,
        order_by: Optional["DeviceSorter"],
        reverse: bool,
        fixed_depth: int,
        at_depth: int = 0,
    ) -> Iterator["Device"]:
        yield device
        if fixed_depth > 0:
            if at_depth == fixed_depth:
                return
            at_depth += 1

        # Devices that stand between a node and its children
        # are descendants of that node: narrow the search down the branch.
        branch: List[Device] = list(device.descendants(devices))
        children: List[Device] = list(device.children(branch))
        if order_by:
            children = order_by.sort(children, reverse=reverse)
        elif reverse:
            children.reverse()

        for child in children:
            yield from self._walk(
                child,
                branch,
                order_by=order_by,
                reverse=reverse,
                fixed_depth=fixed_depth,
                at_depth=at_depth,
            )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Device):
            return other.path == self.path
        return False

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Device):
            return self.path < other.path
        raise TypeError(other)

    def __hash__(self) -> int:
        return hash(self.path)

    def __repr__(self) -> str:
        return self.path


class DeviceCriterion:
    """Base criterion for selecting devices within a collection.

    This base criterion does not match with any device.
    """

    def match(self, device: Device) -> bool:
        """Match a device with this criterion.

        Args:
            device: The device to match.

        Returns:
            True if the device matches with this criterion.
        """
        del device  # Unused argument.
        return False


class DescendantCriterion(DeviceCriterion):
    """Match the descendants of a device."""

    _ancestor: Device

    def __init__(self, ancestor: Device) -> None:
        """Initialize criterion.

        Args:
            ancestor: The device to match the descendants of.
        """
        self._ancestor = ancestor

    def match(self, device: Device) -> bool:
        """Overrides DeviceCriterion.match()."""
        return self._ancestor.is_ancestor_of(device)


class ChildCriterion(DescendantCriterion):
    """Match the direct children of a device within a collection."""

    _devices: Collection[Device]

    def __init__(self, parent: Device, devices: Collection[Device]) -> None:
        """Initialize criterion.

        Args:
            parent: The device to match the children of.
            devices: The collection the children belong to.
        """
        super().__init__(parent)
        self._devices = devices

    def match(self, device: Device) -> bool:
        """Overrides DeviceCriterion.match()."""
        if not super().match(device):
            return False
        return not any(
            self._ancestor.is_ancestor_of(other)
            and other.is_ancestor_of(device)
            for other in self._devices
        )


class RootCriterion(DeviceCriterion):
    """Match the parentless devices of a collection."""

    _devices: Collection[Device]

    def __init__(self, devices: Collection[Device]) -> None:
        """Initialize criterion.

        Args:
            devices: The collection to search for ancestors.
        """
        self._devices = devices

    def match(self, device: Device) -> bool:
        """Overrides DeviceCriterion.match()."""
        return not any(other.is_ancestor_of(device) for other in self._devices)


class DeviceView:
    """Read-only view of the devices of a collection that match a criterion.

    Views do not copy the collection they're created with:
    each iteration re-evaluates the criterion against the collection
    as it is at that time.
    Iterating a view is restartable, providing the collection is
    (e.g. a list or a set, but not an iterator).
    """

    _devices: Collection[Device]
    _criterion: DeviceCriterion

    def __init__(
        self, devices: Collection[Device], criterion: DeviceCriterion
    ) -> None:
        """Initialize view.

        Args:
            devices: The collection to view.
            criterion: The criterion devices must match.
        """
        self._devices = devices
        self._criterion = criterion

    def __iter__(self) -> Iterator[Device]:
        return (
            device for device in self._devices if self._criterion.match(device)
        )

    def __contains__(self, device: object) -> bool:
        return any(device == match for match in self)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def __repr__(self) -> str:
        return repr(list(self))


class DeviceSorter:
    """Sort devices into natural order (by path).

    Stateless adapter for the standard Python sorted() function,
    derived classes may override the key function.
    """

    def weight(self, device: Device) -> Any:
        """The key function.

        Args:
            device: The device to get the weight of.

        Returns:
            The weight this sorter gives to the device.
            This base implementation returns the device itself.
        """
        return device

    def sort(
        self, devices: Sequence[Device], reverse: bool = False
    ) -> List[Device]:
        """Sort devices.

        Args:
            devices: The devices to sort.
            reverse: Whether to reverse sort order.

        Returns:
            A list with the devices sorted.
        """
        return sorted(devices, key=self.weight, reverse=reverse)


def roots(devices: Collection[Device]) -> DeviceView:
    """Iterate over the parentless devices of a collection.

    Args:
        devices: The collection to search.

    Returns:
        A view of the roots, in collection order.
    """
    return DeviceView(devices, RootCriterion(devices))
