# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Scan the Linux sysfs for connected devices.

Devices are discovered through three independent namespaces,
whose entries are symbolic links to the actual device directories
in the sysfs device tree (usually below "/sys/devices"):

- bus: "/sys/bus/<subsystem>/devices/<device>"
- class: "/sys/class/<class>/<device>"
- block: "/sys/block/<device>"

The same device is typically reachable through more than one namespace
(e.g. a disk appears in "/sys/bus/scsi", "/sys/class/block"
and "/sys/block"): links are resolved to canonical paths,
and devices with the same canonical path are the same device.

Scanning is all or nothing: the first file-system error
(e.g. missing directory, permission denied, broken link)
is propagated as is, and there's no partial result.

Unit tests and examples: tests/test_sysdevs_scan.py
"""


from typing import Optional, List, Set

import logging
import os

from sysdevs.config import SysdevsConfig
from sysdevs.device import Device


_log = logging.getLogger(__name__)


class Scanner:
    """Connected devices scanner.

    Scanners don't cache anything: each scan re-reads the sysfs.
    """

    # Mount point of the sysfs.
    _root: str

    def __init__(self, root: Optional[str] = None) -> None:
        """Initialize scanner.

        Args:
            root: Mount point of the sysfs, defaults to the configured
              "sysfs.root" option (typically "/sys").
              Unit tests will substitute an isolated fixture tree.
        """
        self._root = root or SysdevsConfig.getinstance().sysfs_root

    @property
    def root(self) -> str:
        """Mount point of the sysfs."""
        return self._root

    @property
    def bus_dir(self) -> str:
        """The "bus" namespace directory."""
        return os.path.join(self._root, "bus")

    @property
    def class_dir(self) -> str:
        """The "class" namespace directory."""
        return os.path.join(self._root, "class")

    @property
    def block_dir(self) -> str:
        """The "block" namespace directory."""
        return os.path.join(self._root, "block")

    @property
    def devices_dir(self) -> str:
        """The device tree directory."""
        return os.path.join(self._root, "devices")

    def scan(self) -> Set[Device]:
        """Scan the sysfs for devices.

        Returns:
            The set of devices found through the bus, class and block
            namespaces.

        Raises:
            OSError: Failed to read a directory or resolve a link.
        """
        devices: Set[Device] = set()
        devices.update(self.scan_bus())
        devices.update(self.scan_class())
        devices.update(self.scan_block())
        _log.debug("%s: %d devices", self._root, len(devices))
        return devices

    def scan_bus(self) -> Set[Device]:
        """Scan the "bus" namespace for devices.

        Each bus subsystem directory has a "devices" sub-directory
        that contains links to devices: all its entries must be links.

        Returns:
            The devices found on all buses.

        Raises:
            OSError: Failed to read a directory or resolve a link.
        """
        devices: Set[Device] = set()
        for subsys in self._listdir(self.bus_dir):
            subsys_devices = os.path.join(subsys, "devices")
            for entry in self._listdir(subsys_devices):
                devices.add(self._resolve(subsys_devices, entry))

        _log.debug("%s: %d devices", self.bus_dir, len(devices))
        return devices

    def scan_class(self) -> Set[Device]:
        """Scan the "class" namespace for devices.

        Class directories may contain entries that are not links
        to devices (e.g. "/sys/class/net/bonding_masters"):
        these are skipped.

        Returns:
            The devices found in all classes.

        Raises:
            OSError: Failed to read a directory or resolve a link.
        """
        devices: Set[Device] = set()
        for class_dir in self._listdir(self.class_dir):
            for entry in self._listdir(class_dir):
                if not os.path.islink(entry):
                    continue
                devices.add(self._resolve(class_dir, entry))

        _log.debug("%s: %d devices", self.class_dir, len(devices))
        return devices

    def scan_block(self) -> Set[Device]:
        """Scan the "block" namespace for devices.

        Links are resolved relative to the block directory itself,
        all its entries must be links.

        Returns:
            The block devices.

        Raises:
            OSError: Failed to read a directory or resolve a link.
        """
        devices: Set[Device] = set()
        for entry in self._listdir(self.block_dir):
            devices.add(self._resolve(self.block_dir, entry))

        _log.debug("%s: %d devices", self.block_dir, len(devices))
        return devices

    def _listdir(self, path: str) -> List[str]:
        # Paths to the directory entries.
        with os.scandir(path) as it:
            return [entry.path for entry in it]

    def _resolve(self, dirpath: str, entry: str) -> Device:
        # Link targets are relative to the directory containing the link:
        # canonicalize the joined path, resolving nested links
        # and ".." references, and failing on broken links or loops.
        link = os.readlink(entry)
        path = os.path.realpath(os.path.join(dirpath, link), strict=True)
        return Device(path)


def scan(root: Optional[str] = None) -> List[Device]:
    """Scan the Linux sysfs for devices.

    Args:
        root: Mount point of the sysfs, defaults to the configured
          "sysfs.root" option.

    Returns:
        The devices found, in natural order.

    Raises:
        OSError: Failed to read a directory or resolve a link.
    """
    return sorted(Scanner(root).scan())
