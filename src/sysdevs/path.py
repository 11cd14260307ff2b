# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Canonical sysfs paths.

Device handles are identified by absolute, symlink-free paths
into the sysfs device tree, e.g.:

    /sys/devices/pci0000:00/0000:00:14.0/usb1

The hierarchy of devices is not explicit in the sysfs,
it's only available through path containment:
relationships between devices are thus decided on path segments,
never on raw string prefixes ("pci1" is not an ancestor of "pci10").

This API does not involve actual devices or file-system accesses,
only path strings.

Unit tests and examples: tests/test_sysdevs_path.py
"""


from typing import List

import posixpath


class SysfsPath:
    """Sysfs path strings."""

    @staticmethod
    def split(path: str) -> List[str]:
        """Convert a path into a list of path segments.

        For example:

            split('a') == ['a']
            split('a/b/c') == ['a', 'b', 'c']

        By convention, the file-system root "/" always represents
        the first segment of an absolute path:

            split('/') == ['/']
            split('/sys') == ['/', 'sys']
            split('/sys/devices/pci1') == ['/', 'sys', 'devices', 'pci1']

        Any trailing empty segment is stripped:

            split('/sys/') == ['/', 'sys']
            split('') == []

        Args:
            path: A sysfs path.

        Returns:
            The list of the path segments.
        """
        if not path:
            return []
        segments = path.split("/")
        if path.startswith("/"):
            segments[0] = "/"
        if len(segments) > 1 and segments[-1] == "":
            del segments[-1]
        return segments

    @staticmethod
    def depth(path: str) -> int:
        """Number of segments in a path.

            depth('/') == 1
            depth('/sys/devices') == 3

        Args:
            path: A sysfs path.

        Returns:
            The number of path segments.
        """
        return len(SysfsPath.split(path))

    @staticmethod
    def join(path: str, *paths: str) -> str:
        """Concatenate paths, as defined by posixpath.join().

        Joining an absolute path will reset the join chain:

            join('/sys/class/net', 'eth0') == '/sys/class/net/eth0'
            join('/sys/block', '/sys/devices') == '/sys/devices'

        Paths are not normalized.
        """
        return posixpath.join(path, *paths)

    @staticmethod
    def normpath(path: str) -> str:
        """Normalize a path, as defined by posixpath.normpath().

        This is a lexical operation that does NOT resolve symbolic links:

            normpath('/sys/devices/') == '/sys/devices'
            normpath('/sys/class/net/../../devices') == '/sys/devices'
        """
        return posixpath.normpath(path)

    @staticmethod
    def relpath(pathname: str, base: str = "/") -> str:
        """Get the relative path from one absolute path to another.

        For example:

            relpath('/sys/devices/pci0', '/sys/devices') == 'pci0'
            relpath('/sys', '/sys') == '.'
            relpath('/sys/devices', '/sys/block') == '../devices'

        Args:
            pathname: The absolute path of the final node.
            base: The absolute path of the initial node.

        Returns:
            The relative path from base to pathname.
        """
        SysfsPath.check_path_name(pathname)
        SysfsPath.check_path_name(base)
        return posixpath.relpath(pathname, base)

    @staticmethod
    def dirname(path: str) -> str:
        """All but the last segment of a path ("." if empty).

            dirname('/sys/devices/pci0') == '/sys/devices'
            dirname('pci0') == '.'
        """
        return posixpath.dirname(path) or "."

    @staticmethod
    def basename(path: str) -> str:
        """Last segment of a path, empty for "/".

            basename('/sys/devices/pci0') == 'pci0'
        """
        return posixpath.basename(path)

    @staticmethod
    def is_ancestor(ancestor: str, path: str) -> bool:
        """Answer whether a path is a strict, segment-aligned prefix of another.

        For example:

            is_ancestor('/sys/devices', '/sys/devices/pci1') == True
            is_ancestor('/sys/devices/pci1', '/sys/devices/pci10') == False
            is_ancestor('/sys/devices', '/sys/devices') == False

        Args:
            ancestor: The candidate ancestor path.
            path: The candidate descendant path.

        Returns:
            True if ancestor is an ancestor of path.
        """
        segs_ancestor = SysfsPath.split(ancestor)
        segs_path = SysfsPath.split(path)
        if len(segs_ancestor) >= len(segs_path):
            return False
        return segs_path[: len(segs_ancestor)] == segs_ancestor

    @staticmethod
    def check_path_name(path: str) -> None:
        """Check a device path name.

        Valid names are absolute, without "." or ".." segments.
        Dots within names (e.g. "0000:00:1f.3") are allowed.

        Raises:
            ValueError: Invalid path name.
        """
        if not path.startswith("/") or any(
            seg in (".", "..") for seg in path.split("/")
        ):
            raise ValueError(path)
