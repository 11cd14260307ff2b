# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Sysdevs configuration.

Sysdevs is configured by simple INI files:

- the bundled configuration file "sysdevs.ini" sets the defaults,
  e.g. the sysfs mount point
- an explicitly loaded configuration file may customize the defaults,
  e.g. to point scanners to a test fixture tree

Unit tests and examples: tests/test_sysdevs_config.py
"""


from typing import Optional

import configparser
import os
import sys


class SysdevsConfig:
    """Sysdevs configuration.

    All options live in the "sysdevs" section.
    """

    class Error(BaseException):
        """Unreadable or malformed configuration file."""

    SECTION = "sysdevs"
    """The configuration section name."""

    @classmethod
    def getinstance(cls) -> "SysdevsConfig":
        """The configuration loaded from the bundled defaults."""
        return _sysdevsconf

    _cfg: configparser.ConfigParser

    def __init__(self, path: Optional[str] = None) -> None:
        """Load configuration.

        Args:
            path: The configuration file to load.
              Only this file is read when set,
              otherwise the bundled "sysdevs.ini" provides the defaults.

        Raises:
            SysdevsConfig.Error: Failed to load the configuration file.
        """
        self._cfg = configparser.ConfigParser(
            interpolation=configparser.ExtendedInterpolation()
        )
        self.load_ini_file(
            path or os.path.join(os.path.dirname(__file__), "sysdevs.ini")
        )

    @property
    def sysfs_root(self) -> str:
        """Mount point of the sysfs."""
        return self.getstr("sysfs.root", "/sys")

    @property
    def pref_tree_anchor(self) -> str:
        """Anchor label of device tree views."""
        return self.getstr("pref.tree.anchor", ".")

    @property
    def pref_tree_fullpath(self) -> bool:
        """Whether to label all devices with their full path in tree views."""
        return self.getbool("pref.tree.fullpath")

    def getbool(self, option: str, fallback: bool = False) -> bool:
        """Get a boolean option.

        Accepted values are those of ConfigParser.getboolean(),
        e.g. "yes" or "off".

        Args:
            option: The option to get.
            fallback: Answered when the option is not defined
              or is not a valid boolean.

        Returns:
            The option's value, or the fallback.
        """
        try:
            return self._cfg.getboolean(SysdevsConfig.SECTION, option)
        except (configparser.Error, ValueError) as e:
            self._warn(option, e)
        return fallback

    def getstr(self, option: str, fallback: str = "") -> str:
        """Get a string option.

        Enclosing double-quotes are removed, e.g. to set a value
        with trailing spaces.

        Args:
            option: The option to get.
            fallback: Answered when the option is not defined,
              or its interpolation fails.

        Returns:
            The option's value, or the fallback.
        """
        try:
            return self._cfg.get(SysdevsConfig.SECTION, option).strip('"')
        except configparser.Error as e:
            self._warn(option, e)
        return fallback

    def load_ini_file(self, path: str) -> None:
        """Read an INI file.

        Options already loaded are overridden.

        Args:
            path: The file to read.

        Raises:
            SysdevsConfig.Error: Failed to load the configuration file.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                self._cfg.read_file(f)
        except (OSError, configparser.Error) as e:
            raise SysdevsConfig.Error(str(e)) from e

    def _warn(self, option: str, cause: Exception) -> None:
        print(f"configuration error: {option}: {cause}", file=sys.stderr)


_sysdevsconf = SysdevsConfig()
