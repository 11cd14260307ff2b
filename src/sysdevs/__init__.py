# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Find the devices connected to a Linux host.

Devices are scanned from the sysfs pseudo-filesystem,
parent and children relationships are derived from their paths.
"""

from sysdevs.device import Device, DeviceView, DeviceSorter, roots
from sysdevs.scan import Scanner, scan

__all__ = [
    "Device",
    "DeviceView",
    "DeviceSorter",
    "Scanner",
    "roots",
    "scan",
]
