# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the sysdevs.scan module."""

# Relax pylint a bit for unit tests.
# pylint: disable=missing-function-docstring


from typing import List, Set

from pathlib import Path
import logging
import os
import shutil
import threading

import pytest

from sysdevs.config import SysdevsConfig
from sysdevs.device import Device
from sysdevs.scan import Scanner, scan

from .sysdevs_uthelpers import SysdevsTests


@pytest.fixture(name="sysfs")
def fixture_sysfs(tmp_path: Path) -> str:
    return SysdevsTests.mk_sysfs(str(tmp_path))


def _devs(root: str, *dev_paths: str) -> Set[Device]:
    return {SysdevsTests.get_mock_device(path, root) for path in dev_paths}


def test_scanner_root(sysfs: str) -> None:
    scanner = Scanner(sysfs)
    assert sysfs == scanner.root
    assert os.path.join(sysfs, "bus") == scanner.bus_dir
    assert os.path.join(sysfs, "class") == scanner.class_dir
    assert os.path.join(sysfs, "block") == scanner.block_dir
    assert os.path.join(sysfs, "devices") == scanner.devices_dir


def test_scanner_default_root() -> None:
    assert SysdevsConfig.getinstance().sysfs_root == Scanner().root
    assert "/sys" == Scanner().root


def test_scanner_scan(sysfs: str) -> None:
    devices = Scanner(sysfs).scan()
    assert set(SysdevsTests.get_mock_devices(sysfs)) == devices
    # One device per canonical path.
    assert len(SysdevsTests.MOCK_DEV_PATHS) == len(devices)


def test_scanner_scan_bus(sysfs: str) -> None:
    assert _devs(
        sysfs,
        "device_0",
        "device_1",
        "device_1/device_2",
        "device_1/device_2/device_3",
    ) == Scanner(sysfs).scan_bus()


def test_scanner_scan_class(sysfs: str) -> None:
    # Skips "class/net/bonding_masters", resolves links to links,
    # and redundant ".." references.
    assert _devs(
        sysfs,
        "device_0",
        "device_1/device_2",
        "device_1/device_2/device_4",
        "device_5",
    ) == Scanner(sysfs).scan_class()


def test_scanner_scan_class_skip_dirs(sysfs: str) -> None:
    os.makedirs(os.path.join(sysfs, "class", "net", "power"))
    assert 4 == len(Scanner(sysfs).scan_class())


def test_scanner_scan_block(sysfs: str) -> None:
    assert _devs(
        sysfs,
        "device_1/device_2/device_3",
        "device_6",
        "device_7",
    ) == Scanner(sysfs).scan_block()


def test_scanner_scan_dedup(sysfs: str) -> None:
    scanner = Scanner(sysfs)
    namespaces: List[Set[Device]] = [
        scanner.scan_bus(),
        scanner.scan_class(),
        scanner.scan_block(),
    ]
    # Some devices are found through more than one namespace.
    assert sum(len(devices) for devices in namespaces) > len(scanner.scan())
    distinct = {dev.path for devices in namespaces for dev in devices}
    assert len(distinct) == len(scanner.scan())


def test_scanner_scan_idempotent(sysfs: str) -> None:
    scanner = Scanner(sysfs)
    assert scanner.scan() == scanner.scan()
    assert Scanner(sysfs).scan() == Scanner(sysfs).scan()


def test_scanner_scan_no_cache(sysfs: str) -> None:
    scanner = Scanner(sysfs)
    assert 8 == len(scanner.scan())

    os.makedirs(SysdevsTests.prefix_dev_path("device_8", sysfs))
    SysdevsTests.mk_link(sysfs, "block/device_8", "../devices/device_8")
    assert 9 == len(scanner.scan())


def test_scanner_scan_relations(sysfs: str) -> None:
    devices = scan(sysfs)
    dev_1 = SysdevsTests.get_mock_device("device_1", sysfs)
    dev_2 = SysdevsTests.get_mock_device("device_1/device_2", sysfs)
    dev_3 = SysdevsTests.get_mock_device("device_1/device_2/device_3", sysfs)

    assert dev_2 == dev_3.parent(devices)
    assert dev_1.parent(devices) is None
    assert {
        dev_2,
        dev_3,
        SysdevsTests.get_mock_device("device_1/device_2/device_4", sysfs),
    } == set(dev_1.descendants(devices))
    assert [] == list(
        SysdevsTests.get_mock_device("device_0", sysfs).descendants(devices)
    )


def test_scan(sysfs: str) -> None:
    devices = scan(sysfs)
    # Natural order.
    assert SysdevsTests.get_mock_devices(sysfs) == devices


def test_scan_concurrent(sysfs: str) -> None:
    results: List[Set[Device]] = []

    def scanner() -> None:
        results.append(Scanner(sysfs).scan())

    threads = [threading.Thread(target=scanner) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert 4 == len(results)
    for devices in results:
        assert set(SysdevsTests.get_mock_devices(sysfs)) == devices


def test_scan_logging(sysfs: str, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="sysdevs.scan")
    Scanner(sysfs).scan()
    messages = [record.getMessage() for record in caplog.records]
    assert f"{os.path.join(sysfs, 'bus')}: 4 devices" in messages
    assert f"{os.path.join(sysfs, 'class')}: 4 devices" in messages
    assert f"{os.path.join(sysfs, 'block')}: 3 devices" in messages
    assert f"{sysfs}: 8 devices" in messages


def test_scan_missing_root(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Scanner(os.path.join(str(tmp_path), "not", "a", "sysfs")).scan()


def test_scan_missing_namespace(sysfs: str) -> None:
    shutil.rmtree(os.path.join(sysfs, "block"))
    with pytest.raises(FileNotFoundError):
        Scanner(sysfs).scan()
    # Other namespaces are still readable on their own.
    assert 4 == len(Scanner(sysfs).scan_bus())


def test_scan_missing_bus_devices(sysfs: str) -> None:
    os.makedirs(os.path.join(sysfs, "bus", "i2c"))
    with pytest.raises(FileNotFoundError):
        Scanner(sysfs).scan()


def test_scan_broken_link(sysfs: str) -> None:
    SysdevsTests.mk_link(sysfs, "class/input/broken", "../../devices/nowhere")
    with pytest.raises(OSError):
        Scanner(sysfs).scan()
    with pytest.raises(OSError):
        Scanner(sysfs).scan_class()


def test_scan_link_loop(sysfs: str) -> None:
    SysdevsTests.mk_link(sysfs, "block/loop_a", "loop_b")
    SysdevsTests.mk_link(sysfs, "block/loop_b", "loop_a")
    with pytest.raises(OSError):
        Scanner(sysfs).scan()


def test_scan_bus_not_a_link(sysfs: str) -> None:
    os.makedirs(os.path.join(sysfs, "bus", "usb", "devices", "device_9"))
    with pytest.raises(OSError):
        Scanner(sysfs).scan_bus()


def test_scan_block_not_a_link(sysfs: str) -> None:
    os.makedirs(os.path.join(sysfs, "block", "device_9"))
    with pytest.raises(OSError):
        Scanner(sysfs).scan()


@pytest.mark.skipif(
    os.geteuid() == 0, reason="permissions are not enforced for root"
)
def test_scan_permission_denied(sysfs: str) -> None:
    class_dir = os.path.join(sysfs, "class", "net")
    os.chmod(class_dir, 0)
    try:
        with pytest.raises(PermissionError):
            Scanner(sysfs).scan()
    finally:
        os.chmod(class_dir, 0o755)
