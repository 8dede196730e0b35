from __future__ import annotations

import os
import pathlib
import sys

_SYS_CLASS_NET = pathlib.Path("/sys/class/net")


def iface_exists(iface: str) -> bool:
    return (_SYS_CLASS_NET / iface).exists()


def read_iface_mtu(iface: str) -> int:
    return int((_SYS_CLASS_NET / iface / "mtu").read_text().strip())


def require_root(*, dry: bool, needs_root: bool) -> None:
    if needs_root and (not dry) and os.geteuid() != 0:
        print(
            "[wgpmtu][ERROR] Please run as root (sudo) or use --dry-run.",
            file=sys.stderr,
        )
        raise SystemExit(1)


class SysfsInterfaceInfo:
    """Interface lookups backed by /sys/class/net."""

    def exists(self, device: str) -> bool:
        return iface_exists(device)

    def interface_mtu(self, device: str) -> int:
        return read_iface_mtu(device)
