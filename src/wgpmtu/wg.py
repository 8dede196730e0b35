from __future__ import annotations

import subprocess
from typing import List, Optional

from .addr import split_endpoint
from .ports import Peer


def _run(cmd: list[str]) -> str:
    return subprocess.run(
        cmd, check=False, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True
    ).stdout.strip()


def _dump(wg_if: str) -> list[list[str]]:
    return [
        line.split("\t")
        for line in _run(["wg", "show", wg_if, "dump"]).splitlines()
        if line.strip()
    ]


def wg_interfaces() -> List[str]:
    return list(dict.fromkeys(_run(["wg", "show", "interfaces"]).split()))


def wg_listen_port(wg_if: str) -> Optional[int]:
    rows = _dump(wg_if)
    # interface row: private-key, public-key, listen-port, fwmark
    if not rows or len(rows[0]) < 3 or not rows[0][2].isdigit():
        return None
    return int(rows[0][2])


def wg_peers(wg_if: str) -> List[Peer]:
    peers: list[Peer] = []
    # peer rows: public-key, preshared-key, endpoint, allowed-ips, ...
    for row in _dump(wg_if)[1:]:
        if len(row) < 4:
            continue
        host: Optional[str] = None
        port: Optional[int] = None
        if row[2] and row[2] != "(none)":
            host, port = split_endpoint(row[2])
        allowed = tuple(
            dict.fromkeys(
                x.strip() for x in row[3].split(",") if x.strip() and x != "(none)"
            )
        )
        peers.append(
            Peer(
                interface=wg_if,
                public_key=row[0],
                endpoint_host=host,
                endpoint_port=port,
                allowed_ips=allowed,
            )
        )
    return peers


class WgPeerRegistry:
    """Peer registry backed by the `wg` tool."""

    def list_interfaces(self) -> list[str]:
        return wg_interfaces()

    def listen_port(self, iface: str) -> Optional[int]:
        return wg_listen_port(iface)

    def list_peers(self, iface: str) -> list[Peer]:
        return wg_peers(iface)
