from __future__ import annotations

import pathlib
from typing import Callable, Optional

from .addr import expand_ipv6
from .ports import SessionFlow, SessionTable

DEFAULT_CONNTRACK_FILE = "/proc/net/nf_conntrack"


def parse_flow(line: str) -> Optional[SessionFlow]:
    """
    Parse one /proc/net/nf_conntrack line, keeping the original-direction tuple:

      ipv6 10 udp 17 29 src=... dst=... sport=51820 dport=51820 src=... ...
    """
    parts = line.split()
    if len(parts) < 3:
        return None
    fields: dict[str, str] = {}
    for token in parts:
        key, sep, value = token.partition("=")
        if sep:
            fields.setdefault(key, value)
    try:
        return SessionFlow(
            family=parts[0],
            protocol=parts[2],
            src=fields["src"],
            dst=fields["dst"],
            sport=int(fields["sport"]),
            dport=int(fields["dport"]),
        )
    except (KeyError, ValueError):
        return None


class ProcSessionTable:
    """Session table backed by the kernel's conntrack proc file."""

    def __init__(self, path: str = DEFAULT_CONNTRACK_FILE) -> None:
        self._path = pathlib.Path(path)

    def scan_sessions(
        self, predicate: Callable[[SessionFlow], bool]
    ) -> list[SessionFlow]:
        try:
            text = self._path.read_text()
        except OSError:
            # nf_conntrack not loaded or not readable: no flows to offer
            return []
        flows: list[SessionFlow] = []
        for line in text.splitlines():
            flow = parse_flow(line)
            if flow is not None and predicate(flow):
                flows.append(flow)
        return flows


def resolve_source(
    sessions: SessionTable, peer_address: str, peer_port: int, local_port: int
) -> Optional[str]:
    """
    Find the local address a UDP/IPv6 session with the peer is bound to.

    Matches flows in either direction; the first match wins. Returns None
    when no flow matches.
    """
    peer = expand_ipv6(peer_address)

    def _local(flow: SessionFlow) -> Optional[str]:
        if flow.family != "ipv6" or flow.protocol != "udp":
            return None
        if (
            flow.dst == peer
            and flow.dport == peer_port
            and flow.sport == local_port
        ):
            return flow.src
        if (
            flow.src == peer
            and flow.sport == peer_port
            and flow.dport == local_port
        ):
            return flow.dst
        return None

    for flow in sessions.scan_sessions(lambda f: _local(f) is not None):
        return _local(flow)
    return None
