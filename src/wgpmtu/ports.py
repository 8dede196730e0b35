"""Collaborator contracts consumed by the reconciliation core.

The system adapters (wg, routes, net, conntrack) implement these; tests
substitute in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol


@dataclass(frozen=True)
class Peer:
    interface: str
    public_key: str
    endpoint_host: Optional[str]
    endpoint_port: Optional[int]
    allowed_ips: tuple[str, ...] = ()

    @property
    def endpoint(self) -> Optional[str]:
        if self.endpoint_host is None:
            return None
        if self.endpoint_port is None:
            return self.endpoint_host
        if ":" in self.endpoint_host:
            return f"[{self.endpoint_host}]:{self.endpoint_port}"
        return f"{self.endpoint_host}:{self.endpoint_port}"


@dataclass(frozen=True)
class RouteInfo:
    dst: str
    dev: str
    mtu: Optional[int] = None
    pmtu: bool = False
    family: int = 6
    gateway: Optional[str] = None
    protocol: Optional[str] = None
    scope: Optional[str] = None
    prefsrc: Optional[str] = None
    metric: Optional[int] = None
    pref: Optional[str] = None
    table: Optional[str] = None
    type: Optional[str] = None
    # next-hop flags ip accepts back (onlink, pervasive)
    flags: tuple[str, ...] = ()
    # metrics other than mtu, re-issued verbatim on change
    metrics: tuple[tuple[str, int | str], ...] = ()


@dataclass(frozen=True)
class SessionFlow:
    family: str
    protocol: str
    src: str
    dst: str
    sport: int
    dport: int


class PeerRegistry(Protocol):
    def list_interfaces(self) -> list[str]:
        ...

    def listen_port(self, iface: str) -> Optional[int]:
        ...

    def list_peers(self, iface: str) -> list[Peer]:
        ...


class InterfaceInfo(Protocol):
    def exists(self, device: str) -> bool:
        ...

    def interface_mtu(self, device: str) -> int:
        ...


class RouteTable(Protocol):
    def get_route(self, dst: str, source: Optional[str] = None) -> Optional[RouteInfo]:
        ...

    def list_routes(self, device: str, prefix: str) -> list[RouteInfo]:
        ...

    def change_route_mtu(self, route: RouteInfo, mtu: Optional[int]) -> None:
        ...


class SessionTable(Protocol):
    def scan_sessions(
        self, predicate: Callable[[SessionFlow], bool]
    ) -> list[SessionFlow]:
        ...
