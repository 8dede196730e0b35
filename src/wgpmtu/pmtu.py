from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .ports import InterfaceInfo, RouteTable


class PeerSkipped(Exception):
    """A peer can't be handled in this run; the next run retries it."""


class EndpointUnreachable(PeerSkipped):
    pass


class InterfaceMtuUnavailable(PeerSkipped):
    pass


@dataclass(frozen=True)
class PathMtu:
    pmtu: Optional[int]
    device: str
    device_mtu: int


def resolve_path_mtu(
    routes: RouteTable,
    interfaces: InterfaceInfo,
    endpoint: str,
    source: Optional[str] = None,
) -> PathMtu:
    """
    Look up the route toward a peer endpoint and return the cached PMTU (if
    any), the egress device and that device's MTU.
    """
    route = routes.get_route(endpoint, source)
    if route is None:
        hint = f" from {source}" if source else ""
        raise EndpointUnreachable(f"no route to {endpoint}{hint}")

    try:
        device_mtu = int(interfaces.interface_mtu(route.dev))
    except (OSError, ValueError) as e:
        raise InterfaceMtuUnavailable(
            f"cannot read MTU of {route.dev}: {e}"
        ) from e

    return PathMtu(pmtu=route.mtu, device=route.dev, device_mtu=device_mtu)
