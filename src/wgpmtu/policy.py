from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

IPV6_HEADER = 40
UDP_HEADER = 8
WIREGUARD_HEADER = 32
TUNNEL_OVERHEAD = IPV6_HEADER + UDP_HEADER + WIREGUARD_HEADER

# None means "no override": the route inherits the device MTU.
NO_OVERRIDE: Optional[int] = None


@dataclass(frozen=True)
class MtuDecision:
    destination: str
    target: Optional[int]


def first_known(preferred: Optional[int], fallback: int) -> int:
    return preferred if preferred is not None else fallback


def target_mtu(
    tunnel_mtu: int,
    pmtu: Optional[int],
    device_mtu: int,
    overhead: int = TUNNEL_OVERHEAD,
) -> Optional[int]:
    """
    Route MTU to apply for destinations behind a peer.

    Uses the cached PMTU toward the peer endpoint when there is one, else the
    egress device MTU. Anything that would not be strictly below the tunnel
    MTU collapses to NO_OVERRIDE. Non-positive values are passed through.
    """
    candidate = first_known(pmtu, device_mtu) - overhead
    if candidate < tunnel_mtu:
        return candidate
    return NO_OVERRIDE


def decide(destinations: list[str] | tuple[str, ...], target: Optional[int]) -> list[MtuDecision]:
    return [MtuDecision(destination=d, target=target) for d in destinations]
