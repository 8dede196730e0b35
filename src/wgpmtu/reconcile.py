from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Iterable, Optional

from .policy import MtuDecision
from .ports import RouteTable

CHANGED = "changed"
UNCHANGED = "unchanged"
MISSING = "missing"
FAILED = "failed"


@dataclass(frozen=True)
class DestinationReport:
    destination: str
    current: Optional[int]
    target: Optional[int]
    action: str
    error: Optional[str] = None


def reconcile_destinations(
    routes: RouteTable, tunnel_if: str, decisions: Iterable[MtuDecision]
) -> list[DestinationReport]:
    """
    Bring the MTU override of each destination route on `tunnel_if` in line
    with its decision. Routes are only changed on mismatch and never created
    or removed.
    """
    reports: list[DestinationReport] = []
    for decision in decisions:
        found = routes.list_routes(tunnel_if, decision.destination)
        if not found:
            reports.append(
                DestinationReport(decision.destination, None, decision.target, MISSING)
            )
            continue

        for route in found:
            if route.mtu == decision.target:
                reports.append(
                    DestinationReport(
                        decision.destination, route.mtu, decision.target, UNCHANGED
                    )
                )
                continue
            try:
                routes.change_route_mtu(route, decision.target)
            except (subprocess.CalledProcessError, OSError) as e:
                reports.append(
                    DestinationReport(
                        decision.destination,
                        route.mtu,
                        decision.target,
                        FAILED,
                        error=str(e),
                    )
                )
                continue
            reports.append(
                DestinationReport(
                    decision.destination, route.mtu, decision.target, CHANGED
                )
            )
    return reports
