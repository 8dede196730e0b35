from __future__ import annotations

import json
import shlex
import subprocess
from typing import Any, Callable, Optional

from .ports import RouteInfo

# keys in `ip -j route get` output that only appear on cached (exception) routes
_CACHE_KEYS = ("cache", "cached", "expires")
# route flags that `ip route change` takes back as arguments
_SETTABLE_FLAGS = ("onlink", "pervasive")
# metrics iproute2 may print next to, rather than inside, "metrics"
_TOP_LEVEL_METRICS = ("congctl",)


def _run(cmd: list[str]) -> str:
    return subprocess.run(
        cmd, check=False, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True
    ).stdout.strip()


def _family(addr: str) -> int:
    return 6 if ":" in addr else 4


def _load(out: str) -> list[dict[str, Any]]:
    if not out:
        return []
    try:
        data = json.loads(out)
    except json.JSONDecodeError:
        return []
    return [r for r in data if isinstance(r, dict)] if isinstance(data, list) else []


def _metrics(raw: Any) -> dict[str, int | str]:
    # iproute2 renders metrics as [{"mtu": 1400, ...}]; accept a bare object too
    items = raw if isinstance(raw, list) else [raw]
    out: dict[str, int | str] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        for k, v in item.items():
            if isinstance(v, (int, str)) and not isinstance(v, bool):
                out[k] = v
    return out


def parse_route(raw: dict[str, Any], *, family: int, dev: Optional[str] = None) -> RouteInfo:
    metrics = _metrics(raw.get("metrics", []))
    for key in _TOP_LEVEL_METRICS:
        if isinstance(raw.get(key), str):
            metrics.setdefault(key, raw[key])
    flags = raw.get("flags") or []
    mtu = metrics.pop("mtu", None)
    if not isinstance(mtu, int):
        mtu = None
    table = raw.get("table")
    rtype = raw.get("type")
    metric = raw.get("metric")
    return RouteInfo(
        dst=str(raw.get("dst", "")),
        dev=str(raw.get("dev") or dev or ""),
        mtu=mtu,
        pmtu=any(k in raw for k in _CACHE_KEYS),
        family=family,
        gateway=raw.get("gateway"),
        protocol=raw.get("protocol"),
        scope=raw.get("scope"),
        prefsrc=raw.get("prefsrc"),
        metric=int(metric) if metric is not None else None,
        pref=raw.get("pref"),
        table=str(table) if table is not None else None,
        type=rtype if rtype and rtype != "unicast" else None,
        flags=tuple(f for f in flags if f in _SETTABLE_FLAGS),
        metrics=tuple(sorted(metrics.items())),
    )


def change_command(route: RouteInfo, mtu: Optional[int]) -> list[str]:
    """
    Build an `ip route change` command that re-issues `route` with only its
    MTU attribute altered (mtu=None drops the override).
    """
    cmd = ["ip", f"-{route.family}", "route", "change"]
    if route.type:
        cmd.append(route.type)
    cmd.append(route.dst)
    if route.gateway:
        cmd += ["via", route.gateway]
    cmd += ["dev", route.dev]
    cmd += list(route.flags)
    if route.protocol:
        cmd += ["proto", route.protocol]
    if route.scope:
        cmd += ["scope", route.scope]
    if route.prefsrc:
        cmd += ["src", route.prefsrc]
    if route.metric is not None:
        cmd += ["metric", str(route.metric)]
    if route.pref:
        cmd += ["pref", route.pref]
    if route.table:
        cmd += ["table", route.table]
    for name, value in route.metrics:
        cmd += [name, str(value)]
    if mtu is not None:
        cmd += ["mtu", str(mtu)]
    return cmd


class IpRouteTable:
    """Route table access through iproute2's JSON output."""

    def __init__(self, *, dry_run: bool = False, log: Callable[[str], None] = print) -> None:
        self._dry = dry_run
        self._log = log

    def get_route(self, dst: str, source: Optional[str] = None) -> Optional[RouteInfo]:
        # a link-local "addr%zone" is looked up through the zone's interface
        addr, _, zone = dst.partition("%")
        fam = _family(addr)
        cmd = ["ip", "-j", f"-{fam}", "route", "get", addr]
        if source:
            cmd += ["from", source]
        if zone:
            cmd += ["oif", zone]
        routes = _load(_run(cmd))
        if not routes or not routes[0].get("dev"):
            return None
        return parse_route(routes[0], family=fam)

    def list_routes(self, device: str, prefix: str) -> list[RouteInfo]:
        fam = _family(prefix)
        out = _run(
            [
                "ip", "-j", f"-{fam}", "route", "show",
                "table", "all", "exact", prefix, "dev", device,
            ]
        )
        return [parse_route(r, family=fam, dev=device) for r in _load(out)]

    def change_route_mtu(self, route: RouteInfo, mtu: Optional[int]) -> None:
        cmd = change_command(route, mtu)
        if self._dry:
            self._log(f"[wgpmtu] DRY-RUN: {shlex.join(cmd)}")
            return
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL)
