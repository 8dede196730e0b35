from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

from .addr import expand_ipv6, is_ipv6, zone_of
from .conntrack import DEFAULT_CONNTRACK_FILE, ProcSessionTable, resolve_source
from .net import SysfsInterfaceInfo, require_root
from .output import Logger, OutputMode, emit_json
from .pmtu import PeerSkipped, resolve_path_mtu
from .policy import decide, target_mtu
from .ports import InterfaceInfo, Peer, PeerRegistry, RouteTable, SessionTable
from .reconcile import CHANGED, FAILED, MISSING, DestinationReport, reconcile_destinations
from .routes import IpRouteTable
from .wg import WgPeerRegistry

OK = "ok"
SKIPPED = "skipped"


@dataclass
class PeerReport:
    public_key: str
    endpoint: Optional[str]
    status: str = OK
    reason: Optional[str] = None
    source: Optional[str] = None
    pmtu: Optional[int] = None
    device: Optional[str] = None
    device_mtu: Optional[int] = None
    target: Optional[int] = None
    destinations: list[DestinationReport] = field(default_factory=list)


@dataclass
class InterfaceReport:
    iface: str
    mtu: Optional[int]
    listen_port: Optional[int] = None
    status: str = OK
    peers: list[PeerReport] = field(default_factory=list)


@dataclass(frozen=True)
class Backends:
    registry: PeerRegistry
    interfaces: InterfaceInfo
    routes: RouteTable
    sessions: SessionTable


def _split_items(items: Optional[list[str]]) -> list[str]:
    raw: list[str] = []
    for item in items or []:
        raw.extend([x.strip() for x in item.split(",") if x.strip()])
    return list(dict.fromkeys(raw))


def _fmt(mtu: Optional[int]) -> str:
    return "none" if mtu is None else str(mtu)


def system_backends(args, logger: Logger) -> Backends:
    return Backends(
        registry=WgPeerRegistry(),
        interfaces=SysfsInterfaceInfo(),
        routes=IpRouteTable(dry_run=bool(args.dry_run), log=logger.log),
        sessions=ProcSessionTable(
            getattr(args, "conntrack_file", None) or DEFAULT_CONNTRACK_FILE
        ),
    )


def reconcile_peer(
    peer: Peer,
    *,
    tunnel_mtu: int,
    listen_port: Optional[int],
    backends: Backends,
    logger: Logger,
    source_hint: bool = True,
) -> PeerReport:
    log = logger.log
    report = PeerReport(public_key=peer.public_key, endpoint=peer.endpoint)

    if peer.endpoint_host is None:
        report.status, report.reason = SKIPPED, "no endpoint"
        log(f"[wgpmtu] INFO: peer {peer.public_key} has no endpoint; skipping.")
        return report
    if not is_ipv6(peer.endpoint_host):
        report.status, report.reason = SKIPPED, "not an IPv6 endpoint"
        log(f"[wgpmtu] INFO: peer {peer.public_key} endpoint {peer.endpoint} is not IPv6; skipping.")
        return report

    endpoint = expand_ipv6(peer.endpoint_host)
    zone = zone_of(peer.endpoint_host)
    # conntrack has no zones; the route lookup needs one for link-local peers
    route_target = f"{endpoint}%{zone}" if zone else endpoint

    if source_hint and listen_port and peer.endpoint_port:
        report.source = resolve_source(
            backends.sessions, endpoint, peer.endpoint_port, listen_port
        )
        if report.source:
            log(f"[wgpmtu]  - {peer.public_key}: session source {report.source}")
        else:
            log(f"[wgpmtu]  - {peer.public_key}: no session source found")

    try:
        path = resolve_path_mtu(
            backends.routes, backends.interfaces, route_target, report.source
        )
    except PeerSkipped as e:
        report.status, report.reason = SKIPPED, str(e)
        logger.warn(f"peer {peer.public_key}: {e}; skipping.")
        return report

    report.pmtu, report.device, report.device_mtu = path.pmtu, path.device, path.device_mtu
    report.target = target_mtu(tunnel_mtu, path.pmtu, path.device_mtu)
    log(
        f"[wgpmtu]  - {peer.public_key}: via {path.device} (mtu {path.device_mtu}), "
        f"pmtu {_fmt(path.pmtu)} -> route mtu {_fmt(report.target)}"
    )
    if report.target is not None and report.target <= 0:
        logger.warn(
            f"peer {peer.public_key}: computed route MTU {report.target} is not positive; "
            "passing it through unchanged."
        )

    report.destinations = reconcile_destinations(
        backends.routes, peer.interface, decide(peer.allowed_ips, report.target)
    )
    for d in report.destinations:
        if d.action == CHANGED:
            log(f"[wgpmtu]    {d.destination}: mtu {_fmt(d.current)} -> {_fmt(d.target)}")
        elif d.action == MISSING:
            log(f"[wgpmtu]    {d.destination}: no route on {peer.interface}; leaving alone.")
        elif d.action == FAILED:
            logger.warn(f"{d.destination}: route change failed: {d.error}")
    return report


def reconcile_interface(
    iface: str,
    *,
    backends: Backends,
    logger: Logger,
    peer_filter: Optional[set[str]] = None,
    source_hint: bool = True,
) -> InterfaceReport:
    try:
        tunnel_mtu = int(backends.interfaces.interface_mtu(iface))
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read MTU of {iface}: {e}")
        return InterfaceReport(iface=iface, mtu=None, status=SKIPPED)

    report = InterfaceReport(
        iface=iface, mtu=tunnel_mtu, listen_port=backends.registry.listen_port(iface)
    )
    peers = backends.registry.list_peers(iface)
    if peer_filter:
        peers = [p for p in peers if p.public_key in peer_filter]
    logger.log(f"[wgpmtu] {iface}: MTU {tunnel_mtu}, {len(peers)} peer(s)")

    for peer in peers:
        report.peers.append(
            reconcile_peer(
                peer,
                tunnel_mtu=tunnel_mtu,
                listen_port=report.listen_port,
                backends=backends,
                logger=logger,
                source_hint=source_hint,
            )
        )
    return report


def run_wgpmtu(args, backends: Optional[Backends] = None) -> int:
    mode = OutputMode(print_json=bool(getattr(args, "print_json", False)))
    logger = Logger(mode.machine)
    log = logger.log

    if getattr(args, "uninstall", False) and not getattr(args, "persist", None):
        logger.error("--uninstall requires --persist.")
        return 4

    require_root(dry=args.dry_run, needs_root=True)

    # Persistence mode: install/uninstall the systemd units and exit.
    if getattr(args, "persist", None):
        if args.persist == "systemd":
            from .persist import persist_systemd, uninstall_systemd

            if getattr(args, "uninstall", False):
                uninstall_systemd(dry=args.dry_run)
                return 0

            persist_systemd(
                sys.argv,
                interval=getattr(args, "persist_interval", None) or "5min",
                dry=args.dry_run,
            )
            return 0

        logger.error(f"Unknown persist backend: {args.persist}")
        return 4

    if backends is None:
        backends = system_backends(args, logger)

    names = _split_items(getattr(args, "wg_if", None) or [os.environ.get("WG_IF", "")])
    if names:
        for name in names:
            if not backends.interfaces.exists(name):
                logger.error(f"Interface {name} does not exist.")
                return 3
    else:
        names = backends.registry.list_interfaces()
        if not names:
            logger.error("No WireGuard interfaces found (use --wg-if).")
            return 2

    peer_filter = set(_split_items(getattr(args, "peer", None)))
    source_hint = not getattr(args, "no_source_hint", False)

    reports = [
        reconcile_interface(
            name,
            backends=backends,
            logger=logger,
            peer_filter=peer_filter,
            source_hint=source_hint,
        )
        for name in names
    ]

    changed = sum(
        1
        for r in reports
        for p in r.peers
        for d in p.destinations
        if d.action == CHANGED
    )
    skipped = sum(1 for r in reports for p in r.peers if p.status == SKIPPED)
    log(
        f"[wgpmtu] Done. Summary: interfaces={len(reports)}, "
        f"routes_changed={changed}, peers_skipped={skipped}"
    )

    emit_json(mode, interfaces=reports, dry_run=bool(args.dry_run))
    return 0
