from __future__ import annotations

import argparse
import os

from .conntrack import DEFAULT_CONNTRACK_FILE


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="wgpmtu",
        description=(
            "Clamp the route MTU of each WireGuard peer's allowed IPs to the "
            "path MTU toward the peer endpoint."
        ),
    )

    ap.add_argument(
        "--wg-if",
        action="append",
        help=(
            "WireGuard interface. Repeatable or comma-separated "
            "(default: $WG_IF, else all from 'wg show interfaces')."
        ),
    )
    ap.add_argument(
        "--peer",
        action="append",
        help="Only handle peers with this public key. Repeatable or comma-separated.",
    )
    ap.add_argument(
        "--conntrack-file",
        default=os.environ.get("WGPMTU_CONNTRACK", DEFAULT_CONNTRACK_FILE),
        help=f"Connection tracking table to look up session sources (default: {DEFAULT_CONNTRACK_FILE}).",
    )
    ap.add_argument(
        "--no-source-hint",
        action="store_true",
        help="Don't look up the local session address before the route lookup.",
    )
    ap.add_argument(
        "--dry-run", action="store_true", help="Show actions without applying changes."
    )

    # --- Persistence ---
    ap.add_argument(
        "--persist",
        choices=["systemd"],
        help="Re-run periodically with the same arguments (currently supported: systemd).",
    )
    ap.add_argument(
        "--persist-interval",
        default="5min",
        help="Timer interval for --persist (systemd time span, default: 5min).",
    )
    ap.add_argument(
        "--uninstall",
        action="store_true",
        help="Uninstall persistence backend (requires --persist).",
    )

    # --- Machine-readable output ---
    ap.add_argument(
        "--print-json",
        action="store_true",
        help="Print a JSON report of all decisions (stdout) for automation.",
    )

    return ap
