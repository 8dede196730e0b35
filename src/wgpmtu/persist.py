from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List


_SYSTEMD_UNIT_PATH = Path("/etc/systemd/system/wgpmtu.service")
_SYSTEMD_TIMER_PATH = Path("/etc/systemd/system/wgpmtu.timer")

# flags that only make sense for the installing invocation
_VALUE_FLAGS = ("--persist", "--persist-interval")
_BARE_FLAGS = ("--uninstall", "--dry-run")


def _strip_persist_args(argv: List[str]) -> List[str]:
    """
    Remove installation-only arguments from argv:
    - --persist systemd / --persist=systemd
    - --persist-interval 5min / --persist-interval=5min
    - --uninstall, --dry-run
    Keeps all other args as-is.
    """
    out: list[str] = []
    i = 0
    while i < len(argv):
        a = argv[i]
        if a in _VALUE_FLAGS:
            i += 1
            if i < len(argv) and not argv[i].startswith("-"):
                i += 1
            continue
        if any(a.startswith(f"{flag}=") for flag in _VALUE_FLAGS):
            i += 1
            continue
        if a in _BARE_FLAGS:
            i += 1
            continue
        out.append(a)
        i += 1
    return out


def _resolve_exec(argv0: str) -> str:
    """
    Resolve the executable path for systemd ExecStart.

    Prefer an absolute path (from PATH lookup). Fall back to argv0.
    """
    resolved = shutil.which(argv0)
    if resolved:
        return resolved
    return argv0


def _build_service(execstart: str) -> str:
    return f"""\
[Unit]
Description=Clamp WireGuard peer route MTU via wgpmtu
After=network-online.target
Wants=network-online.target

[Service]
Type=oneshot
ExecStart={execstart}
"""


def _build_timer(interval: str) -> str:
    return f"""\
[Unit]
Description=Periodic WireGuard peer route MTU reconciliation

[Timer]
OnBootSec=1min
OnUnitActiveSec={interval}
Unit={_SYSTEMD_UNIT_PATH.name}

[Install]
WantedBy=timers.target
"""


def _install_units(service_text: str, timer_text: str, *, dry: bool) -> None:
    timer = _SYSTEMD_TIMER_PATH.name
    if dry:
        print(f"[wgpmtu] DRY-RUN: would write systemd unit to {_SYSTEMD_UNIT_PATH}")
        print(service_text.rstrip())
        print(f"[wgpmtu] DRY-RUN: would write systemd timer to {_SYSTEMD_TIMER_PATH}")
        print(timer_text.rstrip())
        print("[wgpmtu] DRY-RUN: would run: systemctl daemon-reload")
        print(f"[wgpmtu] DRY-RUN: would run: systemctl enable {timer}")
        return

    _SYSTEMD_UNIT_PATH.write_text(service_text)
    _SYSTEMD_TIMER_PATH.write_text(timer_text)
    subprocess.run(["systemctl", "daemon-reload"], check=True)
    subprocess.run(["systemctl", "enable", timer], check=True)
    print(f"[wgpmtu] Installed and enabled systemd timer: {timer}")
    print(f"[wgpmtu] Tip: run 'systemctl start {timer}' to start it immediately.")


def persist_systemd(argv: List[str], *, interval: str, dry: bool) -> None:
    """
    Install a systemd oneshot service that re-runs wgpmtu with the same
    arguments, and a timer that triggers it every `interval`.
    """
    if not argv:
        raise ValueError("argv must not be empty")

    filtered = _strip_persist_args(argv[:])
    if not filtered:
        raise ValueError("argv filtered to empty; cannot persist")

    exe = _resolve_exec(filtered[0])
    execstart = shlex.join([exe, *filtered[1:]])

    _install_units(_build_service(execstart), _build_timer(interval), dry=dry)


def uninstall_systemd(*, dry: bool) -> None:
    timer = _SYSTEMD_TIMER_PATH.name
    if dry:
        print(f"[wgpmtu] DRY-RUN: would run: systemctl disable --now {timer}")
        print(
            f"[wgpmtu] DRY-RUN: would remove: {_SYSTEMD_TIMER_PATH}, {_SYSTEMD_UNIT_PATH} (if exist)"
        )
        print("[wgpmtu] DRY-RUN: would run: systemctl daemon-reload")
        return

    subprocess.run(["systemctl", "disable", "--now", timer], check=True)
    for path in (_SYSTEMD_TIMER_PATH, _SYSTEMD_UNIT_PATH):
        if path.exists():
            path.unlink()
    subprocess.run(["systemctl", "daemon-reload"], check=True)
    print(f"[wgpmtu] Uninstalled systemd timer: {timer}")
