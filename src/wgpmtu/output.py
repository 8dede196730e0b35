# src/wgpmtu/output.py
from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class OutputMode:
    print_json: bool

    @property
    def machine(self) -> bool:
        return bool(self.print_json)


class Logger:
    """
    Routes logs to stderr when in machine mode, so stdout can be cleanly parsed.
    Warnings and errors always go to stderr.
    """

    def __init__(self, machine_mode: bool) -> None:
        self._machine = bool(machine_mode)

    def log(self, msg: str) -> None:
        if self._machine:
            print(msg, file=sys.stderr)
        else:
            print(msg)

    def warn(self, msg: str) -> None:
        print(f"[wgpmtu][WARN] {msg}", file=sys.stderr)

    def error(self, msg: str) -> None:
        print(f"[wgpmtu][ERROR] {msg}", file=sys.stderr)


def emit_json(mode: OutputMode, *, interfaces: Sequence[Any], dry_run: bool) -> bool:
    """
    Returns True if it emitted output (and caller should return).
    """
    if not mode.print_json:
        return False

    payload = {
        "interfaces": [asdict(r) for r in interfaces],
        "dry_run": bool(dry_run),
    }
    print(json.dumps(payload, sort_keys=True))
    return True
