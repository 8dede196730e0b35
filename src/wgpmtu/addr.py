from __future__ import annotations

import ipaddress
from typing import Optional


def _strip(text: str) -> str:
    host = text.strip().strip("[]")
    return host.split("%", 1)[0]


def is_ipv6(text: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(_strip(text)), ipaddress.IPv6Address)
    except ValueError:
        return False


def zone_of(text: str) -> Optional[str]:
    """Return the "%zone" suffix of a scoped address ("fe80::1%eth0" -> "eth0")."""
    _, _, zone = text.strip().strip("[]").partition("%")
    return zone or None


def expand_ipv6(text: str) -> str:
    """
    Return the fully expanded form of an IPv6 address:
    eight zero-padded 4-digit hex groups, lowercase, colon-separated.

    This is the form the kernel uses in /proc/net/nf_conntrack, so the result
    can be compared verbatim against session table entries. Any "%zone"
    suffix is dropped; use zone_of() to keep it for route lookups.

    Malformed input is returned (stripped) as-is; lookups against it simply
    won't match.
    """
    host = _strip(text)
    try:
        return ipaddress.IPv6Address(host).exploded
    except ValueError:
        return host


def split_endpoint(endpoint: str) -> tuple[str, int | None]:
    """
    Split a WireGuard endpoint ("1.2.3.4:51820", "[2001:db8::1]:51820")
    into host and port. A bare IPv6 address without brackets has no port.
    """
    text = endpoint.strip()
    if text.startswith("["):
        host, _, rest = text[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
        return host, int(port) if port.isdigit() else None
    if text.count(":") != 1:
        return text, None
    host, _, port = text.partition(":")
    return host, int(port) if port.isdigit() else None
