"""Kerberos service principal name helpers."""

from __future__ import annotations

import re

_SPN_HOST = re.compile(r"\A[^/]+/(_HOST)(?:[@/]|\Z)")


def replace_spn_host_wildcard(spn: str, host: str) -> str:
    """Substitute the special '_HOST' component of an SPN with the given host."""
    match = _SPN_HOST.search(spn)
    if match is None:
        return spn
    start, end = match.span(1)
    return spn[:start] + host + spn[end:]