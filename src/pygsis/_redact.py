"""Header masking for debug logs.

Every relay request carries gateway session cookies, and the server side sees
the client API key. Only cookie names are ever logged, never values.
"""

from __future__ import annotations

from collections.abc import Mapping

_MASKED_HEADERS: frozenset[str] = frozenset({"set-cookie", "x-api-key", "authorization"})


def cookie_names(cookie_header: str) -> list[str]:
    """Names from a ``Cookie`` header, values dropped."""
    names = (pair.partition("=")[0].strip() for pair in cookie_header.split(";"))
    return [name for name in names if name]


def _mask(name: str, value: str, max_value: int) -> str:
    lowered = name.lower()
    if lowered == "cookie":
        return f"<redacted:{','.join(cookie_names(value))}>"
    if lowered in _MASKED_HEADERS:
        return "<redacted>"
    if len(value) > max_value:
        return f"{value[:max_value]}…<truncated>"
    return value


def redact_headers(headers: Mapping[str, str], *, max_value: int = 256) -> dict[str, str]:
    """Copy of *headers* with credentials masked and long values cut."""
    return {name: _mask(name, str(value), max_value) for name, value in headers.items()}
