"""
Numeric and hex codec for JSON-RPC quantities.

Ethereum JSON-RPC encodes integers as "quantities": ``0x``-prefixed hex
with no leading zeros ("0x0", "0x5208"). Data and hashes are ``0x``-prefixed
hex of fixed width. Pure functions, no I/O.
"""

from __future__ import annotations

import re

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def strip_0x(value: str) -> str:
    """Remove a leading ``0x``/``0X`` prefix if present."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def is_hex(value: str, length: int | None = None) -> bool:
    """True if ``value`` (prefix optional) is hex, optionally of exact length."""
    body = strip_0x(value)
    if length is not None and len(body) != length:
        return False
    return bool(_HEX_RE.match(body))


def to_quantity(value: int) -> str:
    """Encode a non-negative int as a JSON-RPC quantity."""
    if value < 0:
        raise ValueError(f"quantity must be non-negative, got: {value}")
    return hex(value)


def from_quantity(value: str | int | None) -> int | None:
    """Decode a JSON-RPC quantity (or a plain int) to int.

    Returns None for None, empty strings and anything that is not hex.
    Ledgers differ in how they report numbers (the simulated ledger
    reports plain ints), so both forms are accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    body = strip_0x(value)
    if not body or not _HEX_RE.match(body):
        return None
    return int(body, 16)
