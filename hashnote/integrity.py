"""Content hashing for anchored messages."""

from __future__ import annotations

from eth_utils import keccak


def content_hash(text: str) -> str:
    """Keccak-256 of the UTF-8 text, as "0x" + 64 lowercase hex.

    Keccak (not SHA3-256) so the digest matches what EVM contracts
    compute with ``keccak256``.
    """
    return "0x" + keccak(text=text).hex()
