"""
Tests for the JSON-RPC quantity codec and content hashing.

Test plan:
- strip_0x / is_hex: prefix handling, exact-length checks
- to_quantity: hex encoding, rejects negatives
- from_quantity: hex strings, plain ints, None/garbage → None
- content_hash: keccak-256, prefixed, deterministic, content-addressed
"""

import pytest

from hashnote.integrity import content_hash
from hashnote.ledger.codec import from_quantity, is_hex, strip_0x, to_quantity


class TestHexHelpers:
    def test_strip_prefix(self) -> None:
        assert strip_0x("0xabc") == "abc"
        assert strip_0x("0Xabc") == "abc"

    def test_strip_without_prefix_is_noop(self) -> None:
        assert strip_0x("abc") == "abc"

    def test_is_hex_with_length(self) -> None:
        assert is_hex("0x" + "ab" * 32, 64)
        assert not is_hex("0x" + "ab" * 31, 64)

    def test_is_hex_rejects_non_hex(self) -> None:
        assert not is_hex("0xzz")


class TestQuantity:
    def test_to_quantity(self) -> None:
        assert to_quantity(0) == "0x0"
        assert to_quantity(21000) == "0x5208"

    def test_to_quantity_rejects_negative(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            to_quantity(-1)

    def test_from_hex_quantity(self) -> None:
        assert from_quantity("0x5208") == 21000
        assert from_quantity("0xaa36a7") == 11155111

    def test_from_int(self) -> None:
        assert from_quantity(1234567) == 1234567

    def test_from_none_and_garbage(self) -> None:
        assert from_quantity(None) is None
        assert from_quantity("") is None
        assert from_quantity("0x") is None
        assert from_quantity("pending") is None

    def test_bool_is_not_a_quantity(self) -> None:
        assert from_quantity(True) is None


class TestContentHash:
    def test_known_keccak_value(self) -> None:
        assert content_hash("hello") == (
            "0x1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8"
        )

    def test_shape(self) -> None:
        digest = content_hash("anything at all")
        assert digest.startswith("0x")
        assert len(digest) == 66
        assert digest == digest.lower()

    def test_deterministic(self) -> None:
        assert content_hash("same text") == content_hash("same text")

    def test_distinct_text_distinct_hash(self) -> None:
        assert content_hash("a") != content_hash("b")

    def test_unicode_text(self) -> None:
        assert content_hash("olá, mundo") != content_hash("ola, mundo")
