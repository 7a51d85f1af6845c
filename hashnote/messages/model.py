"""
Message — the anchored unit of text.

A Message is created once by the anchoring service and afterwards only
changed by reconciliation. It is a frozen dataclass: transitions produce
a new instance via ``with_status``, never mutate in place.

Status transitions:
    pending → confirmed (receipt status success)
    pending → failed    (receipt status reverted)
    confirmed → (terminal)
    failed → (terminal)

Invariants:
    - text: 1-280 code points, already trimmed.
    - msg_hash: "0x" + 64 lowercase hex.
    - block_number and confirmed_at are set together, and only when
      status is confirmed.
    - created_at never changes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

MAX_TEXT_LENGTH = 280

_MSG_HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


class MessageStatus(StrEnum):
    """Anchoring status of a message."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not MessageStatus.PENDING


_ALLOWED_TRANSITIONS: dict[MessageStatus, frozenset[MessageStatus]] = {
    MessageStatus.PENDING: frozenset({MessageStatus.CONFIRMED, MessageStatus.FAILED}),
    MessageStatus.CONFIRMED: frozenset(),
    MessageStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class Message:
    """A stored message and its anchoring state.

    Required:
        id: Opaque unique identifier (UUID4 string).
        text: The trimmed message text.
        msg_hash: Content hash of the text.
        created_at: RFC3339 UTC creation timestamp.

    Optional:
        tx_hash: Ledger transaction reference, once submitted.
        status: Anchoring status (default pending).
        block_number: Block height, only when confirmed.
        confirmed_at: RFC3339 UTC confirmation time, only when confirmed.
    """

    id: str
    text: str
    msg_hash: str
    created_at: str
    tx_hash: str | None = None
    status: MessageStatus = MessageStatus.PENDING
    block_number: int | None = None
    confirmed_at: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id must be non-empty")
        if not 1 <= len(self.text) <= MAX_TEXT_LENGTH:
            raise ValueError(
                f"text must be 1-{MAX_TEXT_LENGTH} characters, got {len(self.text)}"
            )
        if not _MSG_HASH_RE.match(self.msg_hash):
            raise ValueError(
                f"msg_hash must be '0x' + 64 lowercase hex chars, got: {self.msg_hash!r}"
            )
        if self.status is not MessageStatus.CONFIRMED and (
            self.block_number is not None or self.confirmed_at is not None
        ):
            raise ValueError("block_number/confirmed_at are only set on confirmed messages")

    def with_status(
        self,
        status: MessageStatus,
        *,
        block_number: int | None = None,
        confirmed_at: str | None = None,
    ) -> Message:
        """Return a copy moved to ``status``.

        Raises:
            ValueError: If the transition is not allowed.
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"illegal status transition {self.status} → {status}")
        if status is MessageStatus.CONFIRMED:
            return replace(
                self,
                status=status,
                block_number=block_number,
                confirmed_at=confirmed_at,
            )
        return replace(self, status=status)

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "message": self.text,
            "msg_hash": self.msg_hash,
            "tx_hash": self.tx_hash,
            "status": self.status.value,
            "block_number": self.block_number,
            "confirmed_at": self.confirmed_at,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            id=data["id"],
            text=data["message"],
            msg_hash=data["msg_hash"],
            created_at=data["created_at"],
            tx_hash=data.get("tx_hash"),
            status=MessageStatus(data.get("status", MessageStatus.PENDING)),
            block_number=data.get("block_number"),
            confirmed_at=data.get("confirmed_at"),
        )
