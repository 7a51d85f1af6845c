"""
Messages: model, storage, reconciliation and the anchoring service.
"""

from hashnote.messages.model import MAX_TEXT_LENGTH, Message, MessageStatus
from hashnote.messages.reconcile import ReconcileResult, ReconciliationEngine
from hashnote.messages.service import (
    AnchoringService,
    CreateResult,
    ServiceError,
    VerificationResult,
)
from hashnote.messages.storage import MessageStore, SqliteMessageStore

__all__ = [
    "AnchoringService",
    "CreateResult",
    "MAX_TEXT_LENGTH",
    "Message",
    "MessageStatus",
    "MessageStore",
    "ReconcileResult",
    "ReconciliationEngine",
    "ServiceError",
    "SqliteMessageStore",
    "VerificationResult",
]
