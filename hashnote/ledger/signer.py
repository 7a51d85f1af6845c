"""
Transaction signer — the secrets boundary.

The signing ledger client never handles the private key directly. It
passes an ``UnsignedTransaction`` and gets back a raw signed blob plus
the transaction hash. The key stays inside the signer.

Concrete implementations:
    - LocalKeySigner (eth-account, key from configuration)
    - FakeSigner (tests)

``SigningTransactionBuilder`` pairs a signer with the pure builder in
``tx.py`` so the client asks for "a signed anchoring transaction" in two
calls: ``build()`` then ``sign()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from eth_account import Account

from hashnote.ledger.codec import is_hex, strip_0x
from hashnote.ledger.tx import UnsignedTransaction, plan_transaction


@dataclass(frozen=True)
class SignResult:
    """Result of signing a transaction.

    Attributes:
        raw_transaction: ``0x``-prefixed RLP-encoded signed transaction,
            ready for ``eth_sendRawTransaction``.
        tx_hash: Keccak hash of the signed transaction ("0x" + 64 hex).
    """

    raw_transaction: str
    tx_hash: str


@runtime_checkable
class TransactionSigner(Protocol):
    """Interface for transaction signing.

    Properties:
        address: Checksummed address of the signing account. Safe for
            logging and audit trails. Never a secret.
    """

    @property
    def address(self) -> str:
        ...

    def sign(self, tx: UnsignedTransaction) -> SignResult:
        """Sign a transaction using its chain id for replay protection.

        Raises:
            Exception: If the transaction cannot be signed.
        """
        ...


def normalize_private_key(private_key: str) -> str:
    """Validate a hex private key and return it without prefix.

    Raises:
        ValueError: Unless the key is exactly 64 hex chars after an
            optional ``0x`` prefix. The key itself is never echoed.
    """
    body = strip_0x(private_key.strip())
    if not is_hex(body, 64):
        raise ValueError("invalid private key format: expected 64 hex characters")
    return body


class LocalKeySigner:
    """Signs with a private key held in process memory (eth-account)."""

    def __init__(self, private_key: str) -> None:
        key = normalize_private_key(private_key)
        try:
            self._account = Account.from_key("0x" + key)
        except Exception as exc:
            # e.g. zero key or key >= curve order
            raise ValueError(f"cannot derive address from private key: {exc}") from exc

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, tx: UnsignedTransaction) -> SignResult:
        signed = self._account.sign_transaction(tx.to_dict())
        return SignResult(
            raw_transaction="0x" + bytes(signed.raw_transaction).hex(),
            tx_hash="0x" + bytes(signed.hash).hex(),
        )

    def __repr__(self) -> str:
        return f"LocalKeySigner(address={self.address!r})"


class SigningTransactionBuilder:
    """Builds and signs anchoring transactions for one sender.

    Args:
        signer: Key holder.
        contract_address: Optional destination contract.
    """

    def __init__(self, signer: TransactionSigner, contract_address: str | None = None) -> None:
        self._signer = signer
        self._contract_address = contract_address or None

    @property
    def sender(self) -> str:
        return self._signer.address

    def build(
        self,
        msg_hash: str,
        *,
        nonce: int,
        gas_price: int,
        gas: int,
        chain_id: int,
    ) -> UnsignedTransaction:
        return plan_transaction(
            sender=self._signer.address,
            msg_hash=msg_hash,
            nonce=nonce,
            gas_price=gas_price,
            gas=gas,
            chain_id=chain_id,
            contract_address=self._contract_address,
        )

    def sign(self, tx: UnsignedTransaction) -> SignResult:
        return self._signer.sign(tx)
