"""
Tests for the local key signer and the signing transaction builder.

Test plan:
- key validation: prefix optional, wrong length / non-hex rejected,
  error never echoes the key
- address derivation from a well-known development key
- sign: raw transaction recovers to the signer, hash = keccak(raw)
- repr does not leak the key
- builder: sender, build() delegates to plan_transaction
"""

import pytest
from eth_account import Account
from eth_utils import keccak

from hashnote.ledger.signer import (
    LocalKeySigner,
    SigningTransactionBuilder,
    TransactionSigner,
    normalize_private_key,
)
from hashnote.ledger.tx import plan_transaction

# Well-known development account #0 of the local test node.
DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
MSG_HASH = "0x" + "5a" * 32


class TestNormalizePrivateKey:
    def test_with_prefix(self) -> None:
        assert normalize_private_key(DEV_KEY) == DEV_KEY[2:]

    def test_without_prefix(self) -> None:
        assert normalize_private_key(DEV_KEY[2:]) == DEV_KEY[2:]

    def test_surrounding_whitespace(self) -> None:
        assert normalize_private_key(f"  {DEV_KEY}\n") == DEV_KEY[2:]

    @pytest.mark.parametrize("bad", ["", "0x", "0x1234", "zz" * 32, DEV_KEY + "00"])
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(ValueError, match="invalid private key format"):
            normalize_private_key(bad)

    def test_error_does_not_echo_key(self) -> None:
        almost = DEV_KEY[:-1]
        with pytest.raises(ValueError) as excinfo:
            normalize_private_key(almost)
        assert almost[2:] not in str(excinfo.value)


class TestLocalKeySigner:
    def test_address(self) -> None:
        assert LocalKeySigner(DEV_KEY).address == DEV_ADDRESS

    def test_satisfies_protocol(self) -> None:
        assert isinstance(LocalKeySigner(DEV_KEY), TransactionSigner)

    def test_zero_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            LocalKeySigner("0x" + "00" * 32)

    def test_sign_recovers_to_sender(self) -> None:
        signer = LocalKeySigner(DEV_KEY)
        tx = plan_transaction(
            sender=signer.address,
            msg_hash=MSG_HASH,
            nonce=3,
            gas_price=2_000_000_000,
            gas=21_000,
            chain_id=11_155_111,
        )
        signed = signer.sign(tx)

        assert signed.raw_transaction.startswith("0x")
        assert Account.recover_transaction(signed.raw_transaction) == DEV_ADDRESS
        assert signed.tx_hash == "0x" + keccak(hexstr=signed.raw_transaction).hex()

    def test_signature_depends_on_chain_id(self) -> None:
        signer = LocalKeySigner(DEV_KEY)
        common = {
            "sender": signer.address,
            "msg_hash": MSG_HASH,
            "nonce": 0,
            "gas_price": 1,
            "gas": 21_000,
        }
        a = signer.sign(plan_transaction(chain_id=1, **common))
        b = signer.sign(plan_transaction(chain_id=11_155_111, **common))
        assert a.raw_transaction != b.raw_transaction

    def test_repr_hides_key(self) -> None:
        text = repr(LocalKeySigner(DEV_KEY))
        assert DEV_KEY[2:] not in text
        assert DEV_ADDRESS in text


class TestSigningTransactionBuilder:
    def test_sender(self) -> None:
        builder = SigningTransactionBuilder(LocalKeySigner(DEV_KEY))
        assert builder.sender == DEV_ADDRESS

    def test_build_self_send(self) -> None:
        builder = SigningTransactionBuilder(LocalKeySigner(DEV_KEY))
        tx = builder.build(MSG_HASH, nonce=0, gas_price=1, gas=21_000, chain_id=1)
        assert tx.to == DEV_ADDRESS
        assert tx.data == MSG_HASH

    def test_build_with_contract(self) -> None:
        contract = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
        builder = SigningTransactionBuilder(LocalKeySigner(DEV_KEY), contract)
        tx = builder.build(MSG_HASH, nonce=0, gas_price=1, gas=60_000, chain_id=1)
        assert tx.to == contract
