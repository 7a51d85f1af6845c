"""
Transaction builder for message anchoring.

Builds an unsigned legacy (EIP-155) transaction from a message hash.
This is the "transaction recipe" — pure, deterministic, no secrets, no
network calls. Nonce, gas price, gas limit and chain id are fetched by
the signing client and passed in.

The builder enforces:
    - value == 0 (anchoring never moves funds)
    - destination == contract address if configured, else the sender
    - data == the message hash, or the contract call payload
    - non-negative nonce, positive gas price / gas limit / chain id
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import to_checksum_address

from hashnote.ledger.codec import is_hex

# Gas limit for a plain value transfer with calldata to an EOA.
SIMPLE_TRANSFER_GAS = 21_000

# Gas limit used when estimation against the contract fails.
FALLBACK_CONTRACT_GAS = 100_000

# Safety margin on estimated gas, as a fraction (20%).
GAS_ESTIMATE_MARGIN_PERCENT = 20

# Well-known chain ids, used when the node cannot report one.
KNOWN_CHAIN_IDS: dict[str, int] = {
    "mainnet": 1,
    "sepolia": 11_155_111,
}
DEFAULT_CHAIN_ID = 1


@dataclass(frozen=True)
class UnsignedTransaction:
    """A legacy transaction ready for signing.

    Attributes:
        nonce: Sender's next transaction count (pending view).
        gas_price: Gas price in wei.
        gas: Gas limit.
        to: Checksummed destination address.
        value: Always 0.
        data: ``0x``-prefixed payload.
        chain_id: Network id used for EIP-155 replay protection.
    """

    nonce: int
    gas_price: int
    gas: int
    to: str
    data: str
    chain_id: int
    value: int = 0

    def to_dict(self) -> dict[str, object]:
        """Field names as eth-account expects them."""
        return {
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "gas": self.gas,
            "to": self.to,
            "value": self.value,
            "data": self.data,
            "chainId": self.chain_id,
        }


def encode_contract_call(msg_hash: str) -> str:
    """Payload for a contract-targeted anchoring transaction.

    Placeholder: no ABI is known, so the raw message hash is sent as
    calldata. Swap in ``registerMessage(bytes32)`` encoding once the
    contract ABI is fixed.
    """
    return msg_hash


def apply_gas_margin(estimate: int) -> int:
    """Add the safety margin to a gas estimate (integer arithmetic)."""
    return estimate * (100 + GAS_ESTIMATE_MARGIN_PERCENT) // 100


def fallback_chain_id(network: str) -> int:
    """Chain id for a network label when the node does not report one."""
    return KNOWN_CHAIN_IDS.get(network.lower(), DEFAULT_CHAIN_ID)


def plan_transaction(
    *,
    sender: str,
    msg_hash: str,
    nonce: int,
    gas_price: int,
    gas: int,
    chain_id: int,
    contract_address: str | None = None,
) -> UnsignedTransaction:
    """Build an unsigned anchoring transaction.

    Args:
        sender: Address of the signing account.
        msg_hash: Message content hash ("0x" + 64 hex).
        nonce: Pending transaction count of the sender.
        gas_price: Gas price in wei.
        gas: Gas limit.
        chain_id: Network chain id.
        contract_address: Optional contract to call instead of a self-send.

    Returns:
        UnsignedTransaction.

    Raises:
        ValueError: If any input is out of range or malformed.
    """
    if not is_hex(msg_hash, 64) or not msg_hash.startswith("0x"):
        raise ValueError(f"msg_hash must be '0x' + 64 hex chars, got: {msg_hash!r}")
    if nonce < 0:
        raise ValueError(f"nonce must be >= 0, got: {nonce}")
    if gas_price <= 0:
        raise ValueError(f"gas_price must be > 0, got: {gas_price}")
    if gas <= 0:
        raise ValueError(f"gas must be > 0, got: {gas}")
    if chain_id <= 0:
        raise ValueError(f"chain_id must be > 0, got: {chain_id}")

    if contract_address:
        to = to_checksum_address(contract_address)
        data = encode_contract_call(msg_hash)
    else:
        to = to_checksum_address(sender)
        data = msg_hash

    return UnsignedTransaction(
        nonce=nonce,
        gas_price=gas_price,
        gas=gas,
        to=to,
        data=data,
        chain_id=chain_id,
    )
