"""
Operational diagnostics for a running deployment.

    - health_report(config, ledger)    liveness plus the configured ledger mode
    - check_rpc(rpc)                   is the node reachable, which chain is it
    - check_balance(rpc, address)      can the sender pay for gas

The RPC checks use the same fail-closed ``JsonRpcClient`` as the ledger
clients, so an unreachable node is reported in the result, not raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from hashnote import __version__
from hashnote.config import AppConfig
from hashnote.ledger.client import LedgerClient
from hashnote.ledger.codec import from_quantity
from hashnote.ledger.jsonrpc_client import JsonRpcClient
from hashnote.ledger.signer import LocalKeySigner

logger = logging.getLogger(__name__)

NETWORK_NAMES: dict[int, str] = {
    1: "Ethereum Mainnet",
    5: "Goerli Testnet",
    11_155_111: "Sepolia Testnet",
}

EXPLORER_ADDRESS_URLS: dict[str, str] = {
    "mainnet": "https://etherscan.io/address/",
    "sepolia": "https://sepolia.etherscan.io/address/",
}

WEI_PER_ETH = Decimal(10) ** 18

# Below this the sender cannot reliably pay for anchoring transactions.
LOW_BALANCE_WEI = 10**15  # 0.001 ETH
# Comfortable balance for a round of testing.
RECOMMENDED_BALANCE_WEI = 10**16  # 0.01 ETH


def network_name(chain_id: int) -> str:
    return NETWORK_NAMES.get(chain_id, f"Unknown (chain id {chain_id})")


def explorer_url(network: str, address: str) -> str | None:
    """Block explorer page for ``address``, if the network has a known one."""
    base = EXPLORER_ADDRESS_URLS.get(network.lower())
    return base + address if base else None


# =========================================================================
# Health
# =========================================================================


@dataclass(frozen=True)
class HealthReport:
    status: str
    version: str
    mode: str
    network: str

    def to_dict(self) -> dict[str, str]:
        return {
            "status": self.status,
            "version": self.version,
            "blockchain_mode": self.mode,
            "network": self.network,
        }


def health_report(config: AppConfig, ledger: LedgerClient) -> HealthReport:
    """Liveness report. Makes no network calls."""
    return HealthReport(
        status="ok",
        version=__version__,
        mode=str(ledger.mode),
        network=config.ledger.network,
    )


# =========================================================================
# RPC connectivity
# =========================================================================


@dataclass(frozen=True)
class RpcCheck:
    """Outcome of checking the JSON-RPC endpoint.

    Attributes:
        rpc_url: Endpoint that was checked.
        reachable: Whether ``eth_blockNumber`` returned a block height.
        block_number: Latest block height.
        chain_id: Chain id reported by ``eth_chainId``, if any.
        error: Failure description when not reachable.
    """

    rpc_url: str
    reachable: bool
    block_number: int | None = None
    chain_id: int | None = None
    error: str | None = None

    @property
    def network_name(self) -> str | None:
        return network_name(self.chain_id) if self.chain_id is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "reachable": self.reachable,
            "block_number": self.block_number,
            "chain_id": self.chain_id,
            "network_name": self.network_name,
            "error": self.error,
        }


async def check_rpc(rpc: JsonRpcClient) -> RpcCheck:
    response = await rpc.call("eth_blockNumber", [])
    block_number = from_quantity(response.result) if response.ok else None
    if block_number is None:
        error = response.error or f"unexpected eth_blockNumber result: {response.result!r}"
        logger.warning("RPC check against %s failed: %s", rpc.url, error)
        return RpcCheck(rpc_url=rpc.url, reachable=False, error=error)

    response = await rpc.call("eth_chainId", [])
    chain_id = from_quantity(response.result) if response.ok else None
    logger.info("RPC %s reachable at block %d (chain id %s)", rpc.url, block_number, chain_id)
    return RpcCheck(
        rpc_url=rpc.url,
        reachable=True,
        block_number=block_number,
        chain_id=chain_id,
    )


# =========================================================================
# Sender balance
# =========================================================================


@dataclass(frozen=True)
class BalanceCheck:
    address: str
    balance_wei: int | None = None
    error: str | None = None

    @property
    def balance_eth(self) -> Decimal | None:
        if self.balance_wei is None:
            return None
        return Decimal(self.balance_wei) / WEI_PER_ETH

    @property
    def level(self) -> str | None:
        """Either low, testing or ok. None when the balance is unknown."""
        if self.balance_wei is None:
            return None
        if self.balance_wei < LOW_BALANCE_WEI:
            return "low"
        if self.balance_wei < RECOMMENDED_BALANCE_WEI:
            return "testing"
        return "ok"

    def to_dict(self) -> dict[str, Any]:
        eth = self.balance_eth
        return {
            "address": self.address,
            "balance_wei": self.balance_wei,
            "balance_eth": str(eth) if eth is not None else None,
            "level": self.level,
            "error": self.error,
        }


def sender_address(private_key: str) -> str:
    """Address of the account behind ``private_key``.

    Raises:
        ValueError: If the key is malformed.
    """
    return LocalKeySigner(private_key).address


async def check_balance(rpc: JsonRpcClient, address: str) -> BalanceCheck:
    response = await rpc.call("eth_getBalance", [address, "latest"])
    balance = from_quantity(response.result) if response.ok else None
    if balance is None:
        error = response.error or "invalid eth_getBalance result"
        logger.warning("Balance check for %s failed: %s", address, error)
        return BalanceCheck(address=address, error=error)
    if balance < LOW_BALANCE_WEI:
        logger.warning("Balance of %s is %d wei, too low to pay for gas", address, balance)
    return BalanceCheck(address=address, balance_wei=balance)
