"""
Process wiring: configuration in, ready-to-use service out.

The ledger variant is chosen exactly once, here. Nothing switches mode
mid-process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hashnote.config import AppConfig, LedgerSettings
from hashnote.diagnostics import HealthReport, health_report
from hashnote.ledger.client import LedgerClient, LedgerMode
from hashnote.ledger.jsonrpc_client import JsonRpcClient
from hashnote.ledger.readonly import ReadOnlyLedgerClient
from hashnote.ledger.signer import LocalKeySigner
from hashnote.ledger.signing import SigningLedgerClient
from hashnote.ledger.simulated import SimulatedLedgerClient
from hashnote.ledger.transport import HttpxTransport, JsonRpcTransport
from hashnote.logs import configure_logging, secret_variants
from hashnote.messages.service import AnchoringService
from hashnote.messages.storage import MessageStore, SqliteMessageStore
from hashnote.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class App:
    """Everything the HTTP boundary needs."""

    config: AppConfig
    store: MessageStore
    ledger: LedgerClient
    service: AnchoringService
    rate_limiter: RateLimiter

    def health(self) -> HealthReport:
        return health_report(self.config, self.ledger)


def create_rpc_client(
    settings: LedgerSettings,
    transport: JsonRpcTransport | None = None,
) -> JsonRpcClient:
    return JsonRpcClient(
        settings.rpc_url,
        transport or HttpxTransport(timeout=settings.rpc_timeout),
    )


def create_ledger_client(
    settings: LedgerSettings,
    transport: JsonRpcTransport | None = None,
) -> LedgerClient:
    """Build the ledger variant selected by ``settings.mode``.

    Raises:
        ValueError: If signing mode has no (or a malformed) private key.
    """
    if settings.mode is LedgerMode.SIMULATED:
        return SimulatedLedgerClient()

    rpc = create_rpc_client(settings, transport)

    if settings.mode is LedgerMode.READ_ONLY:
        return ReadOnlyLedgerClient(rpc, settings.contract_address)

    if not settings.private_key:
        raise ValueError("a private key is required for signing mode")
    return SigningLedgerClient(
        rpc,
        LocalKeySigner(settings.private_key),
        contract_address=settings.contract_address,
        min_gas_price_wei=settings.min_gas_price_wei,
        fallback_chain_id=settings.chain_id,
    )


def build_app(
    config: AppConfig,
    *,
    store: MessageStore | None = None,
    transport: JsonRpcTransport | None = None,
    setup_logging: bool = False,
) -> App:
    """Wire store, ledger, service and rate limiter from ``config``."""
    if setup_logging:
        configure_logging(config.logging.level, secret_variants(config.ledger.private_key))

    ledger = create_ledger_client(config.ledger, transport)
    if store is None:
        store = SqliteMessageStore(config.database.path)

    service = AnchoringService(
        store,
        ledger,
        network=config.ledger.network,
        contract_address=config.ledger.contract_address,
    )
    rate_limiter = RateLimiter(
        config.rate_limit.max_requests,
        config.rate_limit.window_seconds,
    )

    logger.info(
        "hashnote ready (mode=%s, network=%s, rpc=%s)",
        ledger.mode,
        config.ledger.network,
        config.ledger.rpc_url if ledger.mode is not LedgerMode.SIMULATED else "-",
    )
    return App(
        config=config,
        store=store,
        ledger=ledger,
        service=service,
        rate_limiter=rate_limiter,
    )
