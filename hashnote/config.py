"""
Configuration management.

Settings come from two sources, highest priority first:

    1. Environment variables - for containerized deployments
    2. Built-in defaults - sensible fallbacks for local development

``load_config()`` builds an ``AppConfig`` from the environment (or from
an explicit mapping, for tests). Values are validated at load time so a
bad deployment fails on startup rather than on the first request.

Environment Variable Mapping:
    BLOCKCHAIN_MODE                 -> ledger.mode
    BLOCKCHAIN_RPC_URL              -> ledger.rpc_url
    BLOCKCHAIN_PRIVATE_KEY          -> ledger.private_key
    BLOCKCHAIN_CONTRACT_ADDRESS     -> ledger.contract_address
    BLOCKCHAIN_NETWORK              -> ledger.network
    BLOCKCHAIN_MIN_GAS_PRICE_GWEI   -> ledger.min_gas_price_wei
    BLOCKCHAIN_CHAIN_ID             -> ledger.chain_id
    BLOCKCHAIN_RPC_TIMEOUT          -> ledger.rpc_timeout
    RATE_LIMIT_REQUESTS             -> rate_limit.max_requests
    RATE_LIMIT_WINDOW               -> rate_limit.window_seconds
    DB_PATH                         -> database.path
    LOG_LEVEL                       -> logging.level
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from hashnote.ledger.client import LedgerMode
from hashnote.ledger.tx import fallback_chain_id

# Accepted spellings for each ledger mode.
_MODE_ALIASES: dict[str, LedgerMode] = {
    "simulated": LedgerMode.SIMULATED,
    "mock": LedgerMode.SIMULATED,
    "read_only": LedgerMode.READ_ONLY,
    "readonly": LedgerMode.READ_ONLY,
    "rpc_only": LedgerMode.READ_ONLY,
    "signing": LedgerMode.SIGNING,
    "server_sign": LedgerMode.SIGNING,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_WEI_PER_GWEI = Decimal(10) ** 9


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class LedgerSettings:
    """Ledger backend configuration."""

    mode: LedgerMode = LedgerMode.SIMULATED
    rpc_url: str = "http://localhost:8545"
    private_key: str | None = field(default=None, repr=False)
    contract_address: str | None = None
    network: str = "localhost"
    min_gas_price_wei: int = 2_000_000_000  # 2 gwei
    chain_id: int = 1
    rpc_timeout: float = 30.0


@dataclass
class RateLimitSettings:
    """Rate limiting configuration."""

    max_requests: int = 100
    window_seconds: int = 3600


@dataclass
class DatabaseSettings:
    """Database configuration."""

    path: str = "data/app.sqlite"


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class AppConfig:
    """Complete application configuration."""

    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def parse_mode(value: str) -> LedgerMode:
    """Parse a ledger mode, accepting legacy spellings."""
    mode = _MODE_ALIASES.get(value.strip().lower())
    if mode is None:
        raise ValueError(
            f"unknown ledger mode {value!r}; expected one of: simulated, read_only, signing"
        )
    return mode


def _parse_int(name: str, value: str, minimum: int = 1) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}") from None
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got: {parsed}")
    return parsed


def _parse_float(name: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {value!r}") from None
    if not math.isfinite(parsed):
        raise ValueError(f"{name} must be a finite number, got: {value!r}")
    if parsed <= 0:
        raise ValueError(f"{name} must be > 0, got: {parsed}")
    return parsed


def _parse_gwei(name: str, value: str) -> int:
    try:
        gwei = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got: {value!r}") from None
    if not gwei.is_finite():
        raise ValueError(f"{name} must be a finite number, got: {value!r}")
    wei = int(gwei * _WEI_PER_GWEI)
    if wei <= 0:
        raise ValueError(f"{name} must be > 0, got: {value!r}")
    return wei


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """
    Load configuration from the environment over built-in defaults.

    Args:
        environ: Mapping to read instead of ``os.environ``.

    Returns:
        AppConfig: Fully populated configuration object.

    Raises:
        ValueError: On malformed values, or signing mode without a key.
    """
    env = os.environ if environ is None else environ
    cfg = AppConfig()

    def get(name: str) -> str | None:
        value = env.get(name)
        if value is None or value.strip() == "":
            return None
        return value.strip()

    # Ledger settings
    if mode := get("BLOCKCHAIN_MODE"):
        cfg.ledger.mode = parse_mode(mode)
    if rpc_url := get("BLOCKCHAIN_RPC_URL"):
        cfg.ledger.rpc_url = rpc_url
    if private_key := get("BLOCKCHAIN_PRIVATE_KEY"):
        cfg.ledger.private_key = private_key
    if contract := get("BLOCKCHAIN_CONTRACT_ADDRESS"):
        cfg.ledger.contract_address = contract
    if network := get("BLOCKCHAIN_NETWORK"):
        cfg.ledger.network = network
    if gwei := get("BLOCKCHAIN_MIN_GAS_PRICE_GWEI"):
        cfg.ledger.min_gas_price_wei = _parse_gwei("BLOCKCHAIN_MIN_GAS_PRICE_GWEI", gwei)
    if chain_id := get("BLOCKCHAIN_CHAIN_ID"):
        cfg.ledger.chain_id = _parse_int("BLOCKCHAIN_CHAIN_ID", chain_id)
    else:
        cfg.ledger.chain_id = fallback_chain_id(cfg.ledger.network)
    if timeout := get("BLOCKCHAIN_RPC_TIMEOUT"):
        cfg.ledger.rpc_timeout = _parse_float("BLOCKCHAIN_RPC_TIMEOUT", timeout)

    if cfg.ledger.mode is LedgerMode.SIGNING and not cfg.ledger.private_key:
        raise ValueError("BLOCKCHAIN_PRIVATE_KEY is required for signing mode")

    # Rate limit settings
    if requests := get("RATE_LIMIT_REQUESTS"):
        cfg.rate_limit.max_requests = _parse_int("RATE_LIMIT_REQUESTS", requests)
    if window := get("RATE_LIMIT_WINDOW"):
        cfg.rate_limit.window_seconds = _parse_int("RATE_LIMIT_WINDOW", window)

    # Database settings
    if db_path := get("DB_PATH"):
        cfg.database.path = db_path

    # Logging settings
    if level := get("LOG_LEVEL"):
        level = level.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got: {level!r}")
        cfg.logging.level = level

    return cfg
