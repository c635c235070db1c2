"""
Run configuration for the Phoenix market maker.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from solders.keypair import Keypair

from phoenix_mm.constants import (
    DEFAULT_CLIENT_ORDER_ID,
    DEFAULT_CLUSTER,
    DEFAULT_EDGE,
    DEFAULT_MARKET_ADDRESS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_ORDER_LIFETIME_SECONDS,
    DEFAULT_PRICE_FEED_URL,
    DEFAULT_REFRESH_FREQ_MS,
    DEFAULT_SIZE_IN_BASE_UNITS,
    EXPLORER_TX_URL,
    PRIVATE_KEY_ENV,
    RPC_URLS,
)
from phoenix_mm.exceptions import ConfigurationError
from phoenix_mm.types import SelfTradeBehavior

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterConfig:
    """Configuration for a specific Solana cluster."""

    name: str
    rpc_url: str

    def explorer_link(self, signature: str) -> str:
        """Human-readable explorer URL for a transaction signature."""
        url = EXPLORER_TX_URL.format(signature=signature)
        if self.name != "mainnet-beta":
            url += f"?cluster={self.name}"
        return url


def get_cluster_config(name: str, rpc_url: Optional[str] = None) -> ClusterConfig:
    """Get configuration for a cluster.

    Args:
        name: The cluster name ("devnet" or "mainnet-beta").
        rpc_url: Optional RPC URL overriding the public endpoint.

    Returns:
        The cluster configuration.

    Raises:
        ConfigurationError: If the cluster is not supported.
    """
    if name not in RPC_URLS:
        raise ConfigurationError(
            f"Unsupported cluster '{name}'. Supported: {', '.join(RPC_URLS)}"
        )
    return ClusterConfig(name=name, rpc_url=rpc_url or RPC_URLS[name])


@dataclass
class BotConfig:
    """Immutable-in-practice settings for one quoting run."""

    market_address: str = DEFAULT_MARKET_ADDRESS
    cluster: str = DEFAULT_CLUSTER
    rpc_url: Optional[str] = None
    price_feed_url: str = DEFAULT_PRICE_FEED_URL
    refresh_freq_ms: int = DEFAULT_REFRESH_FREQ_MS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    order_lifetime_seconds: int = DEFAULT_ORDER_LIFETIME_SECONDS
    edge: float = DEFAULT_EDGE
    size_in_base_units: float = DEFAULT_SIZE_IN_BASE_UNITS
    client_order_id: int = DEFAULT_CLIENT_ORDER_ID
    self_trade_behavior: SelfTradeBehavior = SelfTradeBehavior.ABORT
    use_only_deposited_funds: bool = True
    skip_preflight: bool = True
    commitment: str = "confirmed"
    request_timeout_sec: float = 10.0
    cluster_config: ClusterConfig = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate settings and resolve the cluster."""
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.refresh_freq_ms <= 0:
            raise ValueError(f"refresh_freq_ms must be positive, got {self.refresh_freq_ms}")
        if self.edge <= 0:
            raise ValueError(f"edge must be positive, got {self.edge}")
        if self.order_lifetime_seconds <= 0:
            raise ValueError(
                f"order_lifetime_seconds must be positive, got {self.order_lifetime_seconds}"
            )
        if self.size_in_base_units <= 0:
            raise ValueError(
                f"size_in_base_units must be positive, got {self.size_in_base_units}"
            )
        if self.client_order_id < 0:
            raise ValueError(f"client_order_id must be non-negative, got {self.client_order_id}")
        self.cluster_config = get_cluster_config(self.cluster, self.rpc_url)

    @property
    def refresh_interval(self) -> float:
        """Pause after a successful placement, in seconds."""
        return self.refresh_freq_ms / 1000.0

    @classmethod
    def from_env(cls, **overrides: Any) -> "BotConfig":
        """Create a config from ``PHOENIX_*`` environment variables.

        Explicit keyword overrides win over the environment, which wins over
        the defaults. ``PHOENIX_EDGE=0.25`` sets ``edge`` and so on.
        """
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if not f.init:
                continue
            raw = os.environ.get(f"PHOENIX_{f.name.upper()}")
            if raw is None or raw == "":
                continue
            values[f.name] = _coerce(f.name, raw, f.default)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _coerce(name: str, raw: str, default: Any) -> Any:
    try:
        if isinstance(default, bool):
            return raw.strip().lower() in ("1", "true", "yes")
        if isinstance(default, SelfTradeBehavior):
            return SelfTradeBehavior[raw.strip().upper()]
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except (KeyError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for PHOENIX_{name.upper()}: {raw!r}") from e
    return raw


def load_env(dotenv: bool = True) -> None:
    """Load a .env file into the process environment if requested."""
    if dotenv:
        load_dotenv()


def load_keypair(raw: Optional[str] = None) -> Keypair:
    """Load the trader keypair from a JSON-encoded byte array.

    Args:
        raw: The JSON text. Read from the ``PRIVATE_KEY`` env var if omitted.

    Returns:
        The trader keypair.

    Raises:
        ConfigurationError: If the key is missing or malformed.
    """
    if raw is None:
        raw = os.environ.get(PRIVATE_KEY_ENV)
    if not raw:
        raise ConfigurationError(f"Missing {PRIVATE_KEY_ENV} in your .env file")

    try:
        key_bytes = json.loads(raw)
        if not isinstance(key_bytes, list):
            raise ValueError("expected a JSON array")
        if len(key_bytes) != 64:
            raise ValueError(f"expected 64 bytes, got {len(key_bytes)}")
        keypair = Keypair.from_bytes(bytes(key_bytes))
    except Exception as e:
        raise ConfigurationError(
            f"Error parsing {PRIVATE_KEY_ENV}. Please make sure it is a stringified array"
        ) from e

    logger.debug("Loaded trader keypair %s", keypair.pubkey())
    return keypair
