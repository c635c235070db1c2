"""
Phoenix Market Maker

A fixed-edge quoting bot for a single Phoenix order book market on Solana.
"""

from phoenix_mm.bot import MarketMaker
from phoenix_mm.client import PhoenixClient
from phoenix_mm.config import BotConfig, ClusterConfig, get_cluster_config, load_keypair
from phoenix_mm.market import MarketState
from phoenix_mm.price_feed import SpotPriceFeed
from phoenix_mm.quoting import build_order_templates, compute_quote
from phoenix_mm.types import (
    LimitOrderTemplate,
    MarketHeader,
    PriceResult,
    Quote,
    RunSummary,
    SelfTradeBehavior,
    Side,
    TokenParams,
    WithdrawParams,
)
from phoenix_mm.exceptions import (
    ConfigurationError,
    MarketNotFoundError,
    PhoenixMMError,
    PriceFeedError,
    TransactionError,
)

__version__ = "0.1.0"

__all__ = [
    # Main components
    "MarketMaker",
    "PhoenixClient",
    "SpotPriceFeed",
    "MarketState",
    # Configuration
    "BotConfig",
    "ClusterConfig",
    "get_cluster_config",
    "load_keypair",
    # Quoting
    "compute_quote",
    "build_order_templates",
    # Types
    "LimitOrderTemplate",
    "MarketHeader",
    "PriceResult",
    "Quote",
    "RunSummary",
    "SelfTradeBehavior",
    "Side",
    "TokenParams",
    "WithdrawParams",
    # Exceptions
    "PhoenixMMError",
    "ConfigurationError",
    "MarketNotFoundError",
    "PriceFeedError",
    "TransactionError",
]
