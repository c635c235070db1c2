"""
Command-line entry point for the Phoenix market maker.

Usage:
    PRIVATE_KEY='[12, 34, ...]' phoenix-mm

    # Custom parameters
    phoenix-mm --edge 0.25 --iterations 50 --refresh-ms 5000

    # Another market on mainnet through a private RPC
    phoenix-mm --cluster mainnet-beta --rpc-url https://my.rpc --market <address>
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from solders.keypair import Keypair

from phoenix_mm.bot import MarketMaker
from phoenix_mm.client import PhoenixClient
from phoenix_mm.config import BotConfig, load_env, load_keypair
from phoenix_mm.exceptions import ConfigurationError
from phoenix_mm.price_feed import SpotPriceFeed

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the market maker."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phoenix-mm",
        description="Fixed-edge market maker for a Phoenix order book market",
    )
    parser.add_argument("--market", dest="market_address", help="Market address (base58)")
    parser.add_argument("--cluster", help="Solana cluster: devnet or mainnet-beta")
    parser.add_argument("--rpc-url", help="RPC URL overriding the cluster default")
    parser.add_argument("--price-url", dest="price_feed_url", help="Spot price feed URL")
    parser.add_argument("--edge", type=float, help="Distance of each quote from spot")
    parser.add_argument("--size", dest="size_in_base_units", type=float,
                        help="Order size in base units")
    parser.add_argument("--iterations", dest="max_iterations", type=int,
                        help="Successful quote cycles before unwinding")
    parser.add_argument("--refresh-ms", dest="refresh_freq_ms", type=int,
                        help="Pause after each successful placement, in ms")
    parser.add_argument("--lifetime", dest="order_lifetime_seconds", type=int,
                        help="Order time-to-live in seconds")
    parser.add_argument("--no-dotenv", action="store_true", help="Do not read a .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def print_banner(config: BotConfig, trader: str) -> None:
    print(f"\n{'='*60}")
    print("PHOENIX FIXED-EDGE MARKET MAKER")
    print(f"{'='*60}")
    print(f"Trader:      {trader}")
    print(f"Market:      {config.market_address}")
    print(f"Cluster:     {config.cluster} ({config.cluster_config.rpc_url})")
    print(f"Price feed:  {config.price_feed_url}")
    print(f"Edge:        {config.edge}")
    print(f"Size:        {config.size_in_base_units} base units per side")
    print(f"Lifetime:    {config.order_lifetime_seconds}s")
    print(f"Refresh:     {config.refresh_freq_ms}ms")
    print(f"Iterations:  {config.max_iterations}")
    print(f"{'='*60}\n")


async def run(config: BotConfig, trader: Keypair) -> int:
    client = PhoenixClient(
        config.cluster_config,
        commitment=config.commitment,
        skip_preflight=config.skip_preflight,
        timeout=config.request_timeout_sec,
    )
    price_feed = SpotPriceFeed(config.price_feed_url, timeout=config.request_timeout_sec)
    try:
        bot = MarketMaker(client, price_feed, trader, config)
        await bot.run()
    finally:
        await price_feed.close()
        await client.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    load_env(dotenv=not args.no_dotenv)

    overrides = {
        name: getattr(args, name)
        for name in (
            "market_address",
            "cluster",
            "rpc_url",
            "price_feed_url",
            "edge",
            "size_in_base_units",
            "max_iterations",
            "refresh_freq_ms",
            "order_lifetime_seconds",
        )
    }
    try:
        config = BotConfig.from_env(**overrides)
        trader = load_keypair()
    except (ConfigurationError, ValueError) as e:
        logger.error("%s", e)
        return 1

    print_banner(config, str(trader.pubkey()))

    try:
        return asyncio.run(run(config, trader))
    except KeyboardInterrupt:
        print("\nInterrupted; resting orders and deposits were not unwound.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
