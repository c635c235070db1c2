"""
Fixed-edge market maker for a single Phoenix market.

Each iteration:
  1. Cancel all resting orders (failure is logged, the iteration goes on)
  2. Fetch the spot price (failure skips the rest of the iteration)
  3. Quote bid = spot - edge, ask = spot + edge
  4. Place both orders in one transaction (failure skips the rest)
  5. Count the iteration and wait ``refresh_interval`` seconds

The loop stops after ``max_iterations`` successful placements; it then cancels
everything and withdraws all funds from the market in one transaction.
Failed iterations are retried immediately: the pause only follows a
successful placement.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from phoenix_mm.client import PhoenixClient
from phoenix_mm.config import BotConfig
from phoenix_mm.market import MarketState
from phoenix_mm.price_feed import SpotPriceFeed
from phoenix_mm.quoting import build_order_templates, compute_quote
from phoenix_mm.types import RunSummary, WithdrawParams

logger = logging.getLogger(__name__)


class MarketMaker:
    """Cancel, quote, place and wait, for a bounded number of iterations."""

    def __init__(
        self,
        client: PhoenixClient,
        price_feed: SpotPriceFeed,
        trader: Keypair,
        config: BotConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the market maker.

        Args:
            client: Phoenix client bound to the target cluster.
            price_feed: Source of the reference spot price.
            trader: Keypair that signs and pays for every transaction.
            config: Run configuration.
            sleep: Coroutine used for the pacing delay.
            clock: Wall-clock source in Unix seconds, used for order expiry.
        """
        self.client = client
        self.price_feed = price_feed
        self.trader = trader
        self.config = config
        self._sleep = sleep
        self._clock = clock

        self.market: Optional[MarketState] = None
        self.counter = 0
        self.attempts = 0

    @property
    def trader_pubkey(self) -> Pubkey:
        return self.trader.pubkey()

    def _require_market(self) -> MarketState:
        if self.market is None:
            raise RuntimeError("setup() must run before quoting")
        return self.market

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    async def setup(self) -> MarketState:
        """Resolve the market and create any missing trader accounts.

        Errors are not caught: a run that cannot set up does not start.
        """
        self.market = await self.client.load_market(self.config.market_address)

        setup_ixs = await self.client.get_maker_setup_instructions(
            self.market, self.trader_pubkey
        )
        if setup_ixs:
            signature = await self.client.send_and_confirm(setup_ixs, self.trader, label="setup")
            logger.info("Setup tx link: %s", self.client.explorer_link(signature))
        else:
            logger.info("No setup required. Continuing...")
        return self.market

    # ------------------------------------------------------------------
    # Quoting loop
    # ------------------------------------------------------------------

    async def cancel_all_orders(self) -> bool:
        """Cancel every resting order of the trader. Returns False on failure."""
        market = self._require_market()
        try:
            ix = self.client.create_cancel_all_orders_instruction(market, self.trader_pubkey)
            signature = await self.client.send_and_confirm([ix], self.trader, label="cancel")
        except Exception as e:
            logger.error("Cancel all orders failed: %s", e)
            return False
        logger.info("Cancel tx link: %s", self.client.explorer_link(signature))
        return True

    async def run_iteration(self) -> bool:
        """Run one cancel, quote, place, wait cycle.

        Returns:
            True if both orders were placed (and the pause has elapsed),
            False if the iteration was skipped.
        """
        market = self._require_market()
        self.attempts += 1

        await self.cancel_all_orders()

        price = await self.price_feed.fetch()
        if not price.ok:
            logger.error("Price fetch failed: %s", price.reason)
            return False

        quote = compute_quote(price.price, self.config.edge)
        logger.info("Spot price: %s", quote.spot)
        logger.info("Placing bid (buy) order at: %s", quote.bid)
        logger.info("Placing ask (sell) order at: %s", quote.ask)
        if quote.bid <= 0:
            logger.warning("Bid %s is not positive (edge %s >= spot)", quote.bid, self.config.edge)

        try:
            bid_template, ask_template = build_order_templates(
                quote, self.config, int(self._clock())
            )
            ixs = [
                self.client.get_limit_order_instruction_from_template(
                    market, self.trader_pubkey, bid_template
                ),
                self.client.get_limit_order_instruction_from_template(
                    market, self.trader_pubkey, ask_template
                ),
            ]
            signature = await self.client.send_and_confirm(ixs, self.trader, label="place quotes")
        except Exception as e:
            logger.error("Placing quotes failed: %s", e)
            return False

        decimals = market.get_price_decimal_places()
        logger.info("Place quotes %.*f @ %.*f", decimals, quote.bid, decimals, quote.ask)
        logger.info("Tx link: %s", self.client.explorer_link(signature))

        self.counter += 1
        await self._sleep(self.config.refresh_interval)
        return True

    # ------------------------------------------------------------------
    # Unwind
    # ------------------------------------------------------------------

    async def unwind(self) -> bool:
        """Cancel all orders and withdraw all funds in one transaction.

        Failure is logged only. Returns True if the transaction confirmed.
        """
        market = self._require_market()
        try:
            ixs = [
                self.client.create_cancel_all_orders_instruction(market, self.trader_pubkey),
                self.client.create_withdraw_funds_instruction(
                    market,
                    self.trader_pubkey,
                    WithdrawParams(quote_lots_to_withdraw=None, base_lots_to_withdraw=None),
                ),
            ]
            signature = await self.client.send_and_confirm(ixs, self.trader, label="withdraw")
        except Exception as e:
            logger.error("Cancel and withdraw failed: %s", e)
            return False
        logger.info("Withdraw tx link: %s", self.client.explorer_link(signature))
        return True

    async def run(self) -> RunSummary:
        """Set up, quote until ``max_iterations`` placements succeed, then unwind."""
        await self.setup()

        while self.counter < self.config.max_iterations:
            await self.run_iteration()

        unwound = await self.unwind()
        summary = RunSummary(
            successful_iterations=self.counter,
            attempted_iterations=self.attempts,
            unwind_succeeded=unwound,
        )
        logger.info(
            "Finished: %d/%d iterations placed quotes, unwind %s",
            summary.successful_iterations,
            summary.attempted_iterations,
            "ok" if unwound else "failed",
        )
        return summary
