"""
Quote computation and order templates.
"""

from typing import Tuple

from phoenix_mm.config import BotConfig
from phoenix_mm.types import LimitOrderTemplate, Quote, Side


def compute_quote(spot: float, edge: float) -> Quote:
    """Symmetric quote around the spot price.

    No rounding and no floor: with ``edge >= spot`` the bid is non-positive
    and is passed on as is.
    """
    return Quote(spot=spot, bid=spot - edge, ask=spot + edge)


def build_order_templates(
    quote: Quote, config: BotConfig, now: int
) -> Tuple[LimitOrderTemplate, LimitOrderTemplate]:
    """Bid and ask templates for one quote, both expiring at ``now + lifetime``.

    Both sides carry ``config.client_order_id``; the ids are not unique per order.
    """
    expiry = int(now) + config.order_lifetime_seconds

    def template(side: Side, price: float) -> LimitOrderTemplate:
        return LimitOrderTemplate(
            side=side,
            price_as_float=price,
            size_in_base_units=config.size_in_base_units,
            self_trade_behavior=config.self_trade_behavior,
            client_order_id=config.client_order_id,
            use_only_deposited_funds=config.use_only_deposited_funds,
            last_valid_slot=None,
            last_valid_unix_timestamp_in_seconds=expiry,
        )

    return template(Side.BID, quote.bid), template(Side.ASK, quote.ask)
