"""
Data types and models for the Phoenix market maker.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from solders.pubkey import Pubkey


class Side(IntEnum):
    """Order side: BID or ASK."""

    BID = 0
    ASK = 1


class SelfTradeBehavior(IntEnum):
    """What the matching engine does when an order would cross the trader's own order."""

    ABORT = 0
    CANCEL_PROVIDE = 1
    DECREMENT_TAKE = 2


@dataclass(frozen=True)
class Quote:
    """A bid/ask pair derived from one spot price."""

    spot: float
    bid: float
    ask: float

    @property
    def spread(self) -> float:
        return self.ask - self.bid


@dataclass
class LimitOrderTemplate:
    """Human-unit description of a limit order, converted to lots and ticks at build time."""

    side: Side
    price_as_float: float
    size_in_base_units: float
    self_trade_behavior: SelfTradeBehavior
    client_order_id: int
    use_only_deposited_funds: bool
    last_valid_slot: Optional[int] = None
    last_valid_unix_timestamp_in_seconds: Optional[int] = None
    match_limit: Optional[int] = None
    fail_silently_on_insufficient_funds: bool = False

    def __post_init__(self) -> None:
        """Validate the template."""
        if self.size_in_base_units <= 0:
            raise ValueError(f"Size must be positive, got {self.size_in_base_units}")
        if self.client_order_id < 0:
            raise ValueError(f"Client order id must be non-negative, got {self.client_order_id}")


@dataclass(frozen=True)
class WithdrawParams:
    """Lots to withdraw from the trader's seat. None withdraws everything."""

    quote_lots_to_withdraw: Optional[int] = None
    base_lots_to_withdraw: Optional[int] = None


@dataclass(frozen=True)
class PriceResult:
    """Outcome of a spot price fetch: a price, or the reason there is none."""

    price: Optional[float] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.price is not None

    @classmethod
    def success(cls, price: float) -> "PriceResult":
        return cls(price=price)

    @classmethod
    def failure(cls, reason: str) -> "PriceResult":
        return cls(reason=reason)


@dataclass(frozen=True)
class TokenParams:
    """Per-token parameters stored in the market header."""

    decimals: int
    vault_bump: int
    mint_key: Pubkey
    vault_key: Pubkey


@dataclass(frozen=True)
class MarketHeader:
    """Decoded fixed-size header of a Phoenix market account."""

    discriminant: int
    status: int
    bids_size: int
    asks_size: int
    num_seats: int
    base_params: TokenParams
    base_lot_size: int
    quote_params: TokenParams
    quote_lot_size: int
    tick_size_in_quote_atoms_per_base_unit: int
    authority: Pubkey
    fee_recipient: Pubkey
    market_sequence_number: int
    successor: Pubkey
    raw_base_units_per_base_unit: int


@dataclass
class RunSummary:
    """Counters reported after the quoting loop finishes."""

    successful_iterations: int = 0
    attempted_iterations: int = 0
    unwind_succeeded: bool = False
