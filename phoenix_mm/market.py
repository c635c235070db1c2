"""
Phoenix market state: header decoding, account derivation and unit conversion.

Phoenix stores prices in ticks and sizes in lots. A "base unit" may bundle
several raw base units (``raw_base_units_per_base_unit``); human-facing prices
in this package are always quote units per raw base unit, e.g. USDC per SOL.
"""

import math
import struct
from decimal import Decimal
from typing import Tuple

from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from phoenix_mm.constants import (
    MARKET_HEADER_SIZE,
    PHOENIX_PROGRAM_ID,
    SEAT_MANAGER_PROGRAM_ID,
)
from phoenix_mm.exceptions import MarketNotFoundError
from phoenix_mm.types import MarketHeader, TokenParams

# Fields up to and including raw_base_units_per_base_unit; the rest is padding.
_HEADER_LAYOUT = struct.Struct("<5Q II32s32s Q II32s32s 2Q 32s32s Q 32s II")


def decode_market_header(data: bytes) -> MarketHeader:
    """Decode the fixed-size header at the start of a market account.

    Args:
        data: Raw account data.

    Returns:
        The decoded header.

    Raises:
        MarketNotFoundError: If the data is too short to hold a header.
    """
    if len(data) < MARKET_HEADER_SIZE:
        raise MarketNotFoundError(
            f"Market account data too short: {len(data)} < {MARKET_HEADER_SIZE} bytes"
        )

    (
        discriminant,
        status,
        bids_size,
        asks_size,
        num_seats,
        base_decimals,
        base_vault_bump,
        base_mint,
        base_vault,
        base_lot_size,
        quote_decimals,
        quote_vault_bump,
        quote_mint,
        quote_vault,
        quote_lot_size,
        tick_size,
        authority,
        fee_recipient,
        sequence_number,
        successor,
        raw_base_units_per_base_unit,
        _padding,
    ) = _HEADER_LAYOUT.unpack_from(data, 0)

    return MarketHeader(
        discriminant=discriminant,
        status=status,
        bids_size=bids_size,
        asks_size=asks_size,
        num_seats=num_seats,
        base_params=TokenParams(
            decimals=base_decimals,
            vault_bump=base_vault_bump,
            mint_key=Pubkey.from_bytes(base_mint),
            vault_key=Pubkey.from_bytes(base_vault),
        ),
        base_lot_size=base_lot_size,
        quote_params=TokenParams(
            decimals=quote_decimals,
            vault_bump=quote_vault_bump,
            mint_key=Pubkey.from_bytes(quote_mint),
            vault_key=Pubkey.from_bytes(quote_vault),
        ),
        quote_lot_size=quote_lot_size,
        tick_size_in_quote_atoms_per_base_unit=tick_size,
        authority=Pubkey.from_bytes(authority),
        fee_recipient=Pubkey.from_bytes(fee_recipient),
        market_sequence_number=sequence_number,
        successor=Pubkey.from_bytes(successor),
        raw_base_units_per_base_unit=raw_base_units_per_base_unit,
    )


def get_log_authority() -> Pubkey:
    """PDA that Phoenix uses to sign its self-CPI event logs."""
    address, _ = Pubkey.find_program_address([b"log"], PHOENIX_PROGRAM_ID)
    return address


def get_seat_address(market: Pubkey, trader: Pubkey) -> Pubkey:
    """PDA of the trader's seat on a market."""
    address, _ = Pubkey.find_program_address(
        [b"seat", bytes(market), bytes(trader)], PHOENIX_PROGRAM_ID
    )
    return address


def get_seat_manager_address(market: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address([bytes(market)], SEAT_MANAGER_PROGRAM_ID)
    return address


def get_seat_deposit_collector_address(market: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address(
        [bytes(market), b"deposit"], SEAT_MANAGER_PROGRAM_ID
    )
    return address


class MarketState:
    """A Phoenix market resolved from its on-chain header."""

    def __init__(self, address: Pubkey, header: MarketHeader) -> None:
        """Initialize the market state.

        Args:
            address: The market account address.
            header: The decoded market header.
        """
        self._address = address
        self._header = header

    @classmethod
    def from_account_data(cls, address: Pubkey, data: bytes) -> "MarketState":
        """Build a market state from raw account data.

        Raises:
            MarketNotFoundError: If the header cannot be decoded.
        """
        try:
            header = decode_market_header(data)
        except MarketNotFoundError as e:
            raise MarketNotFoundError(e.message, market=str(address)) from e
        return cls(address, header)

    @property
    def address(self) -> Pubkey:
        return self._address

    @property
    def header(self) -> MarketHeader:
        return self._header

    @property
    def base_mint(self) -> Pubkey:
        return self._header.base_params.mint_key

    @property
    def quote_mint(self) -> Pubkey:
        return self._header.quote_params.mint_key

    @property
    def base_vault(self) -> Pubkey:
        return self._header.base_params.vault_key

    @property
    def quote_vault(self) -> Pubkey:
        return self._header.quote_params.vault_key

    @property
    def raw_base_units_per_base_unit(self) -> int:
        # Markets created before the field existed store 0
        return max(self._header.raw_base_units_per_base_unit, 1)

    # -------------------------------------------------------------------------
    # Trader accounts
    # -------------------------------------------------------------------------

    def get_seat_address(self, trader: Pubkey) -> Pubkey:
        return get_seat_address(self._address, trader)

    def get_trader_token_accounts(self, trader: Pubkey) -> Tuple[Pubkey, Pubkey]:
        """Associated token accounts (base, quote) of the trader for this market."""
        return (
            get_associated_token_address(trader, self.base_mint),
            get_associated_token_address(trader, self.quote_mint),
        )

    # -------------------------------------------------------------------------
    # Unit conversion
    # -------------------------------------------------------------------------

    def float_price_to_ticks(self, price: float) -> int:
        """Convert a price in quote units per raw base unit to ticks, rounding to nearest."""
        quote_atoms_per_base_unit = (
            price * 10 ** self._header.quote_params.decimals * self.raw_base_units_per_base_unit
        )
        return round(quote_atoms_per_base_unit / self._header.tick_size_in_quote_atoms_per_base_unit)

    def ticks_to_float_price(self, ticks: int) -> float:
        return (
            ticks
            * self._header.tick_size_in_quote_atoms_per_base_unit
            / (10 ** self._header.quote_params.decimals * self.raw_base_units_per_base_unit)
        )

    def raw_base_units_to_base_lots_rounded_down(self, raw_base_units: float) -> int:
        """Convert a size in raw base units (e.g. SOL) to base lots, rounding down."""
        base_atoms = raw_base_units * 10 ** self._header.base_params.decimals
        return math.floor(base_atoms / self._header.base_lot_size)

    def get_price_decimal_places(self) -> int:
        """Number of decimal places needed to display a price at tick precision."""
        tick = Decimal(self._header.tick_size_in_quote_atoms_per_base_unit) / (
            Decimal(10) ** self._header.quote_params.decimals * self.raw_base_units_per_base_unit
        )
        exponent = tick.normalize().as_tuple().exponent
        return max(0, -int(exponent))

    def __repr__(self) -> str:
        return f"MarketState(address={self._address})"
