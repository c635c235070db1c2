"""
Instruction builders for the Phoenix and Phoenix seat manager programs.

Instruction data is a one-byte tag followed by the borsh encoding of the
instruction parameters.
"""

import struct
from typing import List, Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import TOKEN_PROGRAM_ID

from phoenix_mm.constants import (
    ORDER_PACKET_LIMIT,
    PHOENIX_INSTRUCTIONS,
    PHOENIX_PROGRAM_ID,
    SEAT_MANAGER_INSTRUCTIONS,
    SEAT_MANAGER_PROGRAM_ID,
)
from phoenix_mm.market import (
    MarketState,
    get_log_authority,
    get_seat_deposit_collector_address,
    get_seat_manager_address,
)
from phoenix_mm.types import Side, SelfTradeBehavior, WithdrawParams

# =============================================================================
# Borsh encoding
# =============================================================================


def encode_u8(value: int) -> bytes:
    return struct.pack("<B", value)


def encode_u64(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"u64 must be non-negative, got {value}")
    return struct.pack("<Q", value)


def encode_u128(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"u128 must be non-negative, got {value}")
    return value.to_bytes(16, "little")


def encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def encode_option_u64(value: Optional[int]) -> bytes:
    if value is None:
        return b"\x00"
    return b"\x01" + encode_u64(value)


def encode_limit_order_packet(
    side: Side,
    price_in_ticks: int,
    num_base_lots: int,
    self_trade_behavior: SelfTradeBehavior,
    match_limit: Optional[int],
    client_order_id: int,
    use_only_deposited_funds: bool,
    last_valid_slot: Optional[int],
    last_valid_unix_timestamp_in_seconds: Optional[int],
    fail_silently_on_insufficient_funds: bool,
) -> bytes:
    """Encode an ``OrderPacket::Limit``."""
    return b"".join(
        [
            encode_u8(ORDER_PACKET_LIMIT),
            encode_u8(int(side)),
            encode_u64(price_in_ticks),
            encode_u64(num_base_lots),
            encode_u8(int(self_trade_behavior)),
            encode_option_u64(match_limit),
            encode_u128(client_order_id),
            encode_bool(use_only_deposited_funds),
            encode_option_u64(last_valid_slot),
            encode_option_u64(last_valid_unix_timestamp_in_seconds),
            encode_bool(fail_silently_on_insufficient_funds),
        ]
    )


def encode_withdraw_params(params: WithdrawParams) -> bytes:
    return encode_option_u64(params.quote_lots_to_withdraw) + encode_option_u64(
        params.base_lots_to_withdraw
    )


# =============================================================================
# Account lists
# =============================================================================


def _market_prefix(market: MarketState, trader: Pubkey) -> List[AccountMeta]:
    return [
        AccountMeta(PHOENIX_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(get_log_authority(), is_signer=False, is_writable=False),
        AccountMeta(market.address, is_signer=False, is_writable=True),
        AccountMeta(trader, is_signer=True, is_writable=False),
    ]


def _funds_accounts(market: MarketState, trader: Pubkey) -> List[AccountMeta]:
    base_account, quote_account = market.get_trader_token_accounts(trader)
    return [
        AccountMeta(base_account, is_signer=False, is_writable=True),
        AccountMeta(quote_account, is_signer=False, is_writable=True),
        AccountMeta(market.base_vault, is_signer=False, is_writable=True),
        AccountMeta(market.quote_vault, is_signer=False, is_writable=True),
        AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]


# =============================================================================
# Phoenix instructions
# =============================================================================


def cancel_all_orders(market: MarketState, trader: Pubkey) -> Instruction:
    """Cancel every resting order of the trader, returning funds to the trader's wallet."""
    accounts = _market_prefix(market, trader) + _funds_accounts(market, trader)
    data = encode_u8(PHOENIX_INSTRUCTIONS["cancel_all_orders"])
    return Instruction(PHOENIX_PROGRAM_ID, data, accounts)


def place_limit_order(
    market: MarketState,
    trader: Pubkey,
    order_packet: bytes,
    use_only_deposited_funds: bool,
) -> Instruction:
    """Place a limit order from an encoded order packet.

    Orders funded only from deposited (seat) balances use the free-funds
    variant, which needs the seat but no token accounts.
    """
    accounts = _market_prefix(market, trader)
    accounts.append(
        AccountMeta(market.get_seat_address(trader), is_signer=False, is_writable=False)
    )
    if use_only_deposited_funds:
        tag = PHOENIX_INSTRUCTIONS["place_limit_order_with_free_funds"]
    else:
        tag = PHOENIX_INSTRUCTIONS["place_limit_order"]
        accounts.extend(_funds_accounts(market, trader))
    return Instruction(PHOENIX_PROGRAM_ID, encode_u8(tag) + order_packet, accounts)


def withdraw_funds(
    market: MarketState, trader: Pubkey, params: WithdrawParams
) -> Instruction:
    """Withdraw deposited funds from the market back to the trader's token accounts."""
    accounts = _market_prefix(market, trader) + _funds_accounts(market, trader)
    data = encode_u8(PHOENIX_INSTRUCTIONS["withdraw_funds"]) + encode_withdraw_params(params)
    return Instruction(PHOENIX_PROGRAM_ID, data, accounts)


# =============================================================================
# Seat manager instructions
# =============================================================================


def claim_seat(market: MarketState, trader: Pubkey) -> Instruction:
    """Claim a seat on the market through the seat manager (trader pays rent)."""
    accounts = [
        AccountMeta(PHOENIX_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(get_log_authority(), is_signer=False, is_writable=False),
        AccountMeta(market.address, is_signer=False, is_writable=True),
        AccountMeta(get_seat_manager_address(market.address), is_signer=False, is_writable=True),
        AccountMeta(
            get_seat_deposit_collector_address(market.address),
            is_signer=False,
            is_writable=True,
        ),
        AccountMeta(trader, is_signer=True, is_writable=False),
        AccountMeta(trader, is_signer=True, is_writable=True),
        AccountMeta(market.get_seat_address(trader), is_signer=False, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    data = encode_u8(SEAT_MANAGER_INSTRUCTIONS["claim_seat"])
    return Instruction(SEAT_MANAGER_PROGRAM_ID, data, accounts)
