"""Tests for market header decoding and unit conversion."""

import pytest
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from phoenix_mm.constants import PHOENIX_PROGRAM_ID
from phoenix_mm.exceptions import MarketNotFoundError
from phoenix_mm.market import MarketState, decode_market_header, get_log_authority

from conftest import BASE_MINT, BASE_VAULT, QUOTE_MINT, QUOTE_VAULT, build_market_header

MARKET = Pubkey.from_string("4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg")


class TestDecodeMarketHeader:
    def test_fields(self):
        header = decode_market_header(build_market_header())
        assert header.status == 1
        assert header.num_seats == 128
        assert header.base_params.decimals == 9
        assert header.base_params.mint_key == BASE_MINT
        assert header.base_params.vault_key == BASE_VAULT
        assert header.base_lot_size == 1_000_000
        assert header.quote_params.decimals == 6
        assert header.quote_params.mint_key == QUOTE_MINT
        assert header.quote_params.vault_key == QUOTE_VAULT
        assert header.quote_lot_size == 1
        assert header.tick_size_in_quote_atoms_per_base_unit == 1_000
        assert header.market_sequence_number == 42
        assert header.raw_base_units_per_base_unit == 1

    def test_short_data(self):
        with pytest.raises(MarketNotFoundError, match="too short"):
            decode_market_header(b"\x00" * 100)

    def test_from_account_data_names_market(self):
        with pytest.raises(MarketNotFoundError) as exc_info:
            MarketState.from_account_data(MARKET, b"")
        assert exc_info.value.market == str(MARKET)


class TestConversions:
    def test_price_to_ticks(self, market_state):
        assert market_state.float_price_to_ticks(99.75) == 99_750
        assert market_state.float_price_to_ticks(100.75) == 100_750
        assert market_state.float_price_to_ticks(0.0004) == 0

    def test_ticks_to_price(self, market_state):
        assert market_state.ticks_to_float_price(99_750) == pytest.approx(99.75)

    def test_base_units_to_lots_rounds_down(self, market_state):
        assert market_state.raw_base_units_to_base_lots_rounded_down(1) == 1_000
        assert market_state.raw_base_units_to_base_lots_rounded_down(0.0015) == 1

    def test_price_decimal_places(self, market_state):
        assert market_state.get_price_decimal_places() == 3

    def test_coarse_tick_has_no_decimals(self):
        market = MarketState(MARKET, decode_market_header(build_market_header(tick_size=10_000_000)))
        assert market.get_price_decimal_places() == 0

    def test_raw_base_units_per_base_unit(self):
        # 1 base unit = 1000 raw units, so a raw-unit price needs 1000x the ticks
        market = MarketState(
            MARKET, decode_market_header(build_market_header(raw_base_units_per_base_unit=1000))
        )
        assert market.float_price_to_ticks(0.5) == 500_000
        assert market.get_price_decimal_places() == 6

    def test_legacy_zero_raw_units(self):
        market = MarketState(
            MARKET, decode_market_header(build_market_header(raw_base_units_per_base_unit=0))
        )
        assert market.raw_base_units_per_base_unit == 1


class TestAddresses:
    def test_seat_is_program_derived(self, market_state, trader):
        expected, _ = Pubkey.find_program_address(
            [b"seat", bytes(MARKET), bytes(trader.pubkey())], PHOENIX_PROGRAM_ID
        )
        assert market_state.get_seat_address(trader.pubkey()) == expected

    def test_trader_token_accounts(self, market_state, trader):
        base, quote = market_state.get_trader_token_accounts(trader.pubkey())
        assert base == get_associated_token_address(trader.pubkey(), BASE_MINT)
        assert quote == get_associated_token_address(trader.pubkey(), QUOTE_MINT)

    def test_log_authority_is_stable(self):
        assert get_log_authority() == get_log_authority()
