"""Pytest fixtures for phoenix-mm tests."""

import json
import struct
from typing import Any, Dict, List, Optional

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from phoenix_mm.config import BotConfig
from phoenix_mm.exceptions import MarketNotFoundError, TransactionError
from phoenix_mm.market import MarketState
from phoenix_mm.types import PriceResult


# Devnet SOL/USDC market
TEST_MARKET_ADDRESS = "4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg"
TEST_PRICE_URL = "https://api.coinbase.com/v2/prices/SOL-USD/spot"
TEST_NOW = 1_700_000_000

BASE_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")
QUOTE_MINT = Pubkey.from_string("4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU")
BASE_VAULT = Pubkey.new_unique()
QUOTE_VAULT = Pubkey.new_unique()


def build_market_header(
    base_decimals: int = 9,
    base_lot_size: int = 1_000_000,
    quote_decimals: int = 6,
    quote_lot_size: int = 1,
    tick_size: int = 1_000,
    raw_base_units_per_base_unit: int = 1,
    num_seats: int = 128,
) -> bytes:
    """Serialize a market header the way the Phoenix program lays it out."""
    authority = bytes(Pubkey.new_unique())
    header = struct.pack(
        "<5Q II32s32s Q II32s32s 2Q 32s32s Q 32s II",
        8167313896524341111,  # discriminant
        1,  # status: active
        4096,
        4096,
        num_seats,
        base_decimals,
        255,
        bytes(BASE_MINT),
        bytes(BASE_VAULT),
        base_lot_size,
        quote_decimals,
        254,
        bytes(QUOTE_MINT),
        bytes(QUOTE_VAULT),
        quote_lot_size,
        tick_size,
        authority,
        authority,
        42,
        bytes(Pubkey.default()),
        raw_base_units_per_base_unit,
        0,
    )
    return header + b"\x00" * 256


@pytest.fixture
def market_address() -> str:
    """Test market address."""
    return TEST_MARKET_ADDRESS


@pytest.fixture
def market_data() -> bytes:
    """Raw market account data: header plus a stub of book space."""
    return build_market_header() + b"\x00" * 1024


@pytest.fixture
def market_state(market_address, market_data) -> MarketState:
    """Decoded SOL/USDC test market."""
    return MarketState.from_account_data(Pubkey.from_string(market_address), market_data)


@pytest.fixture
def trader() -> Keypair:
    """Fresh trader keypair (never funded)."""
    return Keypair()


@pytest.fixture
def private_key_json(trader) -> str:
    """The trader secret key as a JSON byte array, as stored in .env."""
    return json.dumps(list(bytes(trader)))


@pytest.fixture
def config() -> BotConfig:
    """Short run with the default edge, size and lifetime."""
    return BotConfig(max_iterations=1)


# =============================================================================
# Fakes for the loop tests
# =============================================================================


class FakePhoenixClient:
    """Records every call the market maker makes against the exchange.

    ``failures`` maps a transaction label to the outcomes of successive
    submissions with that label: True means the submission raises.
    """

    def __init__(
        self,
        market: Optional[MarketState],
        setup_instructions: Optional[List[Any]] = None,
        failures: Optional[Dict[str, List[bool]]] = None,
    ) -> None:
        self.market = market
        self.setup_instructions = setup_instructions or []
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.events: List[str] = []
        self.sent: List[Dict[str, Any]] = []
        self.templates: List[Any] = []
        self.setup_requests = 0

    async def load_market(self, market_address: str) -> MarketState:
        self.events.append("load_market")
        if self.market is None:
            raise MarketNotFoundError("Market data not found", market=market_address)
        return self.market

    async def get_maker_setup_instructions(self, market, trader) -> List[Any]:
        self.events.append("setup_request")
        self.setup_requests += 1
        return list(self.setup_instructions)

    def create_cancel_all_orders_instruction(self, market, trader):
        return ("cancel_all", str(trader))

    def get_limit_order_instruction_from_template(self, market, trader, template):
        self.templates.append(template)
        return ("limit_order", template)

    def create_withdraw_funds_instruction(self, market, trader, params=None):
        return ("withdraw", params)

    async def send_and_confirm(self, ixs, signer, label="transaction") -> str:
        self.events.append(label)
        self.sent.append({"label": label, "ixs": list(ixs), "signer": signer})
        outcomes = self.failures.get(label)
        if outcomes and outcomes.pop(0):
            raise TransactionError("simulated failure", label=label)
        return f"sig{len(self.sent)}"

    def explorer_link(self, signature: str) -> str:
        return f"https://beta.solscan.io/tx/{signature}?cluster=devnet"

    def labels(self) -> List[str]:
        return [s["label"] for s in self.sent]


class FakePriceFeed:
    """Returns scripted results, repeating the last one when exhausted."""

    def __init__(self, results: List[PriceResult]) -> None:
        self.results = list(results)
        self.calls = 0

    async def fetch(self) -> PriceResult:
        self.calls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_client_factory(market_state):
    def factory(**kwargs) -> FakePhoenixClient:
        kwargs.setdefault("market", market_state)
        return FakePhoenixClient(**kwargs)

    return factory


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def price_feed_factory():
    def factory(*results: PriceResult) -> FakePriceFeed:
        return FakePriceFeed(list(results))

    return factory
