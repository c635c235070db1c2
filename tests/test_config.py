"""Tests for run configuration and keypair loading."""

import json

import pytest
from solders.keypair import Keypair

from phoenix_mm.config import BotConfig, get_cluster_config, load_keypair
from phoenix_mm.exceptions import ConfigurationError
from phoenix_mm.types import SelfTradeBehavior


class TestLoadKeypair:
    def test_from_argument(self, trader, private_key_json):
        assert load_keypair(private_key_json).pubkey() == trader.pubkey()

    def test_from_env(self, monkeypatch, trader, private_key_json):
        monkeypatch.setenv("PRIVATE_KEY", private_key_json)
        assert load_keypair().pubkey() == trader.pubkey()

    def test_missing(self, monkeypatch):
        monkeypatch.delenv("PRIVATE_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="Missing PRIVATE_KEY"):
            load_keypair()

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"key": [1, 2, 3]}',
            "[1, 2, 3]",
            json.dumps([256] * 64),
            json.dumps(["a"] * 64),
        ],
    )
    def test_malformed(self, raw):
        with pytest.raises(ConfigurationError, match="Error parsing PRIVATE_KEY"):
            load_keypair(raw)


class TestClusterConfig:
    def test_devnet(self):
        cluster = get_cluster_config("devnet")
        assert cluster.rpc_url == "https://api.devnet.solana.com"
        assert cluster.explorer_link("abc") == "https://beta.solscan.io/tx/abc?cluster=devnet"

    def test_mainnet_link_has_no_cluster_param(self):
        cluster = get_cluster_config("mainnet-beta")
        assert cluster.explorer_link("abc") == "https://beta.solscan.io/tx/abc"

    def test_rpc_override(self):
        assert get_cluster_config("devnet", "http://localhost:8899").rpc_url == "http://localhost:8899"

    def test_unknown_cluster(self):
        with pytest.raises(ConfigurationError, match="Unsupported cluster"):
            get_cluster_config("testnet-2")


class TestBotConfig:
    def test_defaults(self):
        config = BotConfig()
        assert config.market_address == "4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg"
        assert config.max_iterations == 1000
        assert config.refresh_freq_ms == 2000
        assert config.refresh_interval == 2.0
        assert config.order_lifetime_seconds == 7
        assert config.edge == 0.5
        assert config.size_in_base_units == 1
        assert config.client_order_id == 1
        assert config.self_trade_behavior == SelfTradeBehavior.ABORT
        assert config.skip_preflight is True
        assert config.commitment == "confirmed"
        assert config.cluster_config.name == "devnet"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("max_iterations", 0),
            ("refresh_freq_ms", -1),
            ("edge", 0),
            ("order_lifetime_seconds", 0),
            ("size_in_base_units", -2),
        ],
    )
    def test_rejects_non_positive(self, field, value):
        with pytest.raises(ValueError, match=field):
            BotConfig(**{field: value})

    def test_rejects_negative_client_order_id(self):
        with pytest.raises(ValueError, match="client_order_id"):
            BotConfig(client_order_id=-1)

    def test_client_order_id_zero_allowed(self):
        assert BotConfig(client_order_id=0).client_order_id == 0

    def test_negative_client_order_id_from_env(self, monkeypatch):
        monkeypatch.setenv("PHOENIX_CLIENT_ORDER_ID", "-1")
        with pytest.raises(ValueError, match="client_order_id"):
            BotConfig.from_env()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PHOENIX_EDGE", "0.25")
        monkeypatch.setenv("PHOENIX_MAX_ITERATIONS", "10")
        monkeypatch.setenv("PHOENIX_SKIP_PREFLIGHT", "false")
        monkeypatch.setenv("PHOENIX_SELF_TRADE_BEHAVIOR", "cancel_provide")
        monkeypatch.setenv("PHOENIX_CLUSTER", "mainnet-beta")

        config = BotConfig.from_env()

        assert config.edge == 0.25
        assert config.max_iterations == 10
        assert config.skip_preflight is False
        assert config.self_trade_behavior == SelfTradeBehavior.CANCEL_PROVIDE
        assert config.cluster_config.rpc_url == "https://api.mainnet-beta.solana.com"

    def test_overrides_beat_env(self, monkeypatch):
        monkeypatch.setenv("PHOENIX_EDGE", "0.25")
        config = BotConfig.from_env(edge=1.5, max_iterations=None)
        assert config.edge == 1.5
        assert config.max_iterations == 1000

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("PHOENIX_MAX_ITERATIONS", "lots")
        with pytest.raises(ConfigurationError, match="PHOENIX_MAX_ITERATIONS"):
            BotConfig.from_env()
