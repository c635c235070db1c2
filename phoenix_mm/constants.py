"""
Constants for the Phoenix market maker.
"""

from solders.pubkey import Pubkey

# Phoenix on-chain programs (same address on every cluster)
PHOENIX_PROGRAM_ID = Pubkey.from_string("PhoeNiXZ8ByJGLkxNfZRnkUfjvmuYqLR89jjFHGqdXY")
SEAT_MANAGER_PROGRAM_ID = Pubkey.from_string("PSMxQbAoDWDbvd9ezQJgARyq6R9L5kJAasaLDVcZwf1")

# Cluster RPC endpoints
RPC_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}

DEFAULT_CLUSTER = "devnet"

# Block explorer (transaction links)
EXPLORER_TX_URL = "https://beta.solscan.io/tx/{signature}"

# SOL/USDC market on devnet
DEFAULT_MARKET_ADDRESS = "4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg"

# Coinbase spot price for the base asset
DEFAULT_PRICE_FEED_URL = "https://api.coinbase.com/v2/prices/SOL-USD/spot"

# Quoting defaults
DEFAULT_REFRESH_FREQ_MS = 2000
DEFAULT_MAX_ITERATIONS = 1000
DEFAULT_ORDER_LIFETIME_SECONDS = 7
DEFAULT_EDGE = 0.5
DEFAULT_SIZE_IN_BASE_UNITS = 1.0
DEFAULT_CLIENT_ORDER_ID = 1

# Env var holding the trader secret key as a JSON byte array
PRIVATE_KEY_ENV = "PRIVATE_KEY"

# Phoenix instruction tags (first byte of instruction data)
PHOENIX_INSTRUCTIONS = {
    "place_limit_order": 2,
    "place_limit_order_with_free_funds": 3,
    "cancel_all_orders": 6,
    "withdraw_funds": 12,
}

# Seat manager instruction tags
SEAT_MANAGER_INSTRUCTIONS = {
    "claim_seat": 1,
}

# Order packet variants (borsh enum index)
ORDER_PACKET_LIMIT = 1

# MarketHeader is a fixed 576-byte prefix of every market account
MARKET_HEADER_SIZE = 576
