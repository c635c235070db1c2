"""
Phoenix client for building and submitting order book transactions.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from solana.rpc.async_api import AsyncClient
from solana.rpc.models import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.instructions import create_associated_token_account

from phoenix_mm import instructions
from phoenix_mm.config import ClusterConfig
from phoenix_mm.exceptions import MarketNotFoundError, TransactionError
from phoenix_mm.market import MarketState
from phoenix_mm.types import LimitOrderTemplate, WithdrawParams

logger = logging.getLogger(__name__)


class PhoenixClient:
    """Client for one Solana cluster and the Phoenix markets on it.

    Markets are loaded once with :meth:`load_market` and cached by address;
    instruction builders take the cached :class:`MarketState` so no RPC round
    trip happens while an order is being constructed.
    """

    def __init__(
        self,
        cluster: ClusterConfig,
        commitment: str = "confirmed",
        skip_preflight: bool = True,
        timeout: float = 10.0,
        connection: Optional[AsyncClient] = None,
    ) -> None:
        """Initialize the Phoenix client.

        Args:
            cluster: The cluster to talk to.
            commitment: Commitment level used for reads and confirmations.
            skip_preflight: Whether to skip the RPC node's simulation step.
            timeout: RPC request timeout in seconds.
            connection: Optional pre-built RPC connection (tests inject one).
        """
        self._cluster = cluster
        self._commitment = commitment
        self._skip_preflight = skip_preflight
        self._connection = connection or AsyncClient(
            cluster.rpc_url, commitment=commitment, timeout=timeout
        )
        self.market_states: Dict[str, MarketState] = {}

    async def close(self) -> None:
        """Close the RPC connection."""
        await self._connection.close()

    async def __aenter__(self) -> "PhoenixClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def cluster(self) -> ClusterConfig:
        return self._cluster

    @property
    def commitment(self) -> str:
        return self._commitment

    def explorer_link(self, signature: str) -> str:
        return self._cluster.explorer_link(signature)

    # =========================================================================
    # Market State
    # =========================================================================

    async def load_market(self, market_address: str) -> MarketState:
        """Fetch and decode a market, caching the result.

        Args:
            market_address: Base58 market address.

        Returns:
            The market state.

        Raises:
            MarketNotFoundError: If the account does not exist or is not a market.
        """
        cached = self.market_states.get(market_address)
        if cached is not None:
            return cached

        address = Pubkey.from_string(market_address)
        response = await self._connection.get_account_info(address, commitment=self._commitment)
        account = response.value
        if account is None:
            raise MarketNotFoundError("Market data not found", market=market_address)

        market = MarketState.from_account_data(address, bytes(account.data))
        self.market_states[market_address] = market
        logger.info(
            "Loaded market %s (base decimals=%d, quote decimals=%d, price decimals=%d)",
            market_address,
            market.header.base_params.decimals,
            market.header.quote_params.decimals,
            market.get_price_decimal_places(),
        )
        return market

    async def get_maker_setup_instructions(
        self, market: MarketState, trader: Pubkey
    ) -> List[Instruction]:
        """Instructions a trader needs before quoting on a market.

        Creates the base and quote associated token accounts and claims a seat,
        skipping whatever already exists.

        Args:
            market: The market to quote on.
            trader: The trader's public key.

        Returns:
            Setup instructions, empty if the trader is ready.
        """
        base_account, quote_account = market.get_trader_token_accounts(trader)
        seat = market.get_seat_address(trader)

        response = await self._connection.get_multiple_accounts(
            [base_account, quote_account, seat], commitment=self._commitment
        )
        base_info, quote_info, seat_info = response.value

        setup: List[Instruction] = []
        if base_info is None:
            logger.info("Base token account %s missing, will create", base_account)
            setup.append(create_associated_token_account(trader, trader, market.base_mint))
        if quote_info is None:
            logger.info("Quote token account %s missing, will create", quote_account)
            setup.append(create_associated_token_account(trader, trader, market.quote_mint))
        if seat_info is None:
            logger.info("Seat %s missing, will claim", seat)
            setup.append(instructions.claim_seat(market, trader))
        return setup

    # =========================================================================
    # Instruction Construction
    # =========================================================================

    def create_cancel_all_orders_instruction(
        self, market: MarketState, trader: Pubkey
    ) -> Instruction:
        return instructions.cancel_all_orders(market, trader)

    def get_limit_order_instruction_from_template(
        self, market: MarketState, trader: Pubkey, template: LimitOrderTemplate
    ) -> Instruction:
        """Convert a human-unit order template into a place-limit-order instruction.

        Args:
            market: The market to place on.
            trader: The trader's public key.
            template: Order side, float price, size in base units and flags.

        Returns:
            The place-limit-order instruction.

        Raises:
            ValueError: If the price or size rounds to a value the program cannot encode.
        """
        price_in_ticks = market.float_price_to_ticks(template.price_as_float)
        num_base_lots = market.raw_base_units_to_base_lots_rounded_down(
            template.size_in_base_units
        )
        order_packet = instructions.encode_limit_order_packet(
            side=template.side,
            price_in_ticks=price_in_ticks,
            num_base_lots=num_base_lots,
            self_trade_behavior=template.self_trade_behavior,
            match_limit=template.match_limit,
            client_order_id=template.client_order_id,
            use_only_deposited_funds=template.use_only_deposited_funds,
            last_valid_slot=template.last_valid_slot,
            last_valid_unix_timestamp_in_seconds=template.last_valid_unix_timestamp_in_seconds,
            fail_silently_on_insufficient_funds=template.fail_silently_on_insufficient_funds,
        )
        return instructions.place_limit_order(
            market, trader, order_packet, template.use_only_deposited_funds
        )

    def create_withdraw_funds_instruction(
        self,
        market: MarketState,
        trader: Pubkey,
        params: Optional[WithdrawParams] = None,
    ) -> Instruction:
        return instructions.withdraw_funds(market, trader, params or WithdrawParams())

    # =========================================================================
    # Transaction Submission
    # =========================================================================

    async def send_and_confirm(
        self,
        ixs: Sequence[Instruction],
        signer: Keypair,
        label: str = "transaction",
    ) -> str:
        """Sign, submit and confirm a transaction.

        Args:
            ixs: Instructions to include, in order.
            signer: Fee payer and sole signer.
            label: Short name used in logs and errors.

        Returns:
            The transaction signature (base58).

        Raises:
            TransactionError: If submission or confirmation fails.
        """
        try:
            blockhash_resp = await self._connection.get_latest_blockhash(
                commitment=self._commitment
            )
            blockhash = blockhash_resp.value.blockhash
            last_valid_block_height = blockhash_resp.value.last_valid_block_height

            message = Message.new_with_blockhash(list(ixs), signer.pubkey(), blockhash)
            tx = Transaction([signer], message, blockhash)

            opts = TxOpts(
                skip_preflight=self._skip_preflight,
                preflight_commitment=self._commitment,
            )
            send_resp = await self._connection.send_transaction(tx, opts=opts)
            signature = send_resp.value
        except Exception as e:
            raise TransactionError(f"Failed to submit: {e}", label=label) from e

        try:
            confirm_resp = await self._connection.confirm_transaction(
                signature,
                commitment=self._commitment,
                last_valid_block_height=last_valid_block_height,
            )
        except Exception as e:
            raise TransactionError(
                f"Failed to confirm: {e}", label=label, signature=str(signature)
            ) from e

        statuses = confirm_resp.value
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise TransactionError(
                f"Transaction failed: {status.err}", label=label, signature=str(signature)
            )

        logger.debug("%s confirmed: %s", label, signature)
        return str(signature)
