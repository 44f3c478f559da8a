"""Tests for the swap pipeline stages and their ordering."""

from decimal import Decimal

import base58
import pytest
from eth_utils import keccak
from solders.transaction import Transaction

from solverhub.errors import (
    MalformedAddress,
    PoolNotFound,
    PreconditionError,
    StageError,
    SubmissionRejected,
    TransactionNotFound,
)
from solverhub.swap.models import (
    ChainKind,
    EthereumParams,
    Quote,
    SolanaParams,
    SwapStage,
    SwapState,
    SwapStatus,
)

from conftest import ETH_DESTINATION


def quoted_state(destination: str = ETH_DESTINATION) -> SwapState:
    quote = Quote(
        from_token="SOL",
        to_token="ETH",
        from_amount=Decimal("10"),
        to_amount=Decimal("1.5"),
        exchange_rate=Decimal("0.15"),
    )
    return SwapState(quote=quote, destination_address=destination)


class TestExecuteSwap:
    """Tests for the full quote -> prepare -> sign -> submit run."""

    @pytest.mark.asyncio
    async def test_sol_to_eth(self, orchestrator, eth_account, eth_node, solver_service):
        """Test a swap paid out from the Ethereum pool."""
        state = await orchestrator.execute_swap("SOL", "ETH", "10", ETH_DESTINATION)

        assert state.status == SwapStatus.SUBMITTED
        assert state.history == [
            SwapStage.RECEIVED,
            SwapStage.QUOTED,
            SwapStage.PREPARED,
            SwapStage.SIGNED,
            SwapStage.SUBMITTED,
        ]
        assert state.chain == ChainKind.ETHEREUM
        assert state.settlement_reference == "settlement-hash"

        params = state.prepared.params
        assert isinstance(params, EthereumParams)
        assert params.from_address == eth_account.address
        assert params.to_address == ETH_DESTINATION
        assert params.amount == Decimal("1.5")
        assert params.nonce == 5
        assert params.gas_price == 1_000_000_000
        assert params.gas_limit == 21000

        raw = bytes.fromhex(state.prepared.raw_tx[2:])
        assert state.tx_hash == "0x" + keccak(raw).hex()
        assert eth_node.called("eth_getTransactionCount") == [[eth_account.address, "pending"]]
        assert len(solver_service.sent("mutation { swap(")) == 1

    @pytest.mark.asyncio
    async def test_eth_to_sol(self, orchestrator, solver_service, sol_keypair, sol_destination):
        """Test a swap paid out in lamports from the Solana pool."""
        solver_service.responses["calculateSwap"] = {
            "data": {
                "calculateSwap": {
                    "fromToken": "ETH",
                    "toToken": "SOL",
                    "fromAmount": 1,
                    "toAmount": 1000,
                    "exchangeRate": 1000,
                }
            }
        }

        state = await orchestrator.execute_swap("ETH", "SOL", "1", sol_destination)

        assert state.chain == ChainKind.SOLANA
        params = state.prepared.params
        assert isinstance(params, SolanaParams)
        assert params.from_address == str(sol_keypair.pubkey())
        assert params.lamports == 1000

        tx = Transaction.from_bytes(base58.b58decode(state.prepared.raw_tx))
        assert state.tx_hash == str(tx.signatures[0])

    @pytest.mark.asyncio
    async def test_quote_failure_has_no_state(self, orchestrator):
        """Test that a rejected quote fails before any state exists."""
        with pytest.raises(StageError) as exc_info:
            await orchestrator.execute_swap("SOL", "ETH", "0", ETH_DESTINATION)

        assert exc_info.value.stage == "quoted"
        assert exc_info.value.state is None

    @pytest.mark.asyncio
    async def test_missing_pool(self, orchestrator, solver_service):
        """Test PoolNotFound surfaces with the state failed at prepare."""
        solver_service.responses["getAllPools"] = {"data": {"getAllPools": []}}

        with pytest.raises(StageError) as exc_info:
            await orchestrator.execute_swap("SOL", "ETH", "10", ETH_DESTINATION)

        error = exc_info.value
        assert isinstance(error.cause, PoolNotFound)
        assert str(error) == "pool not found for chain: ethereum"
        assert error.state.status == SwapStatus.FAILED
        assert error.state.failed_stage == SwapStage.PREPARED
        assert error.state.prepared is None

    @pytest.mark.asyncio
    async def test_bad_destination(self, orchestrator, solver_service):
        """Test that an invalid destination fails prepare without reaching the pools."""
        with pytest.raises(StageError) as exc_info:
            await orchestrator.execute_swap("SOL", "ETH", "10", "not-an-address")

        assert isinstance(exc_info.value.cause, MalformedAddress)
        assert solver_service.sent("getAllPools") == []

    @pytest.mark.asyncio
    async def test_node_rejection(self, orchestrator, eth_node):
        """Test that a node refusal fails the submit stage."""
        eth_node.methods["eth_sendRawTransaction"] = lambda params: {
            "jsonrpc": "2.0", "id": 1, "error": {"message": "insufficient funds"},
        }

        with pytest.raises(StageError) as exc_info:
            await orchestrator.execute_swap("SOL", "ETH", "10", ETH_DESTINATION)

        error = exc_info.value
        assert isinstance(error.cause, SubmissionRejected)
        assert error.state.failed_stage == SwapStage.SUBMITTED
        assert error.state.tx_hash is None
        assert error.state.prepared.is_signed


class TestStageOrdering:
    """Tests that stages cannot run out of order."""

    @pytest.mark.asyncio
    async def test_sign_before_prepare(self, orchestrator):
        """Test that signing a quoted swap is rejected and leaves it untouched."""
        state = quoted_state()

        with pytest.raises(PreconditionError):
            await orchestrator.sign(state)

        assert state.stage == SwapStage.QUOTED
        assert state.status == SwapStatus.PENDING
        assert state.error is None

    @pytest.mark.asyncio
    async def test_submit_before_sign(self, orchestrator):
        """Test that submitting a prepared swap is rejected."""
        state = quoted_state()
        await orchestrator.prepare(state)

        with pytest.raises(PreconditionError):
            await orchestrator.submit(state)

        assert state.stage == SwapStage.PREPARED
        assert not state.prepared.is_signed

    @pytest.mark.asyncio
    async def test_prepare_twice(self, orchestrator):
        """Test that a stage cannot be repeated."""
        state = quoted_state()
        await orchestrator.prepare(state)

        with pytest.raises(PreconditionError):
            await orchestrator.prepare(state)

    def test_advance_skipping_stage(self):
        """Test that the state machine refuses to skip a stage."""
        state = quoted_state()

        with pytest.raises(PreconditionError):
            state.advance(SwapStage.SIGNED)

    def test_failed_state_is_terminal(self):
        """Test that a failed swap cannot advance."""
        state = quoted_state()
        state.fail(SwapStage.PREPARED, RuntimeError("boom"))

        assert state.is_terminal
        with pytest.raises(PreconditionError):
            state.advance(SwapStage.PREPARED)


class TestConfirm:
    """Tests for waiting on a submitted swap."""

    @pytest.mark.asyncio
    async def test_confirm_visible(self, orchestrator, eth_node):
        """Test that a visible transaction confirms the swap."""
        eth_node.methods["eth_getTransactionByHash"] = {"hash": "0x1", "value": "0x0"}
        state = await orchestrator.execute_swap("SOL", "ETH", "10", ETH_DESTINATION)

        await orchestrator.confirm(state)

        assert state.status == SwapStatus.CONFIRMED
        assert state.stage == SwapStage.CONFIRMED

    @pytest.mark.asyncio
    async def test_confirm_not_visible(self, orchestrator, eth_node):
        """Test TransactionNotFound after the configured attempts."""
        eth_node.methods["eth_getTransactionByHash"] = None
        state = await orchestrator.execute_swap("SOL", "ETH", "10", ETH_DESTINATION)

        with pytest.raises(StageError) as exc_info:
            await orchestrator.confirm(state)

        assert isinstance(exc_info.value.cause, TransactionNotFound)
        assert len(eth_node.called("eth_getTransactionByHash")) == 3
        assert state.failed_stage == SwapStage.CONFIRMED


class TestSwapStateSerialization:
    """Tests for the swap response shape."""

    @pytest.mark.asyncio
    async def test_to_dict(self, orchestrator):
        """Test the reported fields of a submitted swap."""
        state = await orchestrator.execute_swap("SOL", "ETH", "10", ETH_DESTINATION)

        data = state.to_dict()

        assert data["status"] == "submitted"
        assert data["tx_hash"] == state.tx_hash
        assert data["swap_result"]["to_amount"] == "1.5"
        assert data["tx_to_sign"]["chain"] == "ethereum"
        assert data["tx_to_sign"]["chain_params"]["nonce"] == 5
        assert data["destination_address"] == ETH_DESTINATION


class TestModels:
    """Tests for model invariants."""

    def test_params_must_match_chain(self):
        """Test that Ethereum parameters cannot back a Solana transaction."""
        from solverhub.errors import ValidationError
        from solverhub.swap.models import PreparedTransaction

        params = EthereumParams(
            from_address="0x1", to_address="0x2", amount=Decimal(1),
            gas_price=1, gas_limit=21000, nonce=0,
        )

        with pytest.raises(ValidationError):
            PreparedTransaction(chain=ChainKind.SOLANA, params=params)

    def test_token_chain_mapping(self):
        """Test token symbols resolve to their settlement chain."""
        from solverhub.errors import UnsupportedChain
        from solverhub.swap.models import chain_for_token, token_for_chain

        assert chain_for_token("eth") == ChainKind.ETHEREUM
        assert chain_for_token("SOL") == ChainKind.SOLANA
        assert token_for_chain("solana") == "SOL"
        with pytest.raises(UnsupportedChain):
            chain_for_token("BTC")

    def test_parse_amount_zero(self):
        """Test that zero is only accepted when explicitly allowed."""
        from solverhub.errors import InvalidAmount
        from solverhub.swap.models import parse_amount

        assert parse_amount("0", allow_zero=True) == Decimal(0)
        with pytest.raises(InvalidAmount):
            parse_amount("0")
        with pytest.raises(InvalidAmount):
            parse_amount("-1", allow_zero=True)
