"""Swap orchestration.

Drives one request through quote -> prepare -> sign -> submit and
coordinates the NFT flows that span the solver backends, the marketplace
contract and the chains:
- Swaps: backend settlement plus a pool payout on the destination chain
- NFT transfers: optional on-chain sale, then the ownership mutation
- Listings: mint, marketplace listing, sale listing
"""

import logging
from decimal import Decimal
from typing import Any, Optional, Union

from solverhub.backend.nft import NftBackend
from solverhub.backend.schemas import NftListing, NftRecord, Pool, PoolBalance, SwapCalculation
from solverhub.backend.solver import SolverBackend
from solverhub.chains.base import Balance, ChainGateway
from solverhub.chains.factory import create_gateways
from solverhub.chains.solana import LAMPORTS_PER_SOL, SolanaGateway
from solverhub.config import Settings
from solverhub.errors import (
    PartialCoordinationFailure,
    PreconditionError,
    StageError,
    UnconfirmedTransaction,
    UnsupportedChain,
    ValidationError,
)
from solverhub.nft.marketplace import MarketplaceContract
from solverhub.notifications.events import StatusEvent
from solverhub.notifications.hub import NotificationHub
from solverhub.signing.keys import ChainKeys
from solverhub.swap.journal import CoordinationJournal
from solverhub.swap.models import (
    ChainKind,
    EthereumParams,
    PreparedTransaction,
    Quote,
    SwapStage,
    SwapState,
    TransferRequest,
    TransferResult,
    chain_for_token,
    parse_amount,
    token_for_chain,
)
from solverhub.swap.preparer import ETH_TRANSFER_GAS, TransactionPreparer
from solverhub.swap.quote import QuoteEngine
from solverhub.swap.signer import Signer, to_wei
from solverhub.swap.submitter import Submitter
from solverhub.swap.tracker import TransactionTracker, VisibilityPolicy, extract_deposit_amount

logger = logging.getLogger(__name__)

FAUCET_ETH = Decimal("1")
FAUCET_LAMPORTS = 2 * LAMPORTS_PER_SOL


class SwapOrchestrator:
    """Runs swap pipelines and NFT coordination flows.

    Every request gets its own SwapState; the orchestrator itself holds only
    immutable collaborators and the journal.
    """

    def __init__(
        self,
        solver: SolverBackend,
        nft: NftBackend,
        gateways: dict[ChainKind, ChainGateway],
        keys: ChainKeys,
        marketplace: MarketplaceContract,
        hub: NotificationHub,
        eth_chain_id: int = 1337,
        policy: Optional[VisibilityPolicy] = None,
        settlement_token: str = "ETH",
        journal: Optional[CoordinationJournal] = None,
    ):
        self.solver = solver
        self.nft = nft
        self.gateways = gateways
        self.keys = keys
        self.marketplace = marketplace
        self.hub = hub
        self.settlement_token = settlement_token.upper()
        self.journal = journal if journal is not None else CoordinationJournal()

        self.quote_engine = QuoteEngine(solver)
        self.preparer = TransactionPreparer(solver, gateways)
        self.signer = Signer(keys, eth_chain_id)
        self.submitter = Submitter(gateways)
        self.tracker = TransactionTracker(gateways, policy or VisibilityPolicy())

    # ------------------------------------------------------------------
    # Swap pipeline
    # ------------------------------------------------------------------

    async def get_quote(self, from_token: str, to_token: str, amount: Any) -> Quote:
        return await self.quote_engine.quote(from_token, to_token, amount)

    async def execute_swap(
        self,
        from_token: str,
        to_token: str,
        amount: Any,
        destination_address: str,
    ) -> SwapState:
        """Quote, settle with the solver, then pay out on the destination chain.

        Raises:
            StageError: a stage failed; `.state` is the failed SwapState
        """
        try:
            quote = await self.quote_engine.quote(from_token, to_token, amount)
        except Exception as e:
            logger.warning(f"Quote failed for {from_token}->{to_token}: {e}")
            raise StageError(SwapStage.QUOTED.value, e) from e

        state = SwapState(quote=quote, destination_address=destination_address)

        try:
            state.chain = chain_for_token(quote.to_token)
            state.settlement_reference = await self.solver.swap(
                quote.from_token, quote.to_token, quote.from_amount, destination_address
            )
        except Exception as e:
            self._fail(state, SwapStage.QUOTED, e)

        await self.prepare(state)
        await self.sign(state)
        await self.submit(state)

        logger.info(
            f"Swap submitted: {quote.from_amount} {quote.from_token} -> "
            f"{quote.to_amount} {quote.to_token}, tx {state.tx_hash}"
        )
        return state

    def _fail(self, state: SwapState, stage: SwapStage, error: Exception) -> None:
        state.fail(stage, error)
        logger.error(f"Swap failed at {stage.value}: {error}")
        raise StageError(stage.value, error, state) from error

    @staticmethod
    def _require(state: SwapState, stage: SwapStage, message: str) -> None:
        if state.stage != stage:
            raise PreconditionError(f"{message} (swap is {state.stage.value})")

    async def prepare(self, state: SwapState) -> SwapState:
        self._require(state, SwapStage.QUOTED, "prepare requires a quoted swap")
        try:
            chain = state.chain or chain_for_token(state.quote.to_token)
            state.chain = chain
            state.prepared = await self.preparer.prepare(
                chain, state.quote, state.destination_address
            )
        except Exception as e:
            self._fail(state, SwapStage.PREPARED, e)
        state.advance(SwapStage.PREPARED)
        return state

    async def sign(self, state: SwapState) -> SwapState:
        self._require(state, SwapStage.PREPARED, "sign requires a prepared transaction")
        if state.prepared is None or state.prepared.params is None:
            raise PreconditionError("no transaction prepared for signing")
        try:
            self.signer.sign(state.prepared)
        except Exception as e:
            self._fail(state, SwapStage.SIGNED, e)
        state.advance(SwapStage.SIGNED)
        return state

    async def submit(self, state: SwapState) -> SwapState:
        self._require(state, SwapStage.SIGNED, "submit requires a signed transaction")
        if state.prepared is None or not state.prepared.is_signed:
            raise PreconditionError("no signed transaction available")
        try:
            state.tx_hash = await self.submitter.submit(state.prepared)
        except Exception as e:
            self._fail(state, SwapStage.SUBMITTED, e)
        state.advance(SwapStage.SUBMITTED)
        return state

    async def confirm(self, state: SwapState) -> SwapState:
        """Wait for the submitted transaction to become visible."""
        self._require(state, SwapStage.SUBMITTED, "confirm requires a submitted swap")
        try:
            await self.tracker.wait_for_transaction(state.chain, state.tx_hash)
        except Exception as e:
            self._fail(state, SwapStage.CONFIRMED, e)
        state.advance(SwapStage.CONFIRMED)
        return state

    # ------------------------------------------------------------------
    # NFT coordination
    # ------------------------------------------------------------------

    async def execute_transfer(self, request: TransferRequest) -> TransferResult:
        """Buy (when settling in the settlement token) and transfer an NFT.

        Publishes initiated, pending and completed events in that order; a
        failure aborts before `completed` is published.

        Raises:
            StageError: a step failed before anything took effect
            PartialCoordinationFailure: the sale executed, or was broadcast without
                a receipt, and the transfer did not follow
        """
        entry = self.journal.begin(
            "nft_transfer",
            token_id=request.token_id,
            nft_id=request.nft_id,
            target_owner=request.target_owner,
        )
        await self.hub.publish(StatusEvent.transfer_initiated())

        sale_tx_hash = ""
        try:
            nft = await self.nft.nft_using_blob_hash(request.nft_id or request.blob_hash)
            if request.to_token.upper() == self.settlement_token:
                sale_tx_hash = await self._execute_sale(nft, request.amount)
                self.journal.record(entry, "sale_executed", sale_tx_hash=sale_tx_hash)
        except UnconfirmedTransaction as e:
            # the sale was broadcast and may still be mined
            self.journal.record(entry, "sale_broadcast", sale_tx_hash=e.tx_hash)
            self.journal.flag(entry, e)
            raise PartialCoordinationFailure(
                f"sale {e}",
                completed_steps=list(entry.steps),
                sale_tx_hash=e.tx_hash,
                journal_id=entry.id,
            ) from e
        except Exception as e:
            self.journal.fail(entry, e)
            logger.error(f"NFT transfer {request.token_id} aborted: {e}")
            raise StageError("sale", e) from e

        await self.hub.publish(StatusEvent.transfer_pending())

        try:
            data = await self.nft.transfer(
                source_owner=request.source_owner,
                token_id=request.token_id,
                target_chain_id=request.target_chain_id,
                target_owner=request.target_owner,
                chain_owner=request.chain_owner,
                buy_from_token=request.buy_from_token,
                to_token=request.to_token,
                amount=format(request.amount, "f"),
            )
        except Exception as e:
            if sale_tx_hash:
                self.journal.flag(entry, e)
                raise PartialCoordinationFailure(
                    f"sale {sale_tx_hash} executed but transfer failed: {e}",
                    completed_steps=list(entry.steps),
                    sale_tx_hash=sale_tx_hash,
                    journal_id=entry.id,
                ) from e
            self.journal.fail(entry, e)
            logger.error(f"NFT transfer {request.token_id} aborted: {e}")
            raise StageError("transfer", e) from e

        self.journal.record(entry, "transfer_completed")
        self.journal.complete(entry)
        await self.hub.publish(StatusEvent.transfer_completed())

        logger.info(f"NFT {request.token_id} transferred to {request.target_owner}")
        return TransferResult(transfer_data=data, sale_tx_hash=sale_tx_hash, journal_id=entry.id)

    async def _execute_sale(self, nft: NftRecord, requested: Decimal) -> str:
        """Buy the NFT, paying the lower of the requested and listed price."""
        listed = parse_amount(nft.price, allow_zero=True)
        value = to_wei(min(Decimal(requested), listed))
        logger.info(f"Executing sale of NFT {nft.id} for {value} wei")
        return await self.marketplace.execute_sale(nft.id, value)

    async def process_inbound_transaction(
        self,
        chain: Union[str, ChainKind],
        tx_hash: str,
        to_token: str = "",
        destination_address: str = "",
        source_owner: str = "",
        token_id: str = "",
        target_chain_id: str = "",
        target_owner: str = "",
        blob_hash: str = "",
        nft_id: str = "",
    ) -> dict:
        """Settle an NFT purchase paid by a user deposit.

        Looks up the deposit, prices the deposited amount in `to_token` and
        transfers the NFT for the calculated amount. Without a destination
        token and address only the deposit is reported.
        """
        chain = ChainKind.parse(chain) if isinstance(chain, str) else chain
        tx = await self.tracker.wait_for_transaction(chain, tx_hash)
        response: dict[str, Any] = {"status": "success", "chain": chain.value, "data": tx}

        if not to_token or not destination_address:
            return response

        from_token = token_for_chain(chain)
        amount = extract_deposit_amount(chain, tx)
        calc: SwapCalculation = await self.solver.calculate_swap(
            from_token, to_token, parse_amount(amount)
        )

        result = await self.execute_transfer(
            TransferRequest(
                source_owner=source_owner,
                token_id=token_id,
                target_chain_id=target_chain_id,
                target_owner=target_owner,
                chain_owner=destination_address,
                buy_from_token=from_token,
                to_token=to_token,
                amount=calc.to_amount,
                blob_hash=blob_hash,
                nft_id=nft_id,
            )
        )
        response["transfer_result"] = result.transfer_data
        response["swap_calculation"] = calc.model_dump(mode="json")
        response["txhash"] = result.sale_tx_hash
        return response

    async def list_nft(self, listing: NftListing) -> str:
        """Mint a listed NFT and return its blob hash."""
        await self.nft.mint(listing)
        return listing.blob_hash

    async def publish_data_blob(self, chain_id: str, payload: bytes) -> str:
        if not payload:
            raise ValidationError("data blob is empty")
        return await self.nft.publish_data_blob(chain_id, payload)

    async def list_nft_for_sale(
        self,
        owner: str,
        chain_id: str,
        token_id: str,
        price: Any,
        nft_id: Any,
        chain_owner: str,
    ) -> dict:
        """List on the marketplace contract, then mark for sale on the NFT backend."""
        price_value = parse_amount(price)
        try:
            contract_id = int(str(nft_id))
        except ValueError:
            raise ValidationError(f"invalid nft id: {nft_id!r}")

        entry = self.journal.begin("nft_listing", token_id=token_id, nft_id=contract_id)
        try:
            tx_hash = await self.marketplace.list_token(contract_id, to_wei(price_value))
        except UnconfirmedTransaction as e:
            self.journal.record(entry, "listing_broadcast", tx_hash=e.tx_hash)
            self.journal.flag(entry, e)
            raise PartialCoordinationFailure(
                f"listing {e}",
                completed_steps=list(entry.steps),
                sale_tx_hash=e.tx_hash,
                journal_id=entry.id,
            ) from e
        except Exception as e:
            self.journal.fail(entry, e)
            raise
        self.journal.record(entry, "token_listed", tx_hash=tx_hash)

        try:
            data = await self.nft.list_nft_for_sale(token_id, chain_owner)
        except Exception as e:
            self.journal.flag(entry, e)
            raise PartialCoordinationFailure(
                f"token listed in {tx_hash} but sale listing failed: {e}",
                completed_steps=list(entry.steps),
                sale_tx_hash=tx_hash,
                journal_id=entry.id,
            ) from e
        self.journal.complete(entry)

        await self.hub.publish(StatusEvent.nft_listed(token_id, str(price), owner))
        logger.info(f"NFT {token_id} listed on {chain_id} by {owner} for {price}")
        return {"lineraData": data, "ethereumTx": tx_hash}

    def pending_reconciliation(self) -> list[dict]:
        """Journal entries flagged for manual reconciliation."""
        return [entry.to_dict() for entry in self.journal.pending_reconciliation()]

    async def get_all_nfts(self) -> dict[str, NftRecord]:
        return await self.nft.nfts()

    async def next_nft_id(self) -> dict:
        current, following = await self.marketplace.next_token_id()
        return {"currentId": current, "nextId": following}

    # ------------------------------------------------------------------
    # Chain utilities
    # ------------------------------------------------------------------

    def _gateway(self, chain: Union[str, ChainKind]) -> ChainGateway:
        chain = ChainKind.parse(chain) if isinstance(chain, str) else chain
        gateway = self.gateways.get(chain)
        if gateway is None:
            raise UnsupportedChain(chain.value)
        return gateway

    async def get_balance(self, chain: Union[str, ChainKind], address: str) -> Balance:
        return await self._gateway(chain).get_balance(address)

    async def get_pools(self) -> list[Pool]:
        return await self.solver.get_all_pools()

    async def get_pool_balances(self) -> list[PoolBalance]:
        return await self.solver.get_all_pool_balances()

    async def request_faucet(self, chain: Union[str, ChainKind], address: str) -> dict:
        """Fund an address on a development network.

        Ethereum sends 1 ETH from the configured key; Solana requests a
        2 SOL airdrop from the cluster.
        """
        gateway = self._gateway(chain)

        if isinstance(gateway, SolanaGateway):
            signature = await gateway.request_airdrop(address, FAUCET_LAMPORTS)
            return {"address": address, "amount": "2 SOL", "signature": signature}

        if not gateway.validate_address(address):
            raise ValidationError(f"invalid ethereum address: {address!r}")
        account = self.keys.require_ethereum()
        fees = await gateway.get_fee_params(account.address)
        prepared = PreparedTransaction(
            chain=ChainKind.ETHEREUM,
            params=EthereumParams(
                from_address=account.address,
                to_address=address,
                amount=FAUCET_ETH,
                gas_price=fees.gas_price,
                gas_limit=ETH_TRANSFER_GAS,
                nonce=fees.nonce,
            ),
        )
        self.signer.sign(prepared)
        tx_hash = await self.submitter.submit(prepared)
        return {"address": address, "amount": "1 ETH", "txHash": tx_hash}

    async def close(self) -> None:
        for gateway in self.gateways.values():
            await gateway.close()


def create_orchestrator(settings: Settings, hub: NotificationHub) -> SwapOrchestrator:
    """Wire an orchestrator from settings."""
    keys = ChainKeys.from_settings(settings)
    return SwapOrchestrator(
        solver=SolverBackend(settings.solver_url, timeout=settings.http_timeout),
        nft=NftBackend(
            settings.non_fungible_url, settings.linera_url, timeout=settings.http_timeout
        ),
        gateways=create_gateways(settings),
        keys=keys,
        marketplace=MarketplaceContract(
            settings.eth_rpc_url, settings.nft_address, settings.eth_chain_id, keys
        ),
        hub=hub,
        eth_chain_id=settings.eth_chain_id,
        policy=VisibilityPolicy.from_settings(settings),
        settlement_token=settings.settlement_token,
    )
