"""Swap, deposit and chain utility endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from solverhub.api.contracts import QuoteRequest, QuoteResponse, SwapRequest, SwapResponse
from solverhub.api.deps import get_orchestrator
from solverhub.swap.executor import SwapOrchestrator

router = APIRouter()


@router.post("/quote", response_model=QuoteResponse)
async def get_quote(
    request: QuoteRequest,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> QuoteResponse:
    """Get a swap quote. Read-only."""
    quote = await orchestrator.get_quote(request.from_token, request.to_token, request.amount)
    return QuoteResponse(
        from_token=quote.from_token,
        to_token=quote.to_token,
        from_amount=quote.from_amount,
        to_amount=quote.to_amount,
        exchange_rate=quote.exchange_rate,
    )


@router.post("/swap", response_model=SwapResponse)
async def execute_swap(
    request: SwapRequest,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> SwapResponse:
    """Quote, settle and pay out a swap.

    Returns once the payout is submitted; it is not waited on.
    """
    state = await orchestrator.execute_swap(
        request.from_token,
        request.to_token,
        request.amount,
        request.destination_address,
    )
    return SwapResponse(**state.to_dict())


@router.post("/post_tx_hash")
async def post_tx_hash(
    tx_hash: str = Query(..., alias="txHash"),
    chain: str = Query(...),
    to_token: str = Query("", alias="toToken"),
    destination_address: str = Query("", alias="destinationAddress"),
    source_owner: str = Query("", alias="sourceOwner"),
    token_id: str = Query("", alias="tokenId"),
    blob_hash: str = Query("", alias="blobHash"),
    target_chain_id: str = Query("", alias="targetChainId"),
    target_owner: str = Query("", alias="targetOwner"),
    nft_id: str = Query("", alias="nftId"),
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Report a user deposit, optionally settling an NFT purchase with it."""
    return await orchestrator.process_inbound_transaction(
        chain,
        tx_hash,
        to_token=to_token,
        destination_address=destination_address,
        source_owner=source_owner,
        token_id=token_id,
        target_chain_id=target_chain_id,
        target_owner=target_owner,
        blob_hash=blob_hash,
        nft_id=nft_id,
    )


@router.get("/pools")
async def get_pools(
    balances: Optional[bool] = False,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """List pools, with balances when requested."""
    pools = await orchestrator.get_pools()
    response = {"pools": [pool.model_dump(by_alias=True) for pool in pools]}
    if balances:
        response["balances"] = [
            balance.model_dump(mode="json") for balance in await orchestrator.get_pool_balances()
        ]
    return response


@router.get("/balance/{chain}/{address}")
async def get_balance(
    chain: str,
    address: str,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    balance = await orchestrator.get_balance(chain, address)
    return balance.to_dict()


@router.post("/faucet/{chain}/{address}")
async def request_faucet(
    chain: str,
    address: str,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Fund an address on a development network."""
    return await orchestrator.request_faucet(chain, address)
