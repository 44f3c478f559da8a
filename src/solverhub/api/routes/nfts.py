"""NFT listing and marketplace endpoints."""

from fastapi import APIRouter, Depends

from solverhub.api.contracts import ListNftForSaleRequest, ListNftRequest, PublishBlobRequest
from solverhub.api.deps import get_orchestrator
from solverhub.backend.schemas import NftListing
from solverhub.errors import ValidationError
from solverhub.swap.executor import SwapOrchestrator

router = APIRouter()


@router.post("/list_nft")
async def list_nft(
    request: ListNftRequest,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Mint an NFT from a published blob."""
    listing = NftListing.model_validate(request.model_dump())
    blob_hash = await orchestrator.list_nft(listing)
    return {"blobHash": blob_hash}


@router.post("/list_nft_for_sale")
async def list_nft_for_sale(
    request: ListNftForSaleRequest,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    return await orchestrator.list_nft_for_sale(
        owner=request.owner,
        chain_id=request.chain_id,
        token_id=request.token_id,
        price=request.price,
        nft_id=request.nft_id,
        chain_owner=request.chain_owner,
    )


@router.get("/nfts")
async def get_nfts(orchestrator: SwapOrchestrator = Depends(get_orchestrator)) -> dict:
    nfts = await orchestrator.get_all_nfts()
    return {
        token_id: nft.model_dump(by_alias=True)
        for token_id, nft in nfts.items()
    }


@router.post("/publish_image")
async def publish_image(
    request: PublishBlobRequest,
    orchestrator: SwapOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Publish image bytes as a data blob."""
    try:
        payload = bytes(request.image_bytes)
    except ValueError:
        raise ValidationError("imageBytes values must be in range 0-255")
    blob_hash = await orchestrator.publish_data_blob(request.chain_id, payload)
    return {"blobHash": blob_hash}


@router.get("/next_nft_id")
async def next_nft_id(orchestrator: SwapOrchestrator = Depends(get_orchestrator)) -> dict:
    return await orchestrator.next_nft_id()
