"""Non-fungible backend and Linera node client."""

import logging
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from solverhub.backend.base import GraphQLClient, gql_int_list, gql_string, mutation_result
from solverhub.backend.schemas import NftListing, NftRecord
from solverhub.errors import DecodeError

logger = logging.getLogger(__name__)

_nft_map_adapter = TypeAdapter(dict[str, NftRecord])

_NFT_FIELDS = (
    "id tokenId owner name minter payload token price "
    "chainMinter chainOwner description blobHash status"
)


class NftBackend:
    """Client for the non-fungible GraphQL service.

    Data blobs are published through the Linera node service, which lives
    at a separate URL.
    """

    def __init__(
        self,
        url: str,
        linera_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = GraphQLClient(url, "nft", timeout=timeout, transport=transport)
        self.node = GraphQLClient(linera_url, "linera", timeout=timeout, transport=transport)

    async def nft_using_blob_hash(self, blob_hash: str) -> NftRecord:
        query = (
            f"query {{ nftUsingBlobHash(id: {gql_string(blob_hash)}) "
            f"{{ {_NFT_FIELDS} }} }}"
        )
        return await self.client.query_field(query, "nftUsingBlobHash", NftRecord)

    async def nfts(self) -> dict[str, NftRecord]:
        """Get every NFT keyed by token id."""
        data = await self.client.execute(f"query {{ nfts {{ {_NFT_FIELDS} }} }}")
        raw = (data or {}).get("nfts") or {}
        if isinstance(raw, list):
            raw = {item.get("tokenId", str(i)): item for i, item in enumerate(raw)}
        try:
            return _nft_map_adapter.validate_python(raw)
        except SchemaError as e:
            raise DecodeError(f"invalid nft list: {e}") from e

    async def transfer(
        self,
        source_owner: str,
        token_id: str,
        target_chain_id: str,
        target_owner: str,
        chain_owner: str,
        buy_from_token: str,
        to_token: str,
        amount: Any,
    ) -> Any:
        """Move NFT ownership to the target account."""
        query = (
            "mutation { transfer("
            f"sourceOwner: {gql_string(source_owner)}, "
            f"tokenId: {gql_string(token_id)}, "
            "targetAccount: {"
            f"chainId: {gql_string(target_chain_id)}, "
            f"owner: {gql_string(target_owner)}"
            "}, "
            f"chainOwner: {gql_string(chain_owner)}, "
            f"buyFromToken: {gql_string(buy_from_token)}, "
            f"toToken: {gql_string(to_token)}, "
            f"amount: {gql_string(amount)}"
            ") }"
        )
        data = await self.client.execute(query)
        logger.info(f"NFT {token_id} transferred to {target_owner}@{target_chain_id}")
        return mutation_result(data, "transfer")

    async def list_nft_for_sale(self, token_id: str, chain_owner: str) -> Any:
        query = (
            "mutation { listNftForSale("
            f"tokenId: {gql_string(token_id)}, "
            f"chainOwner: {gql_string(chain_owner)}"
            ") }"
        )
        return mutation_result(await self.client.execute(query), "listNftForSale")

    async def mint(self, listing: NftListing) -> Any:
        query = (
            "mutation { mint("
            f"minter: {gql_string(listing.minter)}, "
            f"name: {gql_string(listing.name)}, "
            f"description: {gql_string(listing.description)}, "
            f"price: {gql_string(listing.price)}, "
            f"chainMinter: {gql_string(listing.chain_minter)}, "
            f"chainOwner: {gql_string(listing.chain_owner)}, "
            f"id: {int(listing.id)}, "
            f"token: {gql_string(listing.token)}, "
            f"blobHash: {gql_string(listing.blob_hash)}"
            ") }"
        )
        data = await self.client.execute(query)
        logger.info(f"Minted NFT {listing.name} ({listing.blob_hash})")
        return mutation_result(data, "mint")

    async def publish_data_blob(self, chain_id: str, payload: bytes) -> str:
        """Publish raw bytes on a chain and return the blob hash."""
        query = (
            "mutation { publishDataBlob("
            f"chainId: {gql_string(chain_id)}, "
            f"bytes: {gql_int_list(payload)}"
            ") }"
        )
        data = await self.node.execute(query)
        result = mutation_result(data, "publishDataBlob")
        if not isinstance(result, str):
            raise DecodeError("publishDataBlob did not return a blob hash")
        return result
