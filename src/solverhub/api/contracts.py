"""Request and response contracts for the HTTP API."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QuoteRequest(BaseModel):
    """Request for a swap quote."""

    from_token: str = Field(..., description="Source token symbol (ETH, SOL)")
    to_token: str = Field(..., description="Destination token symbol")
    amount: Decimal = Field(..., gt=0, description="Amount of from_token")


class QuoteResponse(BaseModel):
    from_token: str
    to_token: str
    from_amount: Decimal
    to_amount: Decimal
    exchange_rate: Decimal


class SwapRequest(QuoteRequest):
    """Request to execute a swap."""

    destination_address: str = Field(..., description="Recipient on the destination chain")


class PreparedTransactionResponse(BaseModel):
    chain: str
    raw_tx: str
    chain_params: dict[str, Any]


class SwapResponse(BaseModel):
    tx_hash: str = Field(..., description="Hash or signature of the payout transaction")
    swap_result: dict[str, Any]
    status: str
    stage: str
    tx_to_sign: Optional[PreparedTransactionResponse] = None
    destination_address: str
    settlement_reference: Optional[str] = None
    error: Optional[str] = None


class CamelModel(BaseModel):
    """Body with camelCase JSON keys, as sent by the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListNftRequest(CamelModel):
    name: str
    description: str = ""
    price: str
    chain_id: str = ""
    minter: str
    chain_minter: str = ""
    chain_owner: str = ""
    id: int
    token: str
    blob_hash: str


class ListNftForSaleRequest(CamelModel):
    owner: str
    chain_id: str
    token_id: str
    price: str
    nft_id: str
    chain_owner: str


class PublishBlobRequest(CamelModel):
    image_bytes: list[int] = Field(..., description="Raw bytes as integers 0-255")
    chain_id: str
