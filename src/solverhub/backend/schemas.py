"""Typed response schemas for the GraphQL backends."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BackendModel(BaseModel):
    """Base model accepting camelCase wire names and snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class GraphQLError(BackendModel):
    message: str


class GraphQLEnvelope(BackendModel):
    """Outer `{data, errors?}` envelope of every GraphQL response."""

    data: Optional[object] = None
    errors: list[GraphQLError] = Field(default_factory=list)


class SwapCalculation(BackendModel):
    """calculateSwap result."""

    from_token: str
    to_token: str
    from_amount: Decimal
    to_amount: Decimal
    exchange_rate: Decimal = Decimal("0")


class Pool(BackendModel):
    """Custodial address used as the source of funds on a chain."""

    chain_name: str
    pool_address: str


class PoolBalance(BackendModel):
    pool_address: str
    balance: Decimal


class SolverFile(BackendModel):
    """getFileSolverApp result."""

    solver_file_id: str = ""
    owner: str = ""
    name: str = ""
    payload: list[int] = Field(default_factory=list)


class BackendTransaction(BackendModel):
    """Ethereum transaction as recorded by the solver backend."""

    hash: str
    block_hash: Optional[str] = None
    block_number: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    value: Optional[str] = None
    gas_price: Optional[str] = None
    gas: Optional[str] = None
    nonce: Optional[str] = None
    input: Optional[str] = None
    transaction_index: Optional[str] = None
    v: Optional[str] = None
    r: Optional[str] = None
    s: Optional[str] = None


class NftRecord(BackendModel):
    """NFT as stored by the non-fungible backend."""

    id: int = 0
    token_id: str = ""
    owner: str = ""
    name: str = ""
    minter: str = ""
    payload: list[int] = Field(default_factory=list)
    token: str = ""
    price: str = "0"
    chain_minter: str = ""
    chain_owner: str = ""
    description: str = ""
    blob_hash: str = ""
    status: str = ""


class NftListing(BackendModel):
    """Parameters for minting a listed NFT."""

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
