"""Universal solver backend: pricing, pools and settlement mutations."""

import logging
from decimal import Decimal
from typing import Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from solverhub.backend.base import GraphQLClient, gql_number, gql_string, mutation_result
from solverhub.backend.schemas import (
    BackendTransaction,
    Pool,
    PoolBalance,
    SolverFile,
    SwapCalculation,
)
from solverhub.errors import DecodeError, PoolNotFound, QuoteRejected

logger = logging.getLogger(__name__)

_pools_adapter = TypeAdapter(list[Pool])
_balances_adapter = TypeAdapter(list[PoolBalance])


class SolverBackend:
    """Client for the universal solver GraphQL service."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = GraphQLClient(url, "solver", timeout=timeout, transport=transport)

    async def calculate_swap(
        self, from_token: str, to_token: str, amount: Decimal
    ) -> SwapCalculation:
        """Price `amount` of `from_token` in `to_token`.

        Backend error lists surface as QuoteRejected.
        """
        query = (
            "query { calculateSwap("
            f"fromToken: {gql_string(from_token)}, "
            f"toToken: {gql_string(to_token)}, "
            f"amount: {gql_number(amount)}"
            ") { fromToken toToken fromAmount toAmount exchangeRate } }"
        )
        return await self.client.query_field(
            query, "calculateSwap", SwapCalculation, error_class=QuoteRejected
        )

    async def swap(
        self,
        from_token: str,
        to_token: str,
        amount: Decimal,
        destination_address: str,
    ) -> str:
        """Record the swap with the solver and return its settlement reference."""
        query = (
            "mutation { swap("
            f"fromToken: {gql_string(from_token)}, "
            f"toToken: {gql_string(to_token)}, "
            f"amount: {gql_string(format(amount, 'f'))}, "
            f"destinationAddress: {gql_string(destination_address)}"
            ") }"
        )
        data = await self.client.execute(query)
        result = mutation_result(data, "swap")
        logger.info(f"Solver swap recorded: {from_token} -> {to_token} ({result})")
        return "" if result is None else str(result)

    async def get_all_pools(self) -> list[Pool]:
        data = await self.client.execute("query { getAllPools { chainName poolAddress } }")
        try:
            return _pools_adapter.validate_python((data or {}).get("getAllPools") or [])
        except SchemaError as e:
            raise DecodeError(f"invalid pool list: {e}") from e

    async def get_all_pool_balances(self) -> list[PoolBalance]:
        data = await self.client.execute(
            "query { getAllPoolBalances { poolAddress balance } }"
        )
        try:
            return _balances_adapter.validate_python(
                (data or {}).get("getAllPoolBalances") or []
            )
        except SchemaError as e:
            raise DecodeError(f"invalid pool balance list: {e}") from e

    async def get_pool(self, chain_name: str) -> str:
        """Get the pool address registered for a chain.

        Raises:
            PoolNotFound: if no pool has a matching chain name
        """
        for pool in await self.get_all_pools():
            if pool.chain_name == chain_name:
                return pool.pool_address
        raise PoolNotFound(chain_name)

    async def get_file(self, file_id: str) -> SolverFile:
        query = (
            f"query {{ getFileSolverApp(solverFileId: {gql_string(file_id)}) "
            "{ solverFileId owner name payload } }"
        )
        return await self.client.query_field(query, "getFileSolverApp", SolverFile)

    async def get_transaction(self, tx_hash: str) -> Optional[BackendTransaction]:
        """Get a transaction the solver has recorded, or None if unknown."""
        query = (
            f"query {{ getTransaction(hash: {gql_string(tx_hash)}) {{ "
            "hash blockHash blockNumber from to value gasPrice gas nonce "
            "input transactionIndex v r s } }"
        )
        data = await self.client.execute(query)
        if not data or data.get("getTransaction") is None:
            return None
        try:
            return BackendTransaction.model_validate(data["getTransaction"])
        except SchemaError as e:
            raise DecodeError(f"invalid transaction record: {e}") from e
