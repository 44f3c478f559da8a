"""Solana gateway.

Reads go through solana-py's AsyncClient; broadcast and transaction lookup
use raw JSON-RPC so node errors and not-yet-visible results stay distinct.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

import httpx
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed, Finalized
from solders.pubkey import Pubkey

from solverhub.chains.base import Balance, ChainGateway, FeeParams, JsonRpcClient, rpc_error_message
from solverhub.errors import (
    DecodeError,
    GatewayError,
    MalformedAddress,
    MalformedTransaction,
    SubmissionRejected,
)
from solverhub.swap.models import ChainKind

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000


def parse_pubkey(address: str) -> Pubkey:
    try:
        return Pubkey.from_string(address)
    except (ValueError, TypeError):
        raise MalformedAddress(f"invalid solana address: {address!r}")


class SolanaGateway(ChainGateway):
    """Solana node access (blockhash, balances, airdrops, broadcast)."""

    chain = ChainKind.SOLANA
    symbol = "SOL"

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        client: Optional[AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.client = client or AsyncClient(rpc_url, timeout=timeout)
        self.rpc = JsonRpcClient(rpc_url, "solana", timeout=timeout, transport=transport)

    def validate_address(self, address: str) -> bool:
        try:
            parse_pubkey(address)
            return True
        except MalformedAddress:
            return False

    async def _read(self, name: str, request) -> Any:
        """Await a solana-py call, mapping its failures to GatewayError."""
        try:
            return await request
        except Exception as e:
            # solana-py raises its own exception types for RPC-level failures
            logger.error(f"solana {name} failed: {e}")
            raise GatewayError(f"solana {name} failed: {e}") from e

    async def get_latest_blockhash(self) -> str:
        resp = await self._read("getLatestBlockhash", self.client.get_latest_blockhash(Confirmed))
        return str(resp.value.blockhash)

    async def get_fee_params(self, address: str) -> FeeParams:
        return FeeParams(recent_blockhash=await self.get_latest_blockhash())

    async def get_balance(self, address: str) -> Balance:
        pubkey = parse_pubkey(address)
        resp = await self._read("getBalance", self.client.get_balance(pubkey, commitment=Finalized))
        lamports = int(resp.value)
        return Balance(
            address=address,
            amount=Decimal(lamports) / LAMPORTS_PER_SOL,
            symbol=self.symbol,
        )

    async def request_airdrop(self, address: str, lamports: int = 2 * LAMPORTS_PER_SOL) -> str:
        """Request test funds from a local or dev cluster."""
        pubkey = parse_pubkey(address)
        resp = await self._read(
            "requestAirdrop",
            self.client.request_airdrop(pubkey, lamports, commitment=Finalized),
        )
        signature = str(resp.value)
        logger.info(f"Airdropped {lamports} lamports to {address}: {signature}")
        return signature

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a base58-encoded signed transaction.

        Raises:
            SubmissionRejected: if the node answers with an error
        """
        data = await self.rpc.call("sendTransaction", [raw_tx, {"encoding": "base58"}])
        if data.get("error"):
            message = rpc_error_message(data["error"])
            logger.warning(f"Solana node rejected transaction: {message}")
            raise SubmissionRejected(f"failed to send transaction: {message}")
        result = data.get("result")
        if not isinstance(result, str):
            raise MalformedTransaction("sendTransaction returned no signature")
        return result

    async def get_transaction(self, tx_hash: str) -> Optional[dict]:
        result = await self.rpc.result(
            "getTransaction",
            [tx_hash, {"encoding": "json", "maxSupportedTransactionVersion": 0}],
        )
        if result is None:
            return None
        if not isinstance(result, dict):
            raise DecodeError("getTransaction returned a non-object")
        return result

    async def close(self) -> None:
        await self.client.close()
