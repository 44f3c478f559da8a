"""Ethereum gateway over raw JSON-RPC."""

import logging
from decimal import Decimal
from typing import Optional

import httpx
from eth_utils import is_address

from solverhub.chains.base import Balance, ChainGateway, FeeParams, JsonRpcClient, rpc_error_message
from solverhub.errors import DecodeError, MalformedAddress, SubmissionRejected
from solverhub.swap.models import ChainKind

logger = logging.getLogger(__name__)

WEI_PER_ETH = Decimal(10) ** 18


def hex_to_int(value: Optional[str]) -> int:
    if value is None:
        return 0
    try:
        return int(value, 16)
    except (TypeError, ValueError):
        raise DecodeError(f"expected hex quantity, got {value!r}")


class EthereumGateway(ChainGateway):
    """Ethereum node access (gas price, nonces, balances, broadcast)."""

    chain = ChainKind.ETHEREUM
    symbol = "ETH"

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc = JsonRpcClient(rpc_url, "ethereum", timeout=timeout, transport=transport)

    def validate_address(self, address: str) -> bool:
        return bool(address) and is_address(address)

    def _require_address(self, address: str) -> str:
        if not self.validate_address(address):
            raise MalformedAddress(f"invalid ethereum address: {address!r}")
        return address

    async def get_gas_price(self) -> int:
        return hex_to_int(await self.rpc.result("eth_gasPrice", []))

    async def get_pending_nonce(self, address: str) -> int:
        """Next nonce including pending transactions."""
        address = self._require_address(address)
        return hex_to_int(await self.rpc.result("eth_getTransactionCount", [address, "pending"]))

    async def get_fee_params(self, address: str) -> FeeParams:
        gas_price = await self.get_gas_price()
        nonce = await self.get_pending_nonce(address)
        logger.debug(f"Ethereum params for {address}: gas_price={gas_price}, nonce={nonce}")
        return FeeParams(gas_price=gas_price, nonce=nonce)

    async def get_balance(self, address: str) -> Balance:
        address = self._require_address(address)
        wei = hex_to_int(await self.rpc.result("eth_getBalance", [address, "latest"]))
        return Balance(address=address, amount=Decimal(wei) / WEI_PER_ETH, symbol=self.symbol)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a 0x-prefixed signed transaction.

        Raises:
            SubmissionRejected: if the node answers with an error
        """
        data = await self.rpc.call("eth_sendRawTransaction", [raw_tx])
        if data.get("error"):
            message = rpc_error_message(data["error"])
            logger.warning(f"Ethereum node rejected transaction: {message}")
            raise SubmissionRejected(f"failed to send transaction: {message}")
        result = data.get("result")
        if not isinstance(result, str):
            raise DecodeError("eth_sendRawTransaction returned no hash")
        return result

    async def get_transaction(self, tx_hash: str) -> Optional[dict]:
        tx = await self.rpc.result("eth_getTransactionByHash", [tx_hash])
        if tx is None:
            return None
        if not isinstance(tx, dict):
            raise DecodeError("eth_getTransactionByHash returned a non-object")

        return {
            "hash": tx.get("hash", tx_hash),
            "from": tx.get("from"),
            "to": tx.get("to"),
            "value": str(hex_to_int(tx.get("value"))),
            "gas": hex_to_int(tx.get("gas")),
            "gasPrice": str(hex_to_int(tx.get("gasPrice"))),
            "nonce": hex_to_int(tx.get("nonce")),
            "blockNumber": tx.get("blockNumber"),
            "isPending": tx.get("blockNumber") is None,
        }
