"""Chain gateway interface and JSON-RPC transport."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import httpx

from solverhub.errors import DecodeError, GatewayError
from solverhub.swap.models import ChainKind

logger = logging.getLogger(__name__)


@dataclass
class FeeParams:
    """Fee and replay-protection parameters for the next transaction."""

    gas_price: Optional[int] = None
    nonce: Optional[int] = None
    recent_blockhash: Optional[str] = None


@dataclass
class Balance:
    address: str
    amount: Decimal
    symbol: str

    def to_dict(self) -> dict:
        return {"address": self.address, "balance": str(self.amount), "symbol": self.symbol}


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client over httpx."""

    def __init__(
        self,
        url: str,
        name: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.name = name
        self.timeout = timeout
        self.transport = transport

    async def call(self, method: str, params: list) -> dict:
        """Send one request and return the full response object.

        The caller decides how to treat an `error` member.
        """
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": 1}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} RPC {method} failed: {e}")
            raise GatewayError(f"{self.name} RPC {method} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(
                f"{self.name} RPC {method} returned invalid JSON (HTTP {response.status_code})"
            ) from e

        if not isinstance(data, dict):
            raise DecodeError(f"{self.name} RPC {method} returned {type(data).__name__}")
        if response.status_code >= 400 and "error" not in data:
            raise GatewayError(f"{self.name} RPC {method} returned HTTP {response.status_code}")
        return data

    async def result(self, method: str, params: list) -> Any:
        """Send one request and return `result`, raising GatewayError on `error`."""
        data = await self.call(method, params)
        if data.get("error"):
            raise GatewayError(f"{self.name} RPC error: {rpc_error_message(data['error'])}")
        return data.get("result")


def rpc_error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error)


class ChainGateway(ABC):
    """Per-chain node access used by the swap pipeline."""

    chain: ChainKind
    symbol: str

    @abstractmethod
    def validate_address(self, address: str) -> bool:
        """Check that an address is well-formed for this chain."""
        pass

    @abstractmethod
    async def get_fee_params(self, address: str) -> FeeParams:
        """Fetch what is needed to build the next transaction from `address`."""
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> Balance:
        pass

    @abstractmethod
    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a signed transaction and return its id."""
        pass

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> Optional[dict]:
        """Look up a transaction; None means not yet visible."""
        pass

    async def close(self) -> None:
        pass
