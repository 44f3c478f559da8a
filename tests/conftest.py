"""Pytest configuration and fixtures."""

import asyncio
import json
import os
from types import SimpleNamespace
from typing import Any, Callable, Union

import base58
import httpx
import pytest
from eth_account import Account
from eth_utils import keccak
from hexbytes import HexBytes
from solders.hash import Hash
from solders.keypair import Keypair
from solders.transaction import Transaction

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"

from solverhub.backend.nft import NftBackend
from solverhub.backend.solver import SolverBackend
from solverhub.chains.ethereum import EthereumGateway
from solverhub.chains.solana import SolanaGateway
from solverhub.notifications.hub import NotificationHub
from solverhub.signing.keys import ChainKeys
from solverhub.swap.executor import SwapOrchestrator
from solverhub.swap.models import ChainKind
from solverhub.swap.tracker import VisibilityPolicy

TEST_ETH_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ETH_DESTINATION = "0x" + "22" * 20
TEST_BLOCKHASH = str(Hash(bytes([7] * 32)))
MARKETPLACE_ADDRESS = "0x" + "33" * 20
SALE_TX_HASH = bytes([0xAB] * 32)


class FakeGraphQL:
    """GraphQL service answering by the first registered field named in the query.

    Values are response bodies, or callables taking the query and returning one.
    """

    def __init__(self, responses: dict[str, Union[dict, Callable[[str], Any]]]):
        self.responses = dict(responses)
        self.queries: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        self.queries.append(query)
        for field, body in self.responses.items():
            if field in query:
                if callable(body):
                    body = body(query)
                if isinstance(body, httpx.Response):
                    return body
                return httpx.Response(200, json=body)
        return httpx.Response(200, json={"data": None, "errors": [{"message": "unknown field"}]})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def sent(self, field: str) -> list[str]:
        return [q for q in self.queries if field in q]


class FakeRpc:
    """JSON-RPC node answering by method name.

    Values are results, callables taking params and returning a full
    response body, or exceptions to raise.
    """

    def __init__(self, methods: dict[str, Any]):
        self.methods = dict(methods)
        self.calls: list[tuple[str, list]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method, params = payload["method"], payload["params"]
        self.calls.append((method, params))
        if method not in self.methods:
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": 1, "error": {"message": "method not found"}}
            )
        value = self.methods[method]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return httpx.Response(200, json=value(params))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": value})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def called(self, method: str) -> list[list]:
        return [params for name, params in self.calls if name == method]


def echo_eth_hash(params: list) -> dict:
    """eth_sendRawTransaction that returns the keccak of the submitted bytes."""
    return {"jsonrpc": "2.0", "id": 1, "result": "0x" + keccak(HexBytes(params[0])).hex()}


def echo_sol_signature(params: list) -> dict:
    """sendTransaction that returns the first signature of the submitted transaction."""
    tx = Transaction.from_bytes(base58.b58decode(params[0]))
    return {"jsonrpc": "2.0", "id": 1, "result": str(tx.signatures[0])}


class FakeSolanaClient:
    """Stands in for solana-py's AsyncClient."""

    def __init__(self, blockhash: str = TEST_BLOCKHASH, lamports: int = 0):
        self.blockhash = Hash.from_string(blockhash)
        self.lamports = lamports
        self.airdrops: list[tuple[Any, int]] = []
        self.closed = False

    async def get_latest_blockhash(self, commitment=None):
        return SimpleNamespace(value=SimpleNamespace(blockhash=self.blockhash))

    async def get_balance(self, pubkey, commitment=None):
        return SimpleNamespace(value=self.lamports)

    async def request_airdrop(self, pubkey, lamports, commitment=None):
        self.airdrops.append((pubkey, lamports))
        return SimpleNamespace(value="airdrop-signature")

    async def close(self):
        self.closed = True


class RecordingSubscriber:
    """Subscriber that keeps every message it is sent."""

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.messages: list[dict] = []
        self.fail = fail
        self.delay = delay
        self.closed = False

    async def send_json(self, data: Any) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("connection reset")
        self.messages.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed = True

    @property
    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]


def fake_web3(receipt_status: int = 1, list_price: int = 0, current_token: int = 0):
    """web3 stand-in whose contract calls build real, signable legacy transactions."""
    from unittest.mock import MagicMock

    web3 = MagicMock()
    web3.eth.get_transaction_count.return_value = 4
    web3.eth.gas_price = 2_000_000_000
    web3.eth.send_raw_transaction.return_value = HexBytes(SALE_TX_HASH)
    web3.eth.wait_for_transaction_receipt.return_value = {"status": receipt_status}

    def build_transaction(params):
        return {**params, "to": MARKETPLACE_ADDRESS, "gas": 100_000, "data": "0x"}

    functions = web3.eth.contract.return_value.functions
    functions.executeSale.return_value.build_transaction.side_effect = build_transaction
    functions.listToken.return_value.build_transaction.side_effect = build_transaction
    functions.getListPrice.return_value.call.return_value = list_price
    functions.getCurrentToken.return_value.call.return_value = current_token
    return web3


@pytest.fixture
def eth_account():
    return Account.from_key(TEST_ETH_KEY)


@pytest.fixture
def sol_keypair():
    return Keypair.from_seed(bytes([1] * 32))


@pytest.fixture
def sol_destination():
    return str(Keypair.from_seed(bytes([2] * 32)).pubkey())


@pytest.fixture
def keys(eth_account, sol_keypair):
    return ChainKeys(ethereum=eth_account, solana=sol_keypair)


@pytest.fixture
def pools(eth_account, sol_keypair):
    return [
        {"chainName": "ethereum", "poolAddress": eth_account.address},
        {"chainName": "solana", "poolAddress": str(sol_keypair.pubkey())},
    ]


@pytest.fixture
def solver_service(pools):
    return FakeGraphQL({
        "calculateSwap": {
            "data": {
                "calculateSwap": {
                    "fromToken": "SOL",
                    "toToken": "ETH",
                    "fromAmount": 10.0,
                    "toAmount": 1.5,
                    "exchangeRate": 0.15,
                }
            }
        },
        "mutation { swap(": {"data": "settlement-hash"},
        "getAllPools": {"data": {"getAllPools": pools}},
        "getAllPoolBalances": {
            "data": {"getAllPoolBalances": [{"poolAddress": pools[0]["poolAddress"], "balance": 42.5}]}
        },
    })


@pytest.fixture
def nft_service():
    return FakeGraphQL({
        "nftUsingBlobHash": {
            "data": {
                "nftUsingBlobHash": {
                    "id": 3,
                    "tokenId": "token-3",
                    "owner": "owner-a",
                    "name": "Sunset",
                    "price": "0.5",
                    "blobHash": "blob-3",
                }
            }
        },
        "transfer(": {"data": "transfer-hash"},
        "listNftForSale": {"data": "listing-hash"},
        "mint(": {"data": "mint-hash"},
        "publishDataBlob": {"data": "blob-hash"},
    })


@pytest.fixture
def eth_node():
    return FakeRpc({
        "eth_gasPrice": "0x3b9aca00",
        "eth_getTransactionCount": "0x5",
        "eth_sendRawTransaction": echo_eth_hash,
    })


@pytest.fixture
def sol_node():
    return FakeRpc({"sendTransaction": echo_sol_signature})


@pytest.fixture
def solver(solver_service):
    return SolverBackend("http://solver.test/", transport=solver_service.transport)


@pytest.fixture
def nft_backend(nft_service):
    return NftBackend("http://nft.test/", "http://linera.test/", transport=nft_service.transport)


@pytest.fixture
def gateways(eth_node, sol_node):
    return {
        ChainKind.ETHEREUM: EthereumGateway("http://eth.test", transport=eth_node.transport),
        ChainKind.SOLANA: SolanaGateway(
            "http://sol.test", client=FakeSolanaClient(), transport=sol_node.transport
        ),
    }


@pytest.fixture
def marketplace():
    from unittest.mock import MagicMock

    from solverhub.nft.marketplace import MarketplaceContract

    contract = MagicMock(spec=MarketplaceContract)
    contract.execute_sale.return_value = "0xsale"
    contract.list_token.return_value = "0xlisting"
    contract.next_token_id.return_value = (7, 8)
    return contract


@pytest.fixture
def hub():
    return NotificationHub(send_timeout=0.5)


@pytest.fixture
def orchestrator(solver, nft_backend, gateways, keys, marketplace, hub):
    return SwapOrchestrator(
        solver=solver,
        nft=nft_backend,
        gateways=gateways,
        keys=keys,
        marketplace=marketplace,
        hub=hub,
        eth_chain_id=1337,
        policy=VisibilityPolicy(attempts=3, interval=0, backoff=1.0),
    )
