"""NFT marketplace contract on Ethereum.

web3.py is synchronous; calls run in a worker thread so the event loop
keeps serving while a sale is mined.
"""

import asyncio
import logging

from solverhub.errors import (
    GatewayError,
    SolverHubError,
    SubmissionRejected,
    UnconfirmedTransaction,
    ValidationError,
)
from solverhub.signing.keys import ChainKeys

logger = logging.getLogger(__name__)

MARKETPLACE_ABI = [
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "executeSale",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "tokenId", "type": "uint256"},
            {"name": "price", "type": "uint256"},
        ],
        "name": "listToken",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getListPrice",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getCurrentToken",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class MarketplaceContract:
    """Sale, listing and token-counter calls on the marketplace contract."""

    def __init__(
        self,
        rpc_url: str,
        address: str,
        chain_id: int,
        keys: ChainKeys,
        receipt_timeout: int = 120,
        web3=None,
    ):
        self.rpc_url = rpc_url
        self.address = address
        self.chain_id = chain_id
        self.keys = keys
        self.receipt_timeout = receipt_timeout
        self._web3 = web3
        self._contract = None

    @property
    def web3(self):
        """Lazy load web3 instance."""
        if self._web3 is None:
            from web3 import Web3
            self._web3 = Web3(Web3.HTTPProvider(self.rpc_url))
        return self._web3

    @property
    def contract(self):
        if not self.address:
            raise ValidationError("NFT marketplace address not configured")
        if self._contract is None:
            self._contract = self.web3.eth.contract(
                address=self.web3.to_checksum_address(self.address),
                abi=MARKETPLACE_ABI,
            )
        return self._contract

    async def _run(self, name: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except SolverHubError:
            raise
        except Exception as e:
            logger.error(f"Marketplace {name} failed: {e}")
            raise GatewayError(f"marketplace {name} failed: {e}") from e

    def _transact(self, name: str, call, value: int) -> str:
        account = self.keys.require_ethereum()

        tx = call.build_transaction({
            "from": account.address,
            "value": value,
            "nonce": self.web3.eth.get_transaction_count(account.address, "pending"),
            "gasPrice": self.web3.eth.gas_price,
            "chainId": self.chain_id,
        })
        signed = account.sign_transaction(tx)
        raw_tx = getattr(signed, "raw_transaction", None) or signed.rawTransaction
        tx_hash = self.web3.eth.send_raw_transaction(raw_tx)
        tx_hash_hex = "0x" + bytes(tx_hash).hex()
        logger.info(f"Marketplace {name} broadcast: {tx_hash_hex}")

        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            logger.error(f"Marketplace {name} {tx_hash_hex} not confirmed: {e}")
            raise UnconfirmedTransaction(tx_hash_hex, str(e)) from e
        if receipt["status"] != 1:
            raise SubmissionRejected(f"{name} transaction {tx_hash_hex} reverted")

        logger.info(f"Marketplace {name} mined: {tx_hash_hex}")
        return tx_hash_hex

    async def execute_sale(self, token_id: int, value_wei: int) -> str:
        """Buy a listed token, paying `value_wei`."""
        call = self.contract.functions.executeSale(int(token_id))
        return await self._run("executeSale", self._transact, "executeSale", call, value_wei)

    async def list_token(self, token_id: int, price_wei: int) -> str:
        """List a token for sale, paying the contract's listing fee."""
        list_price = await self.get_list_price()
        call = self.contract.functions.listToken(int(token_id), int(price_wei))
        return await self._run("listToken", self._transact, "listToken", call, list_price)

    async def get_list_price(self) -> int:
        return int(await self._run("getListPrice", self.contract.functions.getListPrice().call))

    async def get_current_token(self) -> int:
        return int(await self._run("getCurrentToken", self.contract.functions.getCurrentToken().call))

    async def next_token_id(self) -> tuple[int, int]:
        """Get (current, next) token ids."""
        current = await self.get_current_token()
        return current, current + 1

