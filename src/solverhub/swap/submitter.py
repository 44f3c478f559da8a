"""Submits signed transactions to their chain."""

import logging

import base58
from eth_account import Account
from eth_utils import keccak
from hexbytes import HexBytes
from solders.transaction import Transaction

from solverhub.chains.base import ChainGateway
from solverhub.errors import MalformedTransaction, PreconditionError, UnsupportedChain
from solverhub.swap.models import ChainKind, PreparedTransaction

logger = logging.getLogger(__name__)


class Submitter:
    """Decodes, checks and broadcasts signed transactions.

    Bytes that do not decode are rejected before anything reaches a node.
    """

    def __init__(self, gateways: dict[ChainKind, ChainGateway]):
        self.gateways = gateways

    async def submit(self, prepared: PreparedTransaction) -> str:
        """Broadcast and return the transaction hash (Ethereum) or signature (Solana)."""
        if not prepared.is_signed:
            raise PreconditionError("no signed transaction available")

        gateway = self.gateways.get(prepared.chain)
        if gateway is None:
            raise UnsupportedChain(prepared.chain.value)

        if prepared.chain == ChainKind.ETHEREUM:
            return await self._submit_ethereum(gateway, prepared.raw_tx)
        return await self._submit_solana(gateway, prepared.raw_tx)

    async def _submit_ethereum(self, gateway: ChainGateway, raw_tx: str) -> str:
        try:
            raw = bytes(HexBytes(raw_tx))
            sender = Account.recover_transaction(raw)
        except Exception as e:
            raise MalformedTransaction(f"failed to decode ethereum transaction: {e}") from e

        tx_hash = "0x" + keccak(raw).hex()
        node_hash = await gateway.send_raw_transaction("0x" + raw.hex())
        if node_hash.lower() != tx_hash:
            logger.warning(f"Node reported hash {node_hash}, expected {tx_hash}")

        logger.info(f"Submitted ethereum transaction {tx_hash} from {sender}")
        return tx_hash

    async def _submit_solana(self, gateway: ChainGateway, raw_tx: str) -> str:
        try:
            tx = Transaction.from_bytes(base58.b58decode(raw_tx))
        except Exception as e:
            raise MalformedTransaction(f"failed to decode solana transaction: {e}") from e

        if not tx.signatures:
            raise MalformedTransaction("solana transaction carries no signatures")

        signature = await gateway.send_raw_transaction(raw_tx)
        logger.info(f"Submitted solana transaction {signature}")
        return signature
