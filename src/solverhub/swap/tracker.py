"""Waits for submitted transactions to become visible on chain."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from solverhub.chains.base import ChainGateway
from solverhub.chains.solana import LAMPORTS_PER_SOL
from solverhub.config import Settings
from solverhub.errors import DecodeError, TransactionNotFound, UnsupportedChain, ValidationError
from solverhub.swap.models import ChainKind

logger = logging.getLogger(__name__)

WEI_PER_WHOLE_ETH = 10 ** 18


@dataclass(frozen=True)
class VisibilityPolicy:
    """How long to keep looking for a transaction."""

    attempts: int = 10
    interval: float = 5.0
    backoff: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "VisibilityPolicy":
        return cls(
            attempts=settings.tx_lookup_attempts,
            interval=settings.tx_lookup_interval,
            backoff=settings.tx_lookup_backoff,
        )


class TransactionTracker:
    """Polls a gateway until a transaction is visible.

    Only "not yet visible" is retried; transport errors surface at once.
    """

    def __init__(self, gateways: dict[ChainKind, ChainGateway], policy: VisibilityPolicy):
        self.gateways = gateways
        self.policy = policy

    async def wait_for_transaction(
        self, chain: Union[str, ChainKind], tx_hash: str
    ) -> dict:
        chain = ChainKind.parse(chain) if isinstance(chain, str) else chain
        gateway = self.gateways.get(chain)
        if gateway is None:
            raise UnsupportedChain(chain.value)

        delay = self.policy.interval
        for attempt in range(1, self.policy.attempts + 1):
            tx = await gateway.get_transaction(tx_hash)
            if tx is not None:
                logger.info(f"Transaction {tx_hash} visible after {attempt} attempt(s)")
                return tx

            logger.debug(
                f"Transaction {tx_hash} not visible "
                f"(attempt {attempt}/{self.policy.attempts})"
            )
            if attempt < self.policy.attempts:
                await asyncio.sleep(delay)
                delay *= self.policy.backoff

        raise TransactionNotFound(tx_hash, self.policy.attempts)


def extract_deposit_amount(chain: Union[str, ChainKind], tx: dict) -> Decimal:
    """Get the native amount a transaction moved.

    Ethereum: `value` in wei, truncated to whole ETH.
    Solana: fee payer's preBalances[0] - postBalances[0], converted to SOL.
    """
    chain = ChainKind.parse(chain) if isinstance(chain, str) else chain

    if chain == ChainKind.ETHEREUM:
        try:
            wei = int(str(tx["value"]), 0)
        except (KeyError, ValueError) as e:
            raise DecodeError(f"invalid transaction value: {e}") from e
        return Decimal(wei // WEI_PER_WHOLE_ETH)

    try:
        meta = tx["meta"]
        pre = int(meta["preBalances"][0])
        post = int(meta["postBalances"][0])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise DecodeError(f"invalid transaction balances: {e}") from e

    if pre <= post:
        raise ValidationError("could not extract transaction amount")
    return Decimal(pre - post) / LAMPORTS_PER_SOL
