"""Builds unsigned, chain-specific transactions from a quote."""

import logging
from decimal import ROUND_DOWN
from typing import Union

from solverhub.backend.solver import SolverBackend
from solverhub.chains.base import ChainGateway
from solverhub.errors import DecodeError, MalformedAddress, UnsupportedChain
from solverhub.swap.models import (
    ChainKind,
    EthereumParams,
    PreparedTransaction,
    Quote,
    SolanaParams,
)

logger = logging.getLogger(__name__)

# Plain value transfer
ETH_TRANSFER_GAS = 21000


class TransactionPreparer:
    """Resolves the pool address and network parameters for a transfer.

    The pool registered for the destination chain pays out the quote's
    destination amount to the user's address.
    """

    def __init__(self, solver: SolverBackend, gateways: dict[ChainKind, ChainGateway]):
        self.solver = solver
        self.gateways = gateways

    def gateway_for(self, chain: ChainKind) -> ChainGateway:
        gateway = self.gateways.get(chain)
        if gateway is None:
            raise UnsupportedChain(chain.value)
        return gateway

    async def prepare(
        self,
        chain: Union[str, ChainKind],
        quote: Quote,
        destination_address: str,
    ) -> PreparedTransaction:
        chain = ChainKind.parse(chain) if isinstance(chain, str) else chain
        gateway = self.gateway_for(chain)

        if not gateway.validate_address(destination_address):
            raise MalformedAddress(f"invalid {chain.value} address: {destination_address!r}")

        pool_address = await self.solver.get_pool(chain.value)
        params = await gateway.get_fee_params(pool_address)

        if chain == ChainKind.ETHEREUM:
            if params.gas_price is None or params.nonce is None:
                raise DecodeError("ethereum network parameters incomplete")
            chain_params = EthereumParams(
                from_address=pool_address,
                to_address=destination_address,
                amount=quote.to_amount,
                gas_price=params.gas_price,
                gas_limit=ETH_TRANSFER_GAS,
                nonce=params.nonce,
            )
        else:
            if not params.recent_blockhash:
                raise DecodeError("solana network parameters missing blockhash")
            # Destination amounts for SOL are quoted in lamports
            chain_params = SolanaParams(
                from_address=pool_address,
                to_address=destination_address,
                amount=quote.to_amount,
                recent_blockhash=params.recent_blockhash,
                lamports=int(quote.to_amount.to_integral_value(rounding=ROUND_DOWN)),
            )

        logger.info(f"Prepared {chain.value} transfer {pool_address} -> {destination_address}")
        return PreparedTransaction(chain=chain, params=chain_params)
