"""Per-chain node gateways."""

from solverhub.chains.base import Balance, ChainGateway, FeeParams
from solverhub.chains.ethereum import EthereumGateway
from solverhub.chains.solana import SolanaGateway

__all__ = ["Balance", "ChainGateway", "FeeParams", "EthereumGateway", "SolanaGateway"]
