"""Chain gateway factory."""

import logging

from solverhub.chains.base import ChainGateway
from solverhub.chains.ethereum import EthereumGateway
from solverhub.chains.solana import SolanaGateway
from solverhub.config import Settings
from solverhub.swap.models import ChainKind

logger = logging.getLogger(__name__)


def create_gateways(settings: Settings) -> dict[ChainKind, ChainGateway]:
    """Create one gateway per supported chain from settings."""
    gateways: dict[ChainKind, ChainGateway] = {
        ChainKind.ETHEREUM: EthereumGateway(settings.eth_rpc_url, timeout=settings.http_timeout),
        ChainKind.SOLANA: SolanaGateway(settings.sol_rpc_url, timeout=settings.http_timeout),
    }
    for chain, gateway in gateways.items():
        logger.info(f"Gateway ready: {chain.value} ({type(gateway).__name__})")
    return gateways
