"""GraphQL backend clients."""

from solverhub.backend.nft import NftBackend
from solverhub.backend.solver import SolverBackend

__all__ = ["NftBackend", "SolverBackend"]
