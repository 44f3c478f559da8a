"""Key material for transaction signing."""

from solverhub.signing.keys import ChainKeys

__all__ = ["ChainKeys"]
