"""Cross-chain swap and NFT transfer orchestrator."""

__version__ = "0.1.0"
