"""NFT marketplace integration."""
