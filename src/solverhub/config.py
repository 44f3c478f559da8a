"""Application configuration using pydantic-settings.

Endpoints, contract address and key material are loaded once into an
immutable Settings object and passed to each component at construction.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ======================
    # Backends (GraphQL over HTTP)
    # ======================
    solver_url: str = Field(
        default="http://localhost:8080/", description="Universal solver service URL"
    )
    non_fungible_url: str = Field(
        default="http://localhost:8081/", description="Non-fungible service URL"
    )
    linera_url: str = Field(
        default="http://localhost:8080/", description="Linera node service URL"
    )

    # ======================
    # Chain RPC Endpoints
    # ======================
    eth_rpc_url: str = Field(
        default="http://localhost:8545", description="Ethereum JSON-RPC URL"
    )
    sol_rpc_url: str = Field(
        default="http://localhost:8899", description="Solana JSON-RPC URL"
    )
    eth_chain_id: int = Field(default=1337, description="EIP-155 chain id used for signing")

    # ======================
    # Marketplace
    # ======================
    nft_address: str = Field(default="", description="NFT marketplace contract address")
    settlement_token: str = Field(
        default="ETH", description="Destination token that triggers an on-chain sale"
    )

    # ======================
    # Key material
    # ======================
    wallet_seed_phrase: Optional[str] = Field(
        default=None, description="BIP39 seed phrase for deriving chain keys"
    )
    eth_private_key: Optional[str] = Field(
        default=None, description="Hex Ethereum private key (overrides seed derivation)"
    )
    sol_private_key: Optional[str] = Field(
        default=None, description="Base58 Solana keypair (overrides seed derivation)"
    )

    # ======================
    # Timeouts and polling
    # ======================
    http_timeout: float = Field(default=30.0, description="Per-call HTTP/RPC deadline in seconds")
    tx_lookup_attempts: int = Field(
        default=10, ge=1, description="Transaction visibility lookups before giving up"
    )
    tx_lookup_interval: float = Field(
        default=5.0, ge=0, description="Seconds between visibility lookups"
    )
    tx_lookup_backoff: float = Field(
        default=1.0, ge=1.0, description="Multiplier applied to the interval after each miss"
    )
    hub_send_timeout: float = Field(
        default=5.0, gt=0, description="Per-subscriber write deadline in seconds"
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=3000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    @property
    def has_wallet(self) -> bool:
        """Check if any key material is configured."""
        has_seed = bool(self.wallet_seed_phrase and len(self.wallet_seed_phrase.split()) >= 12)
        return has_seed or bool(self.eth_private_key) or bool(self.sol_private_key)

    def get_rpc_url(self, chain: str) -> str:
        """Get RPC URL for a specific chain."""
        rpc_map = {
            "ETHEREUM": self.eth_rpc_url,
            "ETH": self.eth_rpc_url,
            "SOLANA": self.sol_rpc_url,
            "SOL": self.sol_rpc_url,
        }
        return rpc_map.get(chain.upper(), "")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "backends": {
                "solver": self.solver_url,
                "non_fungible": self.non_fungible_url,
                "linera": self.linera_url,
            },
            "chains": {
                "ethereum": {"rpc": self.eth_rpc_url, "chain_id": self.eth_chain_id},
                "solana": {"rpc": self.sol_rpc_url},
            },
            "nft_address": self.nft_address or "(not set)",
            "wallet_configured": self.has_wallet,
            "eth_private_key": "***" if self.eth_private_key else "(not set)",
            "sol_private_key": "***" if self.sol_private_key else "(not set)",
            "tx_lookup": {
                "attempts": self.tx_lookup_attempts,
                "interval": self.tx_lookup_interval,
                "backoff": self.tx_lookup_backoff,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
