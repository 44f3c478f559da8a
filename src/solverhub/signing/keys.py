"""Chain key material.

Keys are loaded once at startup, either from explicit private keys or
derived from a BIP39 seed phrase, and are never mutated afterwards.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solverhub.config import Settings
from solverhub.errors import KeyNotInitialized

logger = logging.getLogger(__name__)


def derive_ethereum_account(seed_phrase: str, index: int = 0) -> LocalAccount:
    """Derive an Ethereum account at m/44'/60'/0'/0/index."""
    from bip_utils import Bip39SeedGenerator, Bip44, Bip44Changes, Bip44Coins

    seed = Bip39SeedGenerator(seed_phrase).Generate()
    bip44 = Bip44.FromSeed(seed, Bip44Coins.ETHEREUM)
    account = bip44.Purpose().Coin().Account(0).Change(Bip44Changes.CHAIN_EXT)
    key = account.AddressIndex(index).PrivateKey().Raw().ToBytes()
    return Account.from_key(key)


def derive_solana_keypair(seed_phrase: str, index: int = 0) -> Keypair:
    """Derive a Solana keypair at m/44'/501'/index'/0'."""
    from bip_utils import Bip39SeedGenerator, Bip44, Bip44Changes, Bip44Coins

    seed = Bip39SeedGenerator(seed_phrase).Generate()
    bip44 = Bip44.FromSeed(seed, Bip44Coins.SOLANA)
    account = bip44.Purpose().Coin().Account(index).Change(Bip44Changes.CHAIN_EXT)
    private_key = account.PrivateKey().Raw().ToBytes()
    return Keypair.from_seed(private_key[:32])


@dataclass(frozen=True)
class ChainKeys:
    """Signing keys for each chain; either may be absent."""

    ethereum: Optional[LocalAccount] = None
    solana: Optional[Keypair] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChainKeys":
        ethereum = None
        solana = None
        seed = settings.wallet_seed_phrase

        if settings.eth_private_key:
            ethereum = Account.from_key(settings.eth_private_key)
        elif seed:
            ethereum = derive_ethereum_account(seed)

        if settings.sol_private_key:
            solana = Keypair.from_base58_string(settings.sol_private_key)
        elif seed:
            solana = derive_solana_keypair(seed)

        keys = cls(ethereum=ethereum, solana=solana)
        logger.info(
            f"Loaded keys: ethereum={keys.ethereum_address or '(none)'}, "
            f"solana={keys.solana_address or '(none)'}"
        )
        return keys

    @property
    def ethereum_address(self) -> Optional[str]:
        return self.ethereum.address if self.ethereum else None

    @property
    def solana_address(self) -> Optional[str]:
        return str(self.solana.pubkey()) if self.solana else None

    def require_ethereum(self) -> LocalAccount:
        if self.ethereum is None:
            raise KeyNotInitialized("ethereum")
        return self.ethereum

    def require_solana(self) -> Keypair:
        if self.solana is None:
            raise KeyNotInitialized("solana")
        return self.solana

    def solana_signer_for(self, pubkey: Pubkey) -> Keypair:
        """Get the keypair that signs for `pubkey`."""
        keypair = self.require_solana()
        if keypair.pubkey() != pubkey:
            raise KeyNotInitialized("solana", f"no key for signer {pubkey}")
        return keypair
