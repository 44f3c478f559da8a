"""Transaction signer for Ethereum and Solana.

Signing is pure and offline: the same prepared transaction and key always
produce the same bytes.
- Ethereum: legacy EIP-155 transfer, 0x-prefixed hex
- Solana: system transfer, base58
"""

import logging
from decimal import ROUND_DOWN, Decimal, localcontext

import base58
from eth_utils import to_checksum_address
from solders.hash import Hash
from solders.message import Message
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from solverhub.chains.solana import parse_pubkey
from solverhub.errors import MalformedAddress, PreconditionError, UnsupportedChain, ValidationError
from solverhub.signing.keys import ChainKeys
from solverhub.swap.models import ChainKind, EthereumParams, PreparedTransaction, SolanaParams

logger = logging.getLogger(__name__)

WEI_PER_ETH = Decimal(10) ** 18


def to_wei(amount: Decimal) -> int:
    """Convert ETH to wei, truncating below one wei."""
    with localcontext() as ctx:
        ctx.prec = 80
        return int((Decimal(amount) * WEI_PER_ETH).to_integral_value(rounding=ROUND_DOWN))


class EthereumSigner:
    """Signs legacy value transfers with the configured Ethereum key."""

    def __init__(self, keys: ChainKeys, chain_id: int):
        self.keys = keys
        self.chain_id = chain_id

    def sign(self, params: EthereumParams) -> str:
        account = self.keys.require_ethereum()

        try:
            to_address = to_checksum_address(params.to_address)
        except ValueError:
            raise MalformedAddress(f"invalid ethereum address: {params.to_address!r}")

        if params.from_address.lower() != account.address.lower():
            logger.warning(
                f"Signing key {account.address} differs from pool address {params.from_address}"
            )

        tx = {
            "nonce": params.nonce,
            "to": to_address,
            "value": to_wei(params.amount),
            "gas": params.gas_limit,
            "gasPrice": params.gas_price,
            "chainId": self.chain_id,
        }
        signed = account.sign_transaction(tx)
        raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction
        return "0x" + bytes(raw).hex()


class SolanaSigner:
    """Signs system-program transfers with the configured Solana keypair."""

    def __init__(self, keys: ChainKeys):
        self.keys = keys

    def sign(self, params: SolanaParams) -> str:
        from_pubkey = parse_pubkey(params.from_address)
        to_pubkey = parse_pubkey(params.to_address)
        if params.lamports < 0:
            raise ValidationError(f"negative lamports: {params.lamports}")
        try:
            blockhash = Hash.from_string(params.recent_blockhash)
        except ValueError:
            raise ValidationError(f"invalid recent blockhash: {params.recent_blockhash!r}")

        ix = transfer(
            TransferParams(from_pubkey=from_pubkey, to_pubkey=to_pubkey, lamports=params.lamports)
        )
        message = Message.new_with_blockhash([ix], from_pubkey, blockhash)

        required = message.account_keys[: message.header.num_required_signatures]
        signers = [self.keys.solana_signer_for(pubkey) for pubkey in required]

        tx = Transaction(signers, message, blockhash)
        return base58.b58encode(bytes(tx)).decode()


class Signer:
    """Dispatches a prepared transaction to its chain's signer."""

    def __init__(self, keys: ChainKeys, eth_chain_id: int):
        self.ethereum = EthereumSigner(keys, eth_chain_id)
        self.solana = SolanaSigner(keys)

    def sign(self, prepared: PreparedTransaction) -> PreparedTransaction:
        """Populate `prepared.raw_tx` and return the same instance.

        Raises:
            PreconditionError: nothing has been prepared
            KeyNotInitialized: the chain's key is absent
        """
        if prepared.params is None:
            raise PreconditionError("no transaction prepared for signing")

        if prepared.chain == ChainKind.ETHEREUM:
            raw_tx = self.ethereum.sign(prepared.params)
        elif prepared.chain == ChainKind.SOLANA:
            raw_tx = self.solana.sign(prepared.params)
        else:
            raise UnsupportedChain(str(prepared.chain))

        prepared.raw_tx = raw_tx
        logger.info(f"Signed {prepared.chain.value} transaction")
        return prepared
