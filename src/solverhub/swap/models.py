"""Data model for the swap pipeline."""

import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from solverhub.errors import InvalidAmount, PreconditionError, UnsupportedChain, ValidationError


class ChainKind(str, Enum):
    """Chains with a prepare/sign/submit path."""
    ETHEREUM = "ethereum"
    SOLANA = "solana"

    @classmethod
    def parse(cls, value: str) -> "ChainKind":
        """Parse a chain name, raising UnsupportedChain for unknown names."""
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise UnsupportedChain(str(value))


# Token symbol -> chain its transfers are executed on
TOKEN_CHAINS = {
    "ETH": ChainKind.ETHEREUM,
    "SOL": ChainKind.SOLANA,
}

CHAIN_TOKENS = {chain: token for token, chain in TOKEN_CHAINS.items()}


def chain_for_token(token: str) -> ChainKind:
    """Get the chain a token settles on."""
    chain = TOKEN_CHAINS.get(token.upper()) if token else None
    if chain is None:
        raise UnsupportedChain(token)
    return chain


def token_for_chain(chain: Union[str, ChainKind]) -> str:
    """Get the native token symbol for a chain."""
    return CHAIN_TOKENS[ChainKind.parse(chain) if isinstance(chain, str) else chain]


def parse_amount(value: Any, allow_zero: bool = False) -> Decimal:
    """Parse a positive decimal amount, or a non-negative one with `allow_zero`."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"invalid amount: {value!r}")
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmount(f"amount must be positive: {value!r}")
    return amount


@dataclass(frozen=True)
class Quote:
    """An exchange quote between two tokens at a point in time."""

    from_token: str
    to_token: str
    from_amount: Decimal
    to_amount: Decimal
    exchange_rate: Decimal
    timestamp: float = field(default_factory=time.time, compare=False)

    def to_dict(self) -> dict:
        return {
            "from_token": self.from_token,
            "to_token": self.to_token,
            "from_amount": str(self.from_amount),
            "to_amount": str(self.to_amount),
            "exchange_rate": str(self.exchange_rate),
        }


@dataclass(frozen=True)
class EthereumParams:
    """Unsigned legacy transfer parameters."""

    from_address: str
    to_address: str
    amount: Decimal
    gas_price: int
    gas_limit: int
    nonce: int


@dataclass(frozen=True)
class SolanaParams:
    """Unsigned system transfer parameters."""

    from_address: str
    to_address: str
    amount: Decimal
    recent_blockhash: str
    lamports: int


ChainParameters = Union[EthereumParams, SolanaParams]

_PARAMS_FOR_CHAIN = {
    ChainKind.ETHEREUM: EthereumParams,
    ChainKind.SOLANA: SolanaParams,
}


@dataclass
class PreparedTransaction:
    """Chain-specific transaction parameters plus, once signed, the raw bytes.

    raw_tx is 0x-prefixed hex for Ethereum and base58 for Solana.
    """

    chain: ChainKind
    params: Optional[ChainParameters]
    raw_tx: str = ""

    def __post_init__(self):
        expected = _PARAMS_FOR_CHAIN.get(self.chain)
        if expected is None:
            raise UnsupportedChain(str(self.chain))
        if self.params is not None and not isinstance(self.params, expected):
            raise ValidationError(
                f"{type(self.params).__name__} does not match chain {self.chain.value}"
            )

    @property
    def is_signed(self) -> bool:
        return bool(self.raw_tx)

    def to_dict(self) -> dict:
        params = {}
        if self.params is not None:
            params = {
                key: str(value) if isinstance(value, Decimal) else value
                for key, value in vars(self.params).items()
            }
        return {
            "chain": self.chain.value,
            "raw_tx": self.raw_tx,
            "chain_params": params,
        }


class SwapStatus(str, Enum):
    """Externally reported swap status."""
    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SwapStage(str, Enum):
    """Pipeline stages, in execution order."""
    RECEIVED = "received"
    QUOTED = "quoted"
    PREPARED = "prepared"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


_STAGE_ORDER = [
    SwapStage.RECEIVED,
    SwapStage.QUOTED,
    SwapStage.PREPARED,
    SwapStage.SIGNED,
    SwapStage.SUBMITTED,
    SwapStage.CONFIRMED,
]

_STAGE_STATUS = {
    SwapStage.SUBMITTED: SwapStatus.SUBMITTED,
    SwapStage.CONFIRMED: SwapStatus.CONFIRMED,
}


@dataclass
class SwapState:
    """Mutable state of one swap request.

    Each request owns its instance; it is never shared between requests.
    """

    quote: Quote
    destination_address: str
    chain: Optional[ChainKind] = None
    prepared: Optional[PreparedTransaction] = None
    status: SwapStatus = SwapStatus.PENDING
    stage: SwapStage = SwapStage.QUOTED
    tx_hash: Optional[str] = None
    settlement_reference: Optional[str] = None
    error: Optional[str] = None
    failed_stage: Optional[SwapStage] = None
    history: list[SwapStage] = field(
        default_factory=lambda: [SwapStage.RECEIVED, SwapStage.QUOTED]
    )

    @property
    def is_terminal(self) -> bool:
        return self.stage in (SwapStage.CONFIRMED, SwapStage.FAILED)

    def advance(self, stage: SwapStage) -> None:
        """Move to the next stage; stages cannot be skipped or repeated."""
        if self.is_terminal:
            raise PreconditionError(f"swap already {self.stage.value}")
        expected = _STAGE_ORDER[_STAGE_ORDER.index(self.stage) + 1]
        if stage != expected:
            raise PreconditionError(
                f"cannot move from {self.stage.value} to {stage.value}; "
                f"next stage is {expected.value}"
            )
        self.stage = stage
        self.history.append(stage)
        self.status = _STAGE_STATUS.get(stage, self.status)

    def fail(self, stage: SwapStage, error: BaseException) -> None:
        """Mark the swap failed at the given stage."""
        self.failed_stage = stage
        self.error = str(error)
        self.stage = SwapStage.FAILED
        self.status = SwapStatus.FAILED
        self.history.append(SwapStage.FAILED)

    def to_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash or "",
            "swap_result": self.quote.to_dict(),
            "status": self.status.value,
            "stage": self.stage.value,
            "tx_to_sign": self.prepared.to_dict() if self.prepared else None,
            "destination_address": self.destination_address,
            "settlement_reference": self.settlement_reference,
            "error": self.error,
        }


@dataclass(frozen=True)
class TransferRequest:
    """Parameters for a cross-chain NFT transfer."""

    source_owner: str
    token_id: str
    target_chain_id: str
    target_owner: str
    chain_owner: str
    buy_from_token: str
    to_token: str
    amount: Decimal
    blob_hash: str = ""
    nft_id: str = ""


@dataclass
class TransferResult:
    """Outcome of a completed NFT transfer."""

    transfer_data: Any
    sale_tx_hash: str = ""
    journal_id: Optional[str] = None
