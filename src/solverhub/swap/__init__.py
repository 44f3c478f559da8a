"""Swap pipeline: quote, prepare, sign, submit, track."""

from solverhub.swap.models import (
    ChainKind,
    PreparedTransaction,
    Quote,
    SwapStage,
    SwapState,
    SwapStatus,
    TransferRequest,
    TransferResult,
)

__all__ = [
    "ChainKind",
    "PreparedTransaction",
    "Quote",
    "SwapStage",
    "SwapState",
    "SwapStatus",
    "TransferRequest",
    "TransferResult",
]
