"""Status events pushed to WebSocket subscribers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class EventType(str, Enum):
    CONNECTED = "connected"
    PONG = "pong"
    ERROR = "error"
    NFT_TRANSFER_INITIATED = "nft_transfer_initiated"
    NFT_TRANSFER_PENDING = "nft_transfer_pending"
    NFT_TRANSFER_COMPLETED = "nft_transfer_completed"
    NFT_LISTED = "nft_listed"


@dataclass(frozen=True)
class StatusEvent:
    """Immutable `{type, data, error?}` message."""

    type: EventType
    data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {"type": self.type.value, "data": self.data}
        if self.error:
            payload["error"] = self.error
        return payload

    @classmethod
    def connected(cls) -> "StatusEvent":
        return cls(EventType.CONNECTED, "Successfully connected to WebSocket")

    @classmethod
    def pong(cls) -> "StatusEvent":
        return cls(EventType.PONG, "pong")

    @classmethod
    def unknown_message(cls) -> "StatusEvent":
        return cls(EventType.ERROR, error="Unknown message type")

    @classmethod
    def transfer_initiated(cls) -> "StatusEvent":
        return cls(
            EventType.NFT_TRANSFER_INITIATED,
            {"status": "initiated", "message": "fetching nft detail from nft solver"},
        )

    @classmethod
    def transfer_pending(cls) -> "StatusEvent":
        return cls(
            EventType.NFT_TRANSFER_PENDING,
            {
                "status": "pending",
                "message": "Dex solver and Nft solver will be coordinated for transfer",
            },
        )

    @classmethod
    def transfer_completed(cls) -> "StatusEvent":
        return cls(
            EventType.NFT_TRANSFER_COMPLETED,
            {
                "status": "completed",
                "message": "Successfully coordination complete between solvers and executed transfer",
            },
        )

    @classmethod
    def nft_listed(cls, token_id: str, price: str, owner: str) -> "StatusEvent":
        return cls(EventType.NFT_LISTED, {"tokenId": token_id, "price": price, "owner": owner})
