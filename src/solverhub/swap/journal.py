"""Coordination journal for multi-step workflows.

Records each step that took effect so a workflow that fails half way can
be reconciled by an operator. Nothing is rolled back automatically.
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class JournalStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    NEEDS_RECONCILIATION = "needs_reconciliation"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JournalEntry:
    workflow: str
    details: dict[str, Any]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JournalStatus = JournalStatus.IN_PROGRESS
    steps: list[str] = field(default_factory=list)
    error: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "workflow": self.workflow,
            "status": self.status.value,
            "steps": list(self.steps),
            "details": dict(self.details),
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class CoordinationJournal:
    """In-memory journal of workflow steps."""

    def __init__(self):
        self._entries: dict[str, JournalEntry] = {}

    def begin(self, workflow: str, **details: Any) -> JournalEntry:
        entry = JournalEntry(workflow=workflow, details=details)
        self._entries[entry.id] = entry
        logger.debug(f"Journal {entry.id}: {workflow} started")
        return entry

    def record(self, entry: JournalEntry, step: str, **details: Any) -> None:
        """Record a step that has taken effect."""
        entry.steps.append(step)
        entry.details.update(details)
        entry.updated_at = _now()
        logger.debug(f"Journal {entry.id}: {step}")

    def complete(self, entry: JournalEntry) -> None:
        entry.status = JournalStatus.COMPLETED
        entry.updated_at = _now()

    def fail(self, entry: JournalEntry, error: BaseException) -> None:
        """Mark a workflow failed with no step having taken effect."""
        entry.status = JournalStatus.FAILED
        entry.error = str(error)
        entry.updated_at = _now()

    def flag(self, entry: JournalEntry, error: BaseException) -> None:
        """Mark a workflow that failed after some steps took effect."""
        entry.status = JournalStatus.NEEDS_RECONCILIATION
        entry.error = str(error)
        entry.updated_at = _now()
        logger.error(
            f"Journal {entry.id}: {entry.workflow} needs reconciliation "
            f"after {entry.steps}: {error}"
        )

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        return self._entries.get(entry_id)

    def pending_reconciliation(self) -> list[JournalEntry]:
        return [
            entry for entry in self._entries.values()
            if entry.status == JournalStatus.NEEDS_RECONCILIATION
        ]
