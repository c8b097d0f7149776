"""Single-level undo snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from txreview.core.records import BankTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoSnapshot:
    label: str
    records: tuple[BankTransaction, ...]


class UndoManager:
    """Holds at most one snapshot of pre-mutation records.

    Taking a snapshot replaces the previous one; consuming returns it and
    leaves the manager empty. There is no history beyond one step.
    """

    def __init__(self) -> None:
        self._snapshot: Optional[UndoSnapshot] = None

    def snapshot(self, before: BankTransaction | Sequence[BankTransaction], label: str = "") -> None:
        records = (before,) if isinstance(before, BankTransaction) else tuple(before)
        if not records:
            raise ValueError("Cannot take an empty undo snapshot")
        if self._snapshot is not None:
            logger.debug("Discarding undo snapshot for %r", self._snapshot.label)
        self._snapshot = UndoSnapshot(label=label, records=records)

    def consume(self) -> Optional[UndoSnapshot]:
        snapshot, self._snapshot = self._snapshot, None
        return snapshot

    def clear(self) -> None:
        self._snapshot = None

    def can_undo(self) -> bool:
        return self._snapshot is not None

    @property
    def label(self) -> Optional[str]:
        return self._snapshot.label if self._snapshot else None
