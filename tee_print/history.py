"""Undo/redo history for editor sessions."""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .layers import Layer


@dataclass(frozen=True)
class Snapshot:
    layers: Tuple[Layer, ...]
    side: str = "front"


class EditHistory:
    """Linear undo stack of immutable snapshots.

    Identical consecutive snapshots are not recorded, and pushing after an
    undo discards the redo tail.
    """

    def __init__(self, initial: Optional[Snapshot] = None, limit: int = 100):
        self.limit = limit
        self._items: List[Snapshot] = []
        self._index = -1
        if initial is not None:
            self.push(initial)

    @property
    def current(self) -> Optional[Snapshot]:
        if self._index < 0:
            return None
        return self._items[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._items) - 1

    def push(self, snapshot: Snapshot) -> bool:
        """Record a snapshot; returns False if it equals the current one."""
        if self.current == snapshot:
            return False
        del self._items[self._index + 1:]
        self._items.append(snapshot)
        if len(self._items) > self.limit:
            del self._items[0]
        self._index = len(self._items) - 1
        return True

    def undo(self) -> Optional[Snapshot]:
        if not self.can_undo:
            return None
        self._index -= 1
        return self.current

    def redo(self) -> Optional[Snapshot]:
        if not self.can_redo:
            return None
        self._index += 1
        return self.current

    def __len__(self) -> int:
        return len(self._items)
