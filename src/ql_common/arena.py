"""Append-only arena: one owned, growable table per entity type.

Records are addressed by their sequential integer index; nothing outside the
arena keeps object references across operations. Never shrinks, except when
an aborted operation's appends are rolled back.
"""

import copy
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from src.ql_common.errors import AppError

T = TypeVar("T")


@dataclass(eq=False)
class ArenaFrame(Generic[T]):
    length: int
    # Pre-images of rows fetched while the frame was open
    saved: dict[int, T] = field(default_factory=dict)


class Arena(Generic[T]):
    def __init__(self, not_found: Callable[[int], AppError]) -> None:
        self._rows: list[T] = []
        self._not_found = not_found
        self._frames: list[ArenaFrame[T]] = []

    def next_id(self) -> int:
        return len(self._rows)

    def append(self, row: T) -> int:
        self._rows.append(row)
        return len(self._rows) - 1

    def get(self, row_id: int) -> T:
        """Rows are mutated in place, so a fetch records the pre-image."""
        if not (0 <= row_id < len(self._rows)):
            raise self._not_found(row_id)
        row = self._rows[row_id]
        for frame in self._frames:
            if row_id < frame.length and row_id not in frame.saved:
                frame.saved[row_id] = copy.deepcopy(row)
        return row

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[T]:
        return iter(self._rows)

    # Journaled
    def snapshot(self) -> ArenaFrame[T]:
        frame: ArenaFrame[T] = ArenaFrame(len(self._rows))
        self._frames.append(frame)
        return frame

    def restore(self, frame: ArenaFrame[T]) -> None:
        del self._rows[frame.length:]
        for row_id, row in frame.saved.items():
            self._rows[row_id] = row
        self._close(frame)

    def discard(self, frame: ArenaFrame[T]) -> None:
        self._close(frame)

    def _close(self, frame: ArenaFrame[T]) -> None:
        for depth, open_frame in enumerate(self._frames):
            if open_frame is frame:
                del self._frames[depth:]
                return

    def load(self, rows: list[T]) -> None:
        """Replace the table with rows loaded from storage, ordered by id."""
        self._rows = list(rows)
