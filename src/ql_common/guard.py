"""Operation guard — non-reentrant, all-or-nothing execution of public operations.

Usage in any engine:
    with self._guard("buy"):
        ...validate, mutate, then call collaborators...

Entering while another guarded operation is in flight raises
ReentrantCallError. Every participant opens a checkpoint on entry and is
rolled back to it if the body raises, so a failed operation leaves zero
partial state. Checkpoints record pre-images lazily, only for the records an
operation actually touches. The busy flag is cleared on every exit path.

Checkpoints nest: the launchpad service opens an outer one around an
operation and its database write, so a failed write rolls back too.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from src.ql_common.errors import ReentrantCallError

logger = logging.getLogger(__name__)


class Journaled(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...

    def discard(self, snapshot: Any) -> None: ...


Checkpoint = list[tuple[Journaled, Any]]


def is_journaled(obj: object) -> bool:
    return all(hasattr(obj, name) for name in ("snapshot", "restore", "discard"))


class OperationGuard:
    def __init__(self, participants: list[Journaled] | None = None) -> None:
        self._participants: list[Journaled] = list(participants or [])
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def attach(self, participant: Journaled) -> None:
        if participant not in self._participants:
            self._participants.append(participant)

    def checkpoint(self) -> Checkpoint:
        return [(p, p.snapshot()) for p in self._participants]

    def rollback(self, checkpoint: Checkpoint) -> None:
        for participant, snap in reversed(checkpoint):
            participant.restore(snap)

    def release(self, checkpoint: Checkpoint) -> None:
        for participant, snap in reversed(checkpoint):
            participant.discard(snap)

    @contextmanager
    def __call__(self, operation: str) -> Iterator[None]:
        if self._busy:
            raise ReentrantCallError()
        self._busy = True
        checkpoint = self.checkpoint()
        try:
            yield
        except Exception:
            self.rollback(checkpoint)
            logger.info("operation %s aborted, state restored", operation)
            raise
        else:
            self.release(checkpoint)
        finally:
            self._busy = False
