import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from atelier.models import get_datetime_utc

logger = logging.getLogger(__name__)

WriteStatus = Literal["pending", "confirmed", "failed"]


@dataclass
class StoreError:
    operation: str
    path: str
    error: Exception
    occurred_at: datetime = field(default_factory=get_datetime_utc)


class ErrorChannel:
    """Process-wide sink for failures of writes nobody is awaiting."""

    def __init__(self, history_size: int = 100):
        self._history_size = history_size
        self._subscribers: list[Callable[[StoreError], None]] = []
        self.history: list[StoreError] = []

    def subscribe(self, callback: Callable[[StoreError], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, error: StoreError) -> None:
        logger.error(
            "Background %s on %s failed: %s", error.operation, error.path, error.error
        )
        self.history.append(error)
        del self.history[: -self._history_size]
        for callback in list(self._subscribers):
            try:
                callback(error)
            except Exception as exc:
                logger.warning("Store error subscriber raised: %s", exc)


class PendingWrite:
    """Handle for a fire-and-forget write.

    The write starts as ``pending``; it becomes ``confirmed`` once committed
    or ``failed`` if the store rejected it.
    """

    def __init__(self, operation: str, path: str):
        self.id = uuid.uuid4().hex
        self.operation = operation
        self.path = path
        self.status: WriteStatus = "pending"
        self.error: Exception | None = None
        self.result: Any = None
        self._task: asyncio.Task | None = None

    @property
    def done(self) -> bool:
        return self.status != "pending"

    def attach(self, task: asyncio.Task) -> None:
        self._task = task

    async def wait(self) -> WriteStatus:
        """Wait for the write to settle without raising its error."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.status

    def __repr__(self) -> str:
        return f"PendingWrite({self.operation} {self.path} {self.status})"


class WriteTracker:
    """Eventually-consistent view of the non-blocking writes issued by one owner."""

    def __init__(self) -> None:
        self._writes: list[PendingWrite] = []

    def track(self, write: PendingWrite) -> PendingWrite:
        self._writes.append(write)
        return write

    @property
    def pending(self) -> list[PendingWrite]:
        return [w for w in self._writes if w.status == "pending"]

    @property
    def failed(self) -> list[PendingWrite]:
        return [w for w in self._writes if w.status == "failed"]

    def status_for(self, path: str) -> WriteStatus | None:
        """Status of the most recent write issued against ``path``."""
        for write in reversed(self._writes):
            if write.path == path:
                return write.status
        return None

    async def flush(self) -> list[PendingWrite]:
        """Wait for every outstanding write; returns the ones that failed."""
        for write in list(self._writes):
            if not write.done:
                await write.wait()
        self._writes = [w for w in self._writes if w.status != "confirmed"]
        return self.failed

    def clear_failed(self) -> None:
        self._writes = [w for w in self._writes if w.status != "failed"]
