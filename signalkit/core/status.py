"""Busy/success/error state machine shared by signals and their sub-states."""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Set

from signalkit.infrastructure.clock import Stopwatch

logger = logging.getLogger(__name__)

ErrorFormatter = Callable[[BaseException], Optional[str]]


class Phase(str, Enum):
    IDLE = "idle"
    BUSY = "busy"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Status:
    phase: Phase = Phase.IDLE
    message: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.phase is Phase.BUSY

    @property
    def success(self) -> bool:
        return self.phase in (Phase.IDLE, Phase.SUCCESS)

    def __str__(self) -> str:
        if self.phase is Phase.ERROR and self.message:
            return f"error({self.message})"
        return self.phase.value


IDLE = Status()
BUSY = Status(Phase.BUSY)
SUCCESS = Status(Phase.SUCCESS)


class ChangeKind(str, Enum):
    BUSY = "busy"
    SUCCESS = "success"
    ERROR = "error"
    UPDATED = "updated"


@dataclass(frozen=True)
class Change:
    """Marker delivered with every notification.

    ``topic`` names the sub-state that changed, ``None`` meaning the signal
    itself; listeners match on ``kind`` and ``topic`` rather than on types.
    """

    kind: ChangeKind
    topic: Optional[str] = None
    source: Any = field(default=None, compare=False, repr=False)


class StatusEngine(ABC):
    """Enforces the status transitions and gates notification.

    Subclasses decide where notifications go (``_emit``) and when the engine
    is dead (``is_disposed``). Every mutator is a silent no-op once disposed.
    """

    def __init__(self) -> None:
        self._status: Status = IDLE
        self._tasks: Set[asyncio.Future] = set()

    @property
    @abstractmethod
    def is_disposed(self) -> bool:
        """Whether the owner has been disposed."""

    @abstractmethod
    def _emit(self, kind: ChangeKind) -> None:
        """Deliver a status change to listeners."""

    def _operation_finished(self, elapsed: float, error: Optional[str]) -> None:
        """Hook called after every guarded operation."""

    @property
    def status(self) -> Status:
        return self._status

    @property
    def busy(self) -> bool:
        return self._status.busy

    @property
    def success(self) -> bool:
        return self._status.success

    @property
    def error(self) -> Optional[str]:
        """Last error message; stays until the next busy or success."""
        return self._status.message

    def consume_error(self) -> Optional[str]:
        """Return the error message and clear it, without notifying."""
        message = self._status.message
        if message is not None:
            self._status = Status(Phase.ERROR)
        return message

    def mark_busy(self, notify: bool = True) -> None:
        if self.is_disposed or self._status.busy:
            return
        self._status = BUSY
        if notify:
            self._emit(ChangeKind.BUSY)

    def mark_success(self, notify: bool = True) -> None:
        if self.is_disposed:
            return
        self._status = SUCCESS
        if notify:
            self._emit(ChangeKind.SUCCESS)

    def mark_error(self, message: Optional[str], notify: bool = True) -> None:
        if self.is_disposed:
            return
        self._status = Status(Phase.ERROR, message)
        if notify:
            self._emit(ChangeKind.ERROR)

    async def run_guarded(
        self,
        operation: Callable[[], Any],
        error_formatter: Optional[ErrorFormatter] = None,
        notify_busy: bool = True,
        notify_success: bool = True,
        notify_error: bool = True,
    ) -> None:
        """Run ``operation`` between busy and exactly one terminal status.

        ``operation`` may be a plain callable or return an awaitable; faults
        from either become the error status and never reach the caller.
        Awaitables run as tracked tasks so that disposal can cancel them.
        """
        if self.is_disposed:
            return

        self.mark_busy(notify=notify_busy)
        if self.is_disposed:
            # a listener disposed us while handling busy
            return

        stopwatch = Stopwatch()
        stopwatch.start()
        error: Optional[str] = None
        try:
            result = operation()
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                try:
                    await task
                finally:
                    self._tasks.discard(task)
        except asyncio.CancelledError:
            if self.is_disposed:
                logger.debug("%r operation cancelled by dispose", self)
                return
            error = "cancelled"
            self.mark_error(error, notify=notify_error)
            raise
        except Exception as exc:
            error = self._format_error(exc, error_formatter)
            logger.debug("%r operation failed: %s", self, error, exc_info=True)
            self.mark_error(error, notify=notify_error)
        else:
            self.mark_success(notify=notify_success)
        finally:
            elapsed = stopwatch.stop()
            if not self.is_disposed:
                self._operation_finished(elapsed, error)

    @staticmethod
    def _format_error(exc: Exception, error_formatter: Optional[ErrorFormatter]) -> str:
        if error_formatter is not None:
            try:
                message = error_formatter(exc)
            except Exception:
                logger.exception("Error formatter failed for %r", exc)
                message = None
            if message:
                return message
        return str(exc) or exc.__class__.__name__

    def _cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    @property
    def pending_operations(self) -> int:
        return len(self._tasks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self._status.phase.value,
            "busy": self.busy,
            "success": self.success,
            "error": self.error,
        }

    def from_dict(self, data: Mapping[str, Any]) -> None:
        """Prime the status from a snapshot without notifying."""
        if self.is_disposed:
            return
        if "phase" in data:
            phase = Phase(data["phase"])
        elif data.get("busy"):
            phase = Phase.BUSY
        elif data.get("error") or not data.get("success", True):
            phase = Phase.ERROR
        else:
            phase = Phase.SUCCESS
        message = data.get("error") if phase is Phase.ERROR else None
        self._status = Status(phase, message)
