"""Optional diagnostics for signals.

Nothing here changes how signals behave. An observer is handed to a signal
(or to the ``Scope`` that provides it) and is told about lifecycle events:

    registry = DebugRegistry()
    scope = Scope(observer=registry)
    ...
    print(registry.format_table())
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from signalkit.infrastructure.clock import utcnow
from signalkit.settings import settings

logger = logging.getLogger(__name__)

COLUMNS = [
    "name",
    "disposed",
    "busy",
    "success",
    "error",
    "parent_signals",
    "subscription_count",
    "created_at",
]


class SignalObserver:
    """Receives signal lifecycle events; every hook is optional."""

    def signal_attached(self, signal) -> None:
        pass

    def signal_changed(self, signal, change) -> None:
        pass

    def signal_disposed(self, signal) -> None:
        pass

    def parent_linked(self, signal, parent_type: type) -> None:
        pass

    def operation_finished(self, signal, elapsed: float, error: Optional[str]) -> None:
        pass


class LoggingObserver(SignalObserver):
    def __init__(
        self,
        state_trace: bool = True,
        parent_trace: bool = True,
        performance: bool = True,
    ) -> None:
        self.state_trace = state_trace
        self.parent_trace = parent_trace
        self.performance = performance

    def signal_attached(self, signal) -> None:
        logger.debug("Signal[%s] created", signal.name)

    def signal_changed(self, signal, change) -> None:
        if not self.state_trace:
            return
        target = f"{signal.name}.{change.topic}" if change.topic else signal.name
        logger.debug("Signal[%s] emitting %s", target, change.kind.value)

    def signal_disposed(self, signal) -> None:
        logger.debug("Signal[%s] disposing", signal.name)

    def parent_linked(self, signal, parent_type: type) -> None:
        if self.parent_trace:
            logger.debug("Signal[%s] subscribed to parent %s", signal.name, parent_type.__name__)

    def operation_finished(self, signal, elapsed: float, error: Optional[str]) -> None:
        if error is not None:
            logger.debug("Signal[%s] error: %s", signal.name, error)
        if self.performance:
            logger.debug("Signal[%s] operation took %dms", signal.name, int(elapsed * 1000))


class DebugRegistry(SignalObserver):
    """Tracks live signals for inspection."""

    def __init__(self) -> None:
        self._live: Dict[int, Any] = {}
        self._created: Dict[int, datetime] = {}

    def __len__(self) -> int:
        return len(self._live)

    def __contains__(self, signal) -> bool:
        return id(signal) in self._live

    def signal_attached(self, signal) -> None:
        self._live[id(signal)] = signal
        self._created.setdefault(id(signal), utcnow())

    def signal_disposed(self, signal) -> None:
        self._live.pop(id(signal), None)
        self._created.pop(id(signal), None)

    @property
    def all_signals(self) -> List[Any]:
        return list(self._live.values())

    def snapshot(self) -> List[Dict[str, Any]]:
        rows = []
        for key, signal in self._live.items():
            row = dict(signal.debug_info)
            row["parent_signals"] = ", ".join(row["parent_signals"])
            row["created_at"] = self._created.get(key)
            rows.append(row)
        return rows

    def as_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.snapshot(), columns=COLUMNS)

    def format_table(self) -> str:
        frame = self.as_frame()
        if frame.empty:
            return "No signals registered"
        header = f"Active signals ({len(frame)}):"
        return header + "\n" + frame.drop(columns=["created_at"]).to_string(index=False)


class CompositeObserver(SignalObserver):
    """Fans every hook out to several observers, isolating their failures."""

    def __init__(self, observers: Iterable[SignalObserver] = ()) -> None:
        self.observers: List[SignalObserver] = list(observers)

    def _dispatch(self, hook: str, *args: Any) -> None:
        for observer in self.observers:
            try:
                getattr(observer, hook)(*args)
            except Exception:
                logger.exception("Observer %r failed in %s", observer, hook)

    @property
    def registry(self) -> Optional[DebugRegistry]:
        for observer in self.observers:
            if isinstance(observer, DebugRegistry):
                return observer
        return None

    def signal_attached(self, signal) -> None:
        self._dispatch("signal_attached", signal)

    def signal_changed(self, signal, change) -> None:
        self._dispatch("signal_changed", signal, change)

    def signal_disposed(self, signal) -> None:
        self._dispatch("signal_disposed", signal)

    def parent_linked(self, signal, parent_type: type) -> None:
        self._dispatch("parent_linked", signal, parent_type)

    def operation_finished(self, signal, elapsed: float, error: Optional[str]) -> None:
        self._dispatch("operation_finished", signal, elapsed, error)


def observer_from_settings(project_settings=None) -> CompositeObserver:
    """Build the observers enabled by the debug flags (possibly none)."""
    project_settings = project_settings or settings
    observers: List[SignalObserver] = []
    if project_settings.debug_registry:
        observers.append(DebugRegistry())
    if project_settings.tracing_enabled:
        observers.append(
            LoggingObserver(
                state_trace=project_settings.state_trace,
                parent_trace=project_settings.parent_trace,
                performance=project_settings.performance_monitoring,
            )
        )
    return CompositeObserver(observers)
