"""Signals: observable state with a busy/success/error status.

Usage:
    class CounterSignal(Signal):
        def __init__(self) -> None:
            super().__init__()
            self.count = 0

        async def increment(self) -> None:
            async def apply():
                await asyncio.sleep(0.5)
                self.count += 1

            await self.run_guarded(apply)

A signal is owned by exactly one party (its creator or a ``Scope``) and is
disposed exactly once by that owner.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from signalkit.core.channel import Channel, Listener, Predicate, Subscription
from signalkit.core.status import ChangeKind, Change, StatusEngine

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="Signal")


class Signal(StatusEngine):
    """Base class for application signals.

    Lifecycle hooks, in order: ``init_state(locator)`` (once, synchronous,
    the place to link parents and prime state with ``notify=False``),
    ``after_init_state()`` (once, asynchronous) and ``dispose()``.
    """

    def __init__(self, observer=None) -> None:
        super().__init__()
        self.name = type(self).__name__
        self.observer = None
        self._channel = Channel(self)
        self._parents: Dict[type, Subscription] = {}
        self._holders: Dict[str, "StateHolder"] = {}
        self._disposed = False
        self._initialized = False
        self._started = False
        if observer is not None:
            self.attach_observer(observer)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else str(self.status)
        return f"<{self.name} {state}>"

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def listener_count(self) -> int:
        return len(self._channel)

    # -- observation -----------------------------------------------------

    def attach_observer(self, observer) -> None:
        self.observer = observer
        self._observe("signal_attached")

    def _observe(self, hook: str, *args: Any) -> None:
        if self.observer is None:
            return
        try:
            getattr(self.observer, hook)(self, *args)
        except Exception:
            logger.exception("Observer hook %s failed for %s", hook, self.name)

    def _operation_finished(self, elapsed: float, error: Optional[str]) -> None:
        self._observe("operation_finished", elapsed, error)

    # -- notification ----------------------------------------------------

    def subscribe(self, listener: Listener, predicate: Optional[Predicate] = None) -> Subscription:
        return self._channel.subscribe(listener, predicate)

    def unsubscribe(self, subscription: Subscription) -> None:
        self._channel.unsubscribe(subscription)

    def _emit(self, kind: ChangeKind, topic: Optional[str] = None) -> None:
        if self._disposed:
            return
        change = Change(kind, topic=topic, source=self)
        self._observe("signal_changed", change)
        self._channel.notify_all(change)

    def notify(self, topic: Optional[str] = None) -> None:
        """Announce a payload change that did not go through the status machine."""
        self._emit(ChangeKind.UPDATED, topic)

    # -- sub-states ------------------------------------------------------

    def holder(self, topic: str, data: Any = None) -> "StateHolder":
        if topic in self._holders:
            raise ValueError(f"{self.name} already has a state holder for '{topic}'")
        state = StateHolder(self, topic, data)
        self._holders[topic] = state
        return state

    @property
    def holders(self) -> Dict[str, "StateHolder"]:
        return dict(self._holders)

    # -- lifecycle -------------------------------------------------------

    def init_state(self, locator) -> None:
        """Hook executed once before the signal is started."""

    async def after_init_state(self) -> None:
        """Hook executed once after every signal of the scope is initialized."""

    def initialize(self, locator) -> None:
        if self._disposed or self._initialized:
            return
        # flag first: init_state may trigger lookups that come back here
        self._initialized = True
        self.init_state(locator)

    async def start(self) -> None:
        if self._disposed or self._started:
            return
        self._started = True
        await self.after_init_state()

    def subscribe_to_parent(
        self,
        locator,
        parent_type: Type[S],
        on_update: Callable[[S], Any],
    ) -> Optional[Subscription]:
        """Re-derive this signal whenever the nearest ``parent_type`` notifies.

        ``locator.of(parent_type)`` raises ``SignalNotFound`` when no parent is
        provided; that is a wiring defect and is not swallowed.
        """
        if not (isinstance(parent_type, type) and issubclass(parent_type, Signal)):
            raise TypeError(f"Parent type must be a Signal subclass, got {parent_type!r}")
        if self._disposed:
            return None

        existing = self._parents.get(parent_type)
        if existing is not None and existing.active:
            logger.debug("%s already follows %s", self.name, parent_type.__name__)
            return existing

        parent = locator.of(parent_type)

        def project(change: Change) -> None:
            if not self._disposed:
                on_update(parent)

        subscription = parent.subscribe(project)
        self._parents[parent_type] = subscription
        self._observe("parent_linked", parent_type)
        return subscription

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._observe("signal_disposed")

        self._cancel_pending()
        for state in self._holders.values():
            state._cancel_pending()
        for subscription in self._parents.values():
            subscription.cancel()
        self._channel.close()

    # -- introspection ---------------------------------------------------

    @property
    def parent_types(self) -> List[str]:
        return [parent_type.__name__ for parent_type in self._parents]

    @property
    def debug_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "disposed": self._disposed,
            "busy": self.busy,
            "success": self.success,
            "error": self.error,
            "parent_signals": self.parent_types,
            "subscription_count": self.listener_count,
        }


class StateHolder(StatusEngine):
    """A named sub-state whose changes travel on its owner's channel."""

    def __init__(self, owner: Signal, topic: str, data: Any = None) -> None:
        super().__init__()
        self.owner = owner
        self.topic = topic
        self.data = data

    def __repr__(self) -> str:
        return f"<StateHolder {self.owner.name}.{self.topic} {self.status}>"

    @property
    def is_disposed(self) -> bool:
        return self.owner.is_disposed

    def _emit(self, kind: ChangeKind) -> None:
        self.owner._emit(kind, self.topic)

    def _operation_finished(self, elapsed: float, error: Optional[str]) -> None:
        self.owner._operation_finished(elapsed, error)

    def notify(self) -> None:
        self.owner.notify(self.topic)
