import logging
from typing import Any, Callable, Optional, Type

from signalkit.core.channel import Predicate, Subscription
from signalkit.core.signals import Signal
from signalkit.core.status import Change

logger = logging.getLogger(__name__)


class SignalBinding:
    """View-side subscription that re-renders whenever its signal changes.

    ``builder(signal)`` renders the current state; ``rebuild(change)`` is the
    view's own refresh callback. With ``owns_signal`` the binding disposes the
    signals it is bound to, otherwise their owner does.
    """

    def __init__(
        self,
        builder: Callable[[Signal], Any],
        rebuild: Optional[Callable[[Change], Any]] = None,
        predicate: Optional[Predicate] = None,
        owns_signal: bool = False,
    ) -> None:
        self.builder = builder
        self.rebuild = rebuild
        self.predicate = predicate
        self.owns_signal = owns_signal
        self.signal: Optional[Signal] = None
        self.rebuild_count = 0
        self.closed = False
        self._subscription: Optional[Subscription] = None

    @property
    def bound(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def bind(self, signal: Signal) -> None:
        if self.closed:
            logger.warning("Ignoring bind of %r on a closed binding", signal)
            return
        if signal is self.signal:
            return

        # the old subscription goes before the new one is installed
        self._unsubscribe()
        if self.owns_signal and self.signal is not None:
            self.signal.dispose()

        self.signal = signal
        self._subscription = signal.subscribe(self._on_change, self.predicate)

    def bind_from(self, locator, signal_type: Type[Signal]) -> Signal:
        signal = locator.of(signal_type)
        self.bind(signal)
        return signal

    def _on_change(self, change: Change) -> None:
        if self.closed:
            return
        self.rebuild_count += 1
        if self.rebuild is not None:
            self.rebuild(change)

    def build(self) -> Any:
        if self.signal is None:
            return None
        return self.builder(self.signal)

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._unsubscribe()
        if self.owns_signal and self.signal is not None:
            self.signal.dispose()
