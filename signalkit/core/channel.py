import logging
from typing import Any, Callable, Dict, List, Optional

from signalkit.core.status import Change

logger = logging.getLogger(__name__)

Listener = Callable[[Change], Any]
Predicate = Callable[[Any, Change], bool]


class Subscription:
    """Handle for one listener on one channel; cancelling twice is harmless."""

    def __init__(
        self,
        channel: Optional["Channel"],
        listener: Listener,
        predicate: Optional[Predicate] = None,
    ) -> None:
        self._channel = channel
        self.listener = listener
        self.predicate = predicate
        self.active = channel is not None
        self.replaced_by: Optional["Subscription"] = None

    def cancel(self) -> None:
        if not self.active:
            return
        channel, self._channel = self._channel, None
        self.active = False
        channel._detach(self)

    def _deactivate(self, replaced_by: Optional["Subscription"] = None) -> None:
        self._channel = None
        self.active = False
        self.replaced_by = replaced_by

    def current(self) -> Optional["Subscription"]:
        """Return the live handle for this listener, following re-subscriptions."""
        subscription: Optional[Subscription] = self
        while subscription is not None and not subscription.active:
            subscription = subscription.replaced_by
        return subscription

    def wants(self, owner: Any, change: Change) -> bool:
        return self.predicate is None or bool(self.predicate(owner, change))


class Channel:
    """Synchronous broadcast of changes to the listeners of one owner.

    Each emission walks a snapshot of the subscriptions in subscription order.
    Emissions requested while a pass is running are queued and delivered after
    it, each with a fresh snapshot.
    """

    def __init__(self, owner: Any = None) -> None:
        self.owner = owner
        # keyed by listener so the same callback never holds two subscriptions
        self._subscriptions: Dict[Any, Subscription] = {}
        self._queue: List[Change] = []
        self._delivering = False
        self.closed = False

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        listener: Listener,
        predicate: Optional[Predicate] = None,
    ) -> Subscription:
        if self.closed:
            logger.debug("Ignoring subscription to closed channel of %r", self.owner)
            return Subscription(None, listener, predicate)

        subscription = Subscription(self, listener, predicate)
        previous = self._subscriptions.pop(listener, None)
        if previous is not None:
            # a pass already holding the old handle still reaches the listener
            previous._deactivate(replaced_by=subscription)
        self._subscriptions[listener] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()

    def _detach(self, subscription: Subscription) -> None:
        if self._subscriptions.get(subscription.listener) is subscription:
            del self._subscriptions[subscription.listener]

    def notify_all(self, change: Change) -> None:
        if self.closed:
            return
        self._queue.append(change)
        if self._delivering:
            return

        self._delivering = True
        try:
            while self._queue and not self.closed:
                current = self._queue.pop(0)
                for snapshot in list(self._subscriptions.values()):
                    subscription = snapshot.current()
                    if subscription is not None:
                        self._deliver(subscription, current)
        finally:
            self._delivering = False

    def _deliver(self, subscription: Subscription, change: Change) -> None:
        try:
            if subscription.wants(self.owner, change):
                subscription.listener(change)
        except Exception:
            logger.exception(
                "Listener %r failed while handling %s from %r",
                subscription.listener,
                change.kind.value,
                self.owner,
            )

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for subscription in list(self._subscriptions.values()):
            subscription._deactivate()
        self._subscriptions.clear()
        self._queue.clear()
