import logging
from typing import Callable, Dict, List, Optional

from signalkit.core.binding import SignalBinding
from signalkit.core.scope import Scope
from signalkit.core.signals import Signal
from signalkit.core.status import Change
from signalkit.demo.signals import COLOR, COUNTER, NOTIFICATION, CounterChannel, ToggleMirrorSignal, ToggleSignal

logger = logging.getLogger(__name__)

Writer = Callable[[str], object]


def describe(signal: Signal) -> str:
    """One-line rendering of a demo signal, as a view would show it."""
    if isinstance(signal, CounterChannel):
        parts = [
            f"count={signal.count} ({signal.counter.status})",
            f"notification={'on' if signal.is_open else 'off'} ({signal.notification.status})",
            f"color={signal.color.data} ({signal.color.status})",
        ]
        return f"{signal.name}: " + ", ".join(parts)
    if isinstance(signal, (ToggleSignal, ToggleMirrorSignal)):
        return f"{signal.name}: {'on' if signal.is_open else 'off'} ({signal.status})"
    return f"{signal.name}: {signal.status}"


class DemoRunner:
    """Drives the demo signals of a scope and prints every re-render."""

    def __init__(self, scope: Scope, writer: Writer) -> None:
        self.scope = scope
        self.writer = writer
        self.bindings: List[SignalBinding] = []
        self.frames: List[str] = []

    def attach(self) -> None:
        for signal in self.scope.iter_signals():
            binding = SignalBinding(describe, rebuild=self._rebuild_for(signal))
            binding.bind(signal)
            self.bindings.append(binding)
            logger.info("Bound view to %s", signal.name)

    def _rebuild_for(self, signal: Signal) -> Callable[[Change], None]:
        def rebuild(change: Change) -> None:
            target = f"{signal.name}.{change.topic}" if change.topic else signal.name
            frame = f"[{target} {change.kind.value}] {describe(signal)}"
            self.frames.append(frame)
            self.writer(frame + "\n")

        return rebuild

    async def run_once(self) -> Dict[str, int]:
        """Start the scope and exercise each demo signal once."""
        self.attach()
        await self.scope.start()

        channel: Optional[CounterChannel] = self.scope.find(CounterChannel)
        if channel is not None:
            logger.info("Exercising %s topics: %s", channel.name, ", ".join([COUNTER, NOTIFICATION, COLOR]))
            channel.increment()
            await channel.increment_later()
            await channel.decrement_later()
            await channel.toggle_notification_later()
            await channel.change_color_later()

        toggle: Optional[ToggleSignal] = self.scope.find(ToggleSignal)
        if toggle is not None:
            toggle.change()
            await toggle.change_later(fail_with="switch jammed")

        return {binding.signal.name: binding.rebuild_count for binding in self.bindings}

    def close(self) -> None:
        for binding in self.bindings:
            binding.close()
        self.bindings.clear()
