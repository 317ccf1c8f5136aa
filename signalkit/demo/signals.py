import asyncio
import logging
import random
from typing import Optional, Tuple

from signalkit.core.signals import Signal
from signalkit.settings import settings

logger = logging.getLogger(__name__)

COUNTER = "counter"
NOTIFICATION = "notification"
COLOR = "color"

WHITE = (255, 255, 255, 255)

Color = Tuple[int, int, int, int]


class CounterChannel(Signal):
    """Three independent sub-states sharing one channel.

    Views filter on ``change.topic`` to rebuild only for the part they show.
    """

    def __init__(self, project_settings=None, rng: Optional[random.Random] = None) -> None:
        super().__init__()
        self.settings = project_settings or settings
        self.rng = rng or random.Random()
        self.counter = self.holder(COUNTER, 0)
        self.notification = self.holder(NOTIFICATION, False)
        self.color = self.holder(COLOR, WHITE)

    @property
    def count(self) -> int:
        return self.counter.data

    @property
    def is_open(self) -> bool:
        return self.notification.data

    def init_state(self, locator) -> None:
        self.counter.data = 0
        self.counter.mark_success(notify=False)

    def increment(self) -> None:
        self.counter.data += 1
        self.counter.mark_success()

    def decrement(self) -> None:
        self.counter.data -= 1
        self.counter.mark_success()

    async def increment_later(self) -> None:
        async def apply():
            await asyncio.sleep(self.settings.demo.counter_delay)
            self.counter.data += 1

        await self.counter.run_guarded(apply)

    async def decrement_later(self) -> None:
        async def apply():
            await asyncio.sleep(self.settings.demo.counter_delay)
            self.counter.data -= 1

        await self.counter.run_guarded(apply)

    def toggle_notification(self) -> None:
        self.notification.data = not self.notification.data
        self.notification.mark_success()

    async def toggle_notification_later(self) -> None:
        async def apply():
            await asyncio.sleep(self.settings.demo.notification_delay)
            self.notification.data = not self.notification.data

        await self.notification.run_guarded(apply)

    def change_color(self) -> None:
        self.color.data = self._random_color()
        self.color.mark_success()

    async def change_color_later(self) -> None:
        async def apply():
            await asyncio.sleep(self.settings.demo.color_delay)
            self.color.data = self._random_color()

        await self.color.run_guarded(apply)

    def _random_color(self) -> Color:
        return tuple(self.rng.randrange(256) for _ in range(4))  # type: ignore[return-value]


class ToggleSignal(Signal):
    """A single on/off flag that flips itself once after start."""

    def __init__(self, project_settings=None) -> None:
        super().__init__()
        self.settings = project_settings or settings
        self.is_open = False

    def init_state(self, locator) -> None:
        self.is_open = False
        self.mark_busy(notify=False)

    async def after_init_state(self) -> None:
        await self.change_later()

    def change(self) -> None:
        self.is_open = not self.is_open
        self.mark_success()

    async def change_later(self, fail_with: Optional[str] = None) -> None:
        async def apply():
            await asyncio.sleep(self.settings.demo.toggle_delay)
            if fail_with:
                raise RuntimeError(fail_with)
            self.is_open = not self.is_open

        await self.run_guarded(apply)


class ToggleMirrorSignal(Signal):
    """Follows the nearest ToggleSignal and mirrors its flag and status."""

    def __init__(self, project_settings=None) -> None:
        super().__init__()
        self.settings = project_settings or settings
        self.is_open = False
        self.updates = 0

    def init_state(self, locator) -> None:
        self.subscribe_to_parent(locator, ToggleSignal, self._follow)

    def _follow(self, toggle: ToggleSignal) -> None:
        self.updates += 1
        if toggle.busy:
            self.mark_busy()
        elif toggle.error is not None:
            self.mark_error(f"toggle failed: {toggle.error}")
        else:
            self.is_open = toggle.is_open
            self.mark_success()
