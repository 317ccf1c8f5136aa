import asyncio
import random

from signalkit.core.scope import Scope
from signalkit.core.status import ChangeKind, Phase
from signalkit.demo.signals import (
    COLOR,
    COUNTER,
    NOTIFICATION,
    WHITE,
    CounterChannel,
    ToggleMirrorSignal,
    ToggleSignal,
)
from signalkit.settings.base import DemoSettings


class DummySettings:
    demo = DemoSettings(
        counter_delay=0,
        notification_delay=0,
        color_delay=0,
        toggle_delay=0,
        http_timeout=1,
    )


def test_counter_channel_routes_topics():
    channel = CounterChannel(DummySettings(), rng=random.Random(4))
    channel.initialize(None)
    changes = []
    channel.subscribe(changes.append)

    channel.increment()
    channel.increment()
    channel.decrement()
    channel.toggle_notification()
    channel.change_color()

    assert channel.count == 1
    assert channel.is_open
    assert channel.color.data != WHITE
    assert len(channel.color.data) == 4
    assert [change.topic for change in changes] == [COUNTER, COUNTER, COUNTER, NOTIFICATION, COLOR]


def test_counter_channel_guarded_operations():
    channel = CounterChannel(DummySettings())
    channel.initialize(None)
    counter_changes = []
    channel.subscribe(counter_changes.append, lambda signal, change: change.topic == COUNTER)

    async def main():
        await channel.increment_later()
        await channel.increment_later()
        await channel.decrement_later()
        await channel.toggle_notification_later()
        await channel.change_color_later()

    asyncio.run(main())
    assert channel.count == 1
    assert channel.is_open
    assert [change.kind for change in counter_changes] == [ChangeKind.BUSY, ChangeKind.SUCCESS] * 3
    assert channel.status.phase is Phase.IDLE


def test_toggle_flips_after_start():
    scope = Scope()
    toggle = scope.provide(ToggleSignal, lambda: ToggleSignal(DummySettings()))
    toggle.initialize(scope)
    assert toggle.busy

    asyncio.run(scope.start())
    assert toggle.is_open
    assert toggle.status.phase is Phase.SUCCESS


def test_mirror_follows_toggle():
    scope = Scope()
    toggle = scope.provide(ToggleSignal, lambda: ToggleSignal(DummySettings()))
    mirror = scope.provide(ToggleMirrorSignal, lambda: ToggleMirrorSignal(DummySettings()))
    phases = []
    mirror.subscribe(lambda change: phases.append(mirror.status.phase))

    asyncio.run(scope.start())
    assert mirror.is_open
    assert phases == [Phase.SUCCESS]

    asyncio.run(toggle.change_later(fail_with="switch jammed"))
    assert phases[-2:] == [Phase.BUSY, Phase.ERROR]
    assert mirror.error == "toggle failed: switch jammed"
    assert mirror.is_open

    toggle.change()
    assert not mirror.is_open
    assert mirror.success
    assert mirror.updates == 4


def test_disposing_scope_stops_the_mirror():
    scope = Scope()
    toggle = scope.provide(ToggleSignal, lambda: ToggleSignal(DummySettings()))
    mirror = scope.provide(ToggleMirrorSignal, lambda: ToggleMirrorSignal(DummySettings()))
    mirror.initialize(scope)

    scope.dispose()
    toggle.change()
    assert mirror.updates == 0
    assert toggle.listener_count == 0
