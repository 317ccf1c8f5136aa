import asyncio

from signalkit.core.debug import (
    COLUMNS,
    CompositeObserver,
    DebugRegistry,
    LoggingObserver,
    SignalObserver,
    observer_from_settings,
)
from signalkit.core.scope import Scope
from signalkit.core.signals import Signal


class UserSignal(Signal):
    pass


class ProfileSignal(Signal):
    def init_state(self, locator) -> None:
        self.subscribe_to_parent(locator, UserSignal, lambda user: self.mark_success())


class DummySettings:
    def __init__(self, registry=False, state=False, parent=False, performance=False):
        self.debug_registry = registry
        self.state_trace = state
        self.parent_trace = parent
        self.performance_monitoring = performance

    @property
    def tracing_enabled(self) -> bool:
        return self.state_trace or self.parent_trace or self.performance_monitoring


class RecordingObserver(SignalObserver):
    def __init__(self):
        self.events = []

    def signal_attached(self, signal):
        self.events.append(("attached", signal.name))

    def signal_changed(self, signal, change):
        self.events.append(("changed", change.kind.value))

    def signal_disposed(self, signal):
        self.events.append(("disposed", signal.name))

    def parent_linked(self, signal, parent_type):
        self.events.append(("linked", parent_type.__name__))

    def operation_finished(self, signal, elapsed, error):
        self.events.append(("finished", error))


def test_registry_tracks_live_signals():
    registry = DebugRegistry()
    scope = Scope(observer=registry)
    scope.provide(UserSignal, UserSignal)
    profile = scope.provide(ProfileSignal, ProfileSignal)
    profile.initialize(scope)

    rows = registry.snapshot()
    assert [row["name"] for row in rows] == ["UserSignal", "ProfileSignal"]
    assert rows[1]["parent_signals"] == "UserSignal"
    assert rows[0]["subscription_count"] == 1
    assert rows[0]["created_at"] is not None

    profile.dispose()
    assert registry.all_signals == [scope.of(UserSignal)]


def test_registry_frame_and_table():
    registry = DebugRegistry()
    assert registry.as_frame().empty
    assert list(registry.as_frame().columns) == COLUMNS
    assert registry.format_table() == "No signals registered"

    signal = UserSignal(observer=registry)
    signal.mark_error("offline")
    frame = registry.as_frame()
    assert frame.loc[0, "error"] == "offline"
    assert not frame.loc[0, "success"]

    table = registry.format_table()
    assert table.startswith("Active signals (1):")
    assert "UserSignal" in table


def test_observer_sees_lifecycle_events():
    recorder = RecordingObserver()
    scope = Scope(observer=recorder)
    scope.provide(UserSignal, UserSignal)
    profile = scope.provide(ProfileSignal, ProfileSignal)
    asyncio.run(scope.start())

    def fail():
        raise ValueError("nope")

    asyncio.run(profile.run_guarded(fail))
    scope.dispose()

    assert recorder.events == [
        ("attached", "UserSignal"),
        ("attached", "ProfileSignal"),
        ("linked", "UserSignal"),
        ("changed", "busy"),
        ("changed", "error"),
        ("finished", "nope"),
        ("disposed", "ProfileSignal"),
        ("disposed", "UserSignal"),
    ]


def test_composite_isolates_failing_observer():
    class Broken(SignalObserver):
        def signal_attached(self, signal):
            raise RuntimeError("observer bug")

    registry = DebugRegistry()
    composite = CompositeObserver([Broken(), registry])
    signal = UserSignal(observer=composite)
    assert signal in registry
    assert composite.registry is registry


def test_logging_observer_writes_traces(caplog):
    caplog.set_level("DEBUG", logger="signalkit.core.debug")
    signal = UserSignal(observer=LoggingObserver())
    asyncio.run(signal.run_guarded(lambda: None))
    messages = [record.getMessage() for record in caplog.records]
    assert "Signal[UserSignal] created" in messages
    assert "Signal[UserSignal] emitting busy" in messages
    assert any(message.startswith("Signal[UserSignal] operation took") for message in messages)


def test_observer_from_settings():
    assert observer_from_settings(DummySettings()).observers == []

    composite = observer_from_settings(DummySettings(registry=True, state=True))
    assert isinstance(composite.registry, DebugRegistry)
    tracer = composite.observers[1]
    assert isinstance(tracer, LoggingObserver)
    assert tracer.state_trace and not tracer.performance
