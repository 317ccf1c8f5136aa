import pytest

from signalkit.core.binding import SignalBinding
from signalkit.core.exceptions import SignalNotFound
from signalkit.core.scope import Scope
from signalkit.core.signals import Signal


class CartSignal(Signal):
    def __init__(self) -> None:
        super().__init__()
        self.items = []
        self.badge = self.holder("badge", 0)


def render(cart: CartSignal) -> str:
    return f"{len(cart.items)} items ({cart.status})"


def test_rebuilds_on_every_change():
    cart = CartSignal()
    frames = []
    binding = SignalBinding(render, rebuild=lambda change: frames.append(binding.build()))
    assert binding.build() is None

    binding.bind(cart)
    cart.items.append("apple")
    cart.mark_success()
    cart.mark_busy()

    assert frames == ["1 items (success)", "1 items (busy)"]
    assert binding.rebuild_count == 2


def test_predicate_limits_rebuilds_to_a_topic():
    cart = CartSignal()
    binding = SignalBinding(render, predicate=lambda signal, change: change.topic == "badge")
    binding.bind(cart)

    cart.mark_success()
    cart.badge.data = 3
    cart.badge.mark_success()

    assert binding.rebuild_count == 1


def test_rebinding_cancels_previous_subscription_first():
    first, second = CartSignal(), CartSignal()
    binding = SignalBinding(render)
    binding.bind(first)
    binding.bind(first)
    assert first.listener_count == 1

    binding.bind(second)
    assert first.listener_count == 0
    assert second.listener_count == 1
    assert not first.is_disposed

    first.mark_success()
    second.mark_success()
    assert binding.rebuild_count == 1


def test_close_unsubscribes_once():
    cart = CartSignal()
    binding = SignalBinding(render)
    binding.bind(cart)

    binding.close()
    binding.close()
    assert cart.listener_count == 0
    assert not cart.is_disposed

    cart.mark_success()
    assert binding.rebuild_count == 0

    binding.bind(CartSignal())
    assert binding.signal is cart


def test_owned_signals_are_disposed_with_binding():
    first, second = CartSignal(), CartSignal()
    binding = SignalBinding(render, owns_signal=True)
    binding.bind(first)
    binding.bind(second)
    assert first.is_disposed

    binding.close()
    assert second.is_disposed


def test_bind_from_scope():
    scope = Scope()
    cart = scope.provide(CartSignal, CartSignal)
    binding = SignalBinding(render)
    assert binding.bind_from(scope.child(), CartSignal) is cart
    assert binding.bound

    with pytest.raises(SignalNotFound):
        SignalBinding(render).bind_from(Scope(), CartSignal)


def test_binding_goes_quiet_when_signal_is_disposed():
    scope = Scope()
    cart = scope.provide(CartSignal, CartSignal)
    binding = SignalBinding(render)
    binding.bind(cart)

    scope.dispose()
    assert not binding.bound
    binding.close()
