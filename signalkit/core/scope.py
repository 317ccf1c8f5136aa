import importlib
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar

from signalkit.core.exceptions import ProviderError, SignalNotFound
from signalkit.core.signals import Signal
from signalkit.settings import settings

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Signal)

SignalItem = Callable[["Scope"], Signal]


class ProviderConfig:
    """Django-style AppConfig analogue declaring one provided signal."""

    name: str
    verbose_name: str
    enabled: bool = True
    dependencies: tuple[str, ...] = ()
    signal_class_path: Optional[str] = None

    def __init__(self, project_settings=None) -> None:
        self.settings = project_settings or settings
        if hasattr(self, "label"):
            self.label = getattr(self, "label")
        else:
            self.label = self.name
        self.enabled = self.enabled and self.settings.is_signal_enabled(self.name)

    def ready(self) -> None:
        """Hook executed once after every provider config is loaded."""

    def signal_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments passed to the signal class."""
        return {}

    def signal_class(self) -> Type[Signal]:
        if not self.signal_class_path:
            raise ProviderError(f"No signal_class_path set for {self.name}")

        module_path, class_name = self.signal_class_path.rsplit(".", 1)
        try:
            module = importlib.import_module(module_path)
        except ImportError as exc:
            raise ProviderError(f"Cannot import {module_path} for {self.name}") from exc
        signal_cls = getattr(module, class_name, None)
        if not (isinstance(signal_cls, type) and issubclass(signal_cls, Signal)):
            raise ProviderError(f"{self.signal_class_path} is not a Signal class")
        return signal_cls

    def create_signal(self) -> Signal:
        """Instantiate the configured signal."""
        return self.signal_class()(**self.signal_kwargs())


class Scope:
    """Owns provided signals and resolves them by exact type.

    Lookups walk from this scope up through its parents, so a nested scope
    can shadow a signal type provided further up.
    """

    def __init__(self, parent: Optional["Scope"] = None, name: Optional[str] = None, observer=None) -> None:
        self.parent = parent
        self.name = name or ("root" if parent is None else f"{parent.name}.child")
        if observer is None and parent is not None:
            observer = parent.observer
        self.observer = observer
        self.configs: Dict[str, ProviderConfig] = {}
        self._signals: Dict[type, Signal] = {}
        self._children: List["Scope"] = []
        self._disposed = False
        if parent is not None:
            parent._children.append(self)

    def __repr__(self) -> str:
        return f"<Scope {self.name} ({len(self._signals)} signals)>"

    def __contains__(self, signal_type: type) -> bool:
        return self.find(signal_type) is not None

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def child(self, name: Optional[str] = None) -> "Scope":
        return Scope(parent=self, name=name)

    # -- provision -------------------------------------------------------

    def provide(self, signal_type: Type[S], factory: Callable[[], S]) -> S:
        """Create ``signal_type`` with ``factory`` and take ownership of it."""
        if self._disposed:
            raise ProviderError(f"Scope {self.name} is disposed")
        if not (isinstance(signal_type, type) and issubclass(signal_type, Signal)):
            raise ProviderError(f"{signal_type!r} is not a Signal class")
        if signal_type in self._signals:
            raise ProviderError(
                f"{signal_type.__name__} is already provided by scope {self.name}"
            )

        signal = factory()
        if not isinstance(signal, signal_type):
            if isinstance(signal, Signal):
                signal.dispose()
            raise ProviderError(
                f"Factory for {signal_type.__name__} returned {type(signal).__name__}"
            )
        if self.observer is not None and signal.observer is None:
            signal.attach_observer(self.observer)

        self._signals[signal_type] = signal
        logger.debug("Scope %s provides %s", self.name, signal_type.__name__)
        return signal

    def provide_many(self, items: Iterable[SignalItem]) -> List[Signal]:
        return [item(self) for item in items]

    def load_providers(self, project_settings=None) -> None:
        """Provide every enabled signal listed in ``INSTALLED_SIGNALS``."""
        project_settings = project_settings or settings
        configs: Dict[str, ProviderConfig] = {}
        for dotted_path in project_settings.INSTALLED_SIGNALS:
            config = self._load_provider_config(dotted_path, project_settings)
            if not config.enabled:
                continue
            configs[config.name] = config

        self._validate_dependencies(configs)

        for config in configs.values():
            self._install(config)

    def install(self, dotted_path: str, project_settings=None) -> Signal:
        """Provide the signal declared by a single provider config."""
        project_settings = project_settings or settings
        config = self._load_provider_config(dotted_path, project_settings)
        if not config.enabled:
            raise ProviderError(f"{config.name} is not enabled. Add it to ENABLED_SIGNALS.")
        return self._install(config)

    def _install(self, config: ProviderConfig) -> Signal:
        config.ready()
        signal = self.provide(config.signal_class(), config.create_signal)
        self.configs[config.name] = config
        return signal

    def _load_provider_config(self, dotted_path: str, project_settings) -> ProviderConfig:
        module_path, class_name = dotted_path.rsplit(".", 1)
        try:
            module = importlib.import_module(module_path)
            config_cls: Type[ProviderConfig] = getattr(module, class_name)
        except (ImportError, AttributeError) as exc:
            raise ProviderError(f"Cannot load provider config {dotted_path}") from exc
        return config_cls(project_settings)

    def _validate_dependencies(self, configs: Dict[str, ProviderConfig]) -> None:
        for config in configs.values():
            for dependency in config.dependencies:
                if dependency not in configs:
                    raise ProviderError(
                        f"{config.name} depends on {dependency}, which is not enabled"
                    )

    # -- lookup ----------------------------------------------------------

    def find(self, signal_type: Type[S]) -> Optional[S]:
        scope: Optional[Scope] = self
        while scope is not None:
            signal = scope._signals.get(signal_type)
            if signal is not None:
                return signal  # type: ignore[return-value]
            scope = scope.parent
        return None

    def of(self, signal_type: Type[S]) -> S:
        signal = self.find(signal_type)
        if signal is None:
            raise SignalNotFound(signal_type, self.name)
        return signal

    def iter_signals(self) -> Iterable[Signal]:
        return list(self._signals.values())

    def get_provider_configs(self) -> List[ProviderConfig]:
        return list(self.configs.values())

    # -- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Initialize every owned signal, then run their post-init steps.

        Lookup failures raised from ``init_state`` propagate; a failing
        ``after_init_state`` is logged and the remaining signals still start.
        """
        signals = [signal for signal in self._signals.values() if not signal.is_disposed]
        for signal in signals:
            signal.initialize(self)

        for signal in signals:
            try:
                await signal.start()
            except Exception:
                logger.exception("Failed to start %s in scope %s", signal.name, self.name)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        for child in reversed(list(self._children)):
            child.dispose()
        for signal in reversed(list(self._signals.values())):
            signal.dispose()
        self._signals.clear()

        if self.parent is not None and self in self.parent._children:
            self.parent._children.remove(self)
        logger.debug("Scope %s disposed", self.name)


def signal_item(signal_type: Type[S], create: Callable[[], S]) -> SignalItem:
    """Pair a signal type with its factory for ``Scope.provide_many``."""

    def provide(scope: Scope) -> S:
        return scope.provide(signal_type, create)

    return provide
