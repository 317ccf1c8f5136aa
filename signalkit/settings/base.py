import logging
import os
from dataclasses import dataclass
from typing import List

TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


@dataclass
class DemoSettings:
    counter_delay: float
    notification_delay: float
    color_delay: float
    toggle_delay: float
    http_timeout: float


class Settings:
    """Django-inspired settings container with explicit configuration."""

    def __init__(self) -> None:
        self.environment = os.environ.get("SIGNALKIT_ENV", "base")
        self.log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

        # Debug tooling is opt-in; none of it affects signal behavior.
        self.debug_registry = env_flag("SIGNALKIT_DEBUG_REGISTRY")
        self.state_trace = env_flag("SIGNALKIT_STATE_TRACE")
        self.parent_trace = env_flag("SIGNALKIT_PARENT_TRACE")
        self.performance_monitoring = env_flag("SIGNALKIT_PERFORMANCE")

        # Explicit signal enablement (empty list = enable all installed providers)
        enabled_signals = os.environ.get("ENABLED_SIGNALS", "")
        self.enabled_signals: List[str] = [
            name.strip().lower()
            for name in enabled_signals.split(",")
            if name.strip()
        ]

        self.demo = DemoSettings(
            counter_delay=float(os.environ.get("DEMO_COUNTER_DELAY", "0.8")),
            notification_delay=float(os.environ.get("DEMO_NOTIFICATION_DELAY", "0.5")),
            color_delay=float(os.environ.get("DEMO_COLOR_DELAY", "2.0")),
            toggle_delay=float(os.environ.get("DEMO_TOGGLE_DELAY", "1.0")),
            http_timeout=float(os.environ.get("DEMO_HTTP_TIMEOUT", "10")),
        )

        # Providers must be declared explicitly; no dynamic discovery.
        self.INSTALLED_SIGNALS = [
            "signalkit.demo.apps.CounterChannelConfig",
            "signalkit.demo.apps.ToggleConfig",
            "signalkit.demo.apps.ToggleMirrorConfig",
        ]

        # The fetch command installs this provider on demand.
        self.FETCH_PROVIDER = "signalkit.demo.apps.RemoteResourceConfig"
        self.DEMO_RUNNER = "signalkit.demo.runner.DemoRunner"

    @property
    def tracing_enabled(self) -> bool:
        return self.state_trace or self.parent_trace or self.performance_monitoring

    def is_signal_enabled(self, name: str) -> bool:
        """Return whether the provider is enabled by configuration."""
        return not self.enabled_signals or name in self.enabled_signals

    def validate(self) -> dict:
        """Validate configuration and return any errors."""
        errors = {}

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors["log_level"] = f"Unknown LOG_LEVEL '{self.log_level}'"

        delays = {
            "DEMO_COUNTER_DELAY": self.demo.counter_delay,
            "DEMO_NOTIFICATION_DELAY": self.demo.notification_delay,
            "DEMO_COLOR_DELAY": self.demo.color_delay,
            "DEMO_TOGGLE_DELAY": self.demo.toggle_delay,
        }
        negative = [name for name, value in delays.items() if value < 0]
        if negative:
            errors["demo"] = f"Delays must not be negative ({', '.join(negative)})"

        if self.demo.http_timeout <= 0:
            errors["http"] = "DEMO_HTTP_TIMEOUT must be positive"

        return errors


settings = Settings()
