class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


class ProviderError(Exception):
    """Raised when a signal cannot be provided, loaded or wired into a scope."""


class SignalNotFound(LookupError):
    """Raised when no signal of the requested type is reachable from a scope."""

    def __init__(self, signal_type: type, scope_name: str | None = None) -> None:
        self.signal_type = signal_type
        self.scope_name = scope_name
        where = f" from scope '{scope_name}'" if scope_name else ""
        super().__init__(
            f"No {signal_type.__name__} provided{where}. "
            f"Make sure a scope above the caller provides {signal_type.__name__}."
        )


class CommandError(Exception):
    """Raised for invalid manage.py commands."""
