import os

from signalkit.settings.base import Settings


class ProdSettings(Settings):
    """Production overrides keep debug tooling off and logging quiet."""

    def __init__(self) -> None:
        super().__init__()
        self.environment = "prod"
        self.log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
        self.debug_registry = False
        self.state_trace = False
        self.parent_trace = False
        self.performance_monitoring = False


settings = ProdSettings()
