from signalkit.core.scope import ProviderConfig


class DemoConfig(ProviderConfig):
    """Demo signals read their delays from the project settings."""

    def signal_kwargs(self):
        return {"project_settings": self.settings}


class CounterChannelConfig(DemoConfig):
    name = "counter_channel"
    verbose_name = "Counter channel"
    signal_class_path = "signalkit.demo.signals.CounterChannel"


class ToggleConfig(DemoConfig):
    name = "toggle"
    verbose_name = "Toggle"
    signal_class_path = "signalkit.demo.signals.ToggleSignal"


class ToggleMirrorConfig(DemoConfig):
    name = "toggle_mirror"
    verbose_name = "Toggle mirror"
    dependencies = ("toggle",)
    signal_class_path = "signalkit.demo.signals.ToggleMirrorSignal"


class RemoteResourceConfig(DemoConfig):
    name = "remote_resource"
    verbose_name = "Remote resource"
    signal_class_path = "signalkit.demo.remote.RemoteResourceSignal"
