import asyncio
import importlib
import logging
import sys
from typing import Any, List

from signalkit.core.debug import DebugRegistry, observer_from_settings
from signalkit.core.exceptions import CommandError, ConfigurationError
from signalkit.core.logging import configure_logging
from signalkit.core.scope import Scope
from signalkit.settings import settings

logger = logging.getLogger(__name__)


def execute_from_command_line(command: str, argv: List[str] | None = None, project_settings=None) -> None:
    """Entry point for manage.py commands."""
    argv = argv or []
    project_settings = project_settings or settings
    configure_logging(project_settings=project_settings)

    logger.info("Loading settings from %s", project_settings.environment)
    errors = project_settings.validate()
    if errors:
        raise ConfigurationError(f"Configuration errors: {errors}")

    if command == "demo":
        asyncio.run(_demo(project_settings))
    elif command == "fetch":
        asyncio.run(_fetch(project_settings, argv))
    elif command == "debug":
        asyncio.run(_debug(project_settings))
    else:
        raise CommandError(f"Unknown command '{command}'. Expected demo|fetch|debug.")


def import_string(dotted_path: str) -> Any:
    module_path, name = dotted_path.rsplit(".", 1)
    try:
        module = importlib.import_module(module_path)
        return getattr(module, name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Cannot import {dotted_path}") from exc


def _root_scope(project_settings, observer=None) -> Scope:
    if observer is None:
        observer = observer_from_settings(project_settings)
    scope = Scope(name="root", observer=observer)
    scope.load_providers(project_settings)
    return scope


async def _demo(project_settings) -> None:
    """Run the installed signals through the configured runner."""
    runner_class = import_string(project_settings.DEMO_RUNNER)
    scope = _root_scope(project_settings)
    runner = runner_class(scope, sys.stdout.write)
    try:
        counts = await runner.run_once()
    finally:
        runner.close()
        scope.dispose()
    for name, count in counts.items():
        logger.info("%s rebuilt %s times", name, count)


async def _fetch(project_settings, argv: List[str]) -> None:
    """Load a URL through the configured fetch provider."""
    if not argv:
        raise CommandError("fetch requires a URL, e.g. manage.py fetch https://example.org")
    url = argv[0]

    scope = Scope(name="fetch", observer=observer_from_settings(project_settings))
    try:
        signal = scope.install(project_settings.FETCH_PROVIDER, project_settings)
        await scope.start()
        await signal.load(url)
        if signal.error is not None:
            sys.stdout.write(f"{url}: {signal.error}\n")
        else:
            sys.stdout.write(f"{url}: {signal.status_code} {signal.content_type}\n")
    finally:
        scope.dispose()


async def _debug(project_settings) -> None:
    """Print the live signal table of a started scope."""
    registry = DebugRegistry()
    scope = _root_scope(project_settings, observer=registry)
    try:
        await scope.start()
        logger.info("Providers:")
        for config in scope.get_provider_configs():
            logger.info("- %s (enabled=%s)", config.name, config.enabled)
        sys.stdout.write(registry.format_table() + "\n")
    finally:
        scope.dispose()
