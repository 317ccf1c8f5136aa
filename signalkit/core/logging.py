import logging
from typing import Optional

from signalkit.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that drown out signal traces at DEBUG.
QUIET_LOGGERS = ("urllib3", "asyncio")


def configure_logging(level: Optional[str] = None, project_settings=None) -> None:
    """Configure logging once for the whole project.

    Debug tracing (state, parent links, timings) is emitted by
    ``signalkit.core.debug`` at DEBUG, so that logger is lowered whenever one of
    the trace flags is on, regardless of the root level.
    """
    project_settings = project_settings or settings
    log_level = level or project_settings.log_level
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        format=LOG_FORMAT,
        level=numeric_level,
        force=True,  # ensure we override any prior configuration
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    if project_settings.tracing_enabled:
        logging.getLogger("signalkit.core.debug").setLevel(logging.DEBUG)
