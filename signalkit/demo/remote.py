import asyncio
import logging
from typing import Any, Optional

import requests

from signalkit.core.signals import Signal
from signalkit.settings import settings

logger = logging.getLogger(__name__)

USER_AGENT = "signalkit-demo"


class RemoteResourceSignal(Signal):
    """Loads a URL and exposes the decoded body.

    The blocking request runs in a worker thread; the payload is only
    assigned back on the event loop, inside the guarded operation.
    """

    def __init__(self, project_settings=None, session: Optional[requests.Session] = None) -> None:
        super().__init__()
        self.settings = project_settings or settings
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.url: Optional[str] = None
        self.status_code: Optional[int] = None
        self.content_type = ""
        self.body: Any = None

    async def load(self, url: str) -> None:
        await self.run_guarded(lambda: self._load(url), error_formatter=self.describe_error)

    async def _load(self, url: str) -> None:
        logger.info("Fetching %s", url)
        response = await asyncio.to_thread(
            self.session.get, url, timeout=self.settings.demo.http_timeout
        )
        self.url = url
        self.status_code = response.status_code
        response.raise_for_status()

        self.content_type = response.headers.get("Content-Type", "")
        if "json" in self.content_type:
            self.body = response.json()
        else:
            self.body = response.text
        logger.info("%s returned %s (%s)", url, response.status_code, self.content_type or "no type")

    def describe_error(self, exc: BaseException) -> Optional[str]:
        if isinstance(exc, requests.HTTPError) and exc.response is not None:
            return f"HTTP {exc.response.status_code} for {self.url}"
        if isinstance(exc, requests.Timeout):
            return f"Timed out after {self.settings.demo.http_timeout}s"
        if isinstance(exc, requests.RequestException):
            return f"Request failed: {exc}"
        return None

    def dispose(self) -> None:
        if self.is_disposed:
            return
        super().dispose()
        self.session.close()
