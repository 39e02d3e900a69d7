from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

import requests

from ..config import SETTINGS, OptimizerSettings
from ..errors import SourceError

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


class SourceFetcher:
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        settings: OptimizerSettings = SETTINGS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._settings = settings
        self._sleep = sleep
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "pngshrink/1.0"})
        return session

    def read_path(self, path: str | Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise SourceError(f"cannot read {path}: {exc}") from exc

    def fetch_url(self, url: str) -> bytes:
        last_exception: Exception | None = None
        for attempt in range(1, self._settings.retries + 2):
            try:
                response = self._session.get(url, timeout=self._settings.timeout)
                response.raise_for_status()
                return response.content
            except requests.RequestException as exc:
                LOGGER.warning("fetch attempt %d for %s failed: %s", attempt, url, exc)
                last_exception = exc
                self._sleep(0.4 * attempt)
        raise SourceError(f"cannot fetch {url}: {last_exception}")

    def fetch(self, source: str) -> bytes:
        if is_remote(source):
            return self.fetch_url(source)
        return self.read_path(source)


FETCHER = SourceFetcher()
