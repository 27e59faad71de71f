from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from bethyw.config import (
    HTTP_TIMEOUT_SECONDS,
    STATSWALES_BASE_URL,
    STATSWALES_MAX_PAGES,
)
from bethyw.core.errors import InputSourceError

logger = logging.getLogger(__name__)

NEXT_LINK_KEY = "odata.nextLink"


class InputSource:
    """
    Something a dataset can be read from. Subclasses return an open text
    stream from open(); the caller owns it and must close it.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def get_source(self) -> str:
        return self.source

    def open(self) -> TextIO:
        raise NotImplementedError


class InputFile(InputSource):
    """A dataset stored as a local file, e.g. InputFile("datasets/areas.csv")."""

    def __init__(self, file_path: str | Path) -> None:
        super().__init__(str(file_path))

    def open(self) -> TextIO:
        try:
            return open(self.source, "r", encoding="utf-8-sig", newline="")
        except OSError as exc:
            raise InputSourceError(f"Failed to open file {self.source}") from exc


# ---------------------------------------------------------------------------
# StatsWales OData API
# ---------------------------------------------------------------------------

def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries.
    The StatsWales API can be slow or transiently flaky.
    """
    session = requests.Session()

    retry = Retry(
        total=5,
        connect=5,
        read=5,
        status=5,
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


class StatsWalesSource(InputSource):
    """
    A WelshStatsJSON dataset fetched live from the StatsWales API.

    The API pages its results; every page is fetched (following
    "odata.nextLink") and the "value" arrays are concatenated into one
    document, which open() returns fully buffered.
    """

    def __init__(
        self,
        dataset_code: str,
        base_url: str = STATSWALES_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
        max_pages: int = STATSWALES_MAX_PAGES,
    ) -> None:
        super().__init__(f"{base_url.rstrip('/')}/{dataset_code}")
        self.dataset_code = dataset_code
        self.session = session
        self.timeout_seconds = timeout_seconds
        self.max_pages = max_pages

    def _fetch_page(self, url: str) -> Dict[str, Any]:
        session = self.session or _get_session()
        try:
            resp = session.get(url, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise InputSourceError(f"HTTP error while fetching {url}: {exc}") from exc

        if resp.status_code != 200:
            raise InputSourceError(f"StatsWales returned status {resp.status_code} for {url}")

        try:
            data = resp.json()
        except ValueError as exc:
            preview = (resp.text or "")[:200]
            raise InputSourceError(f"Non-JSON response from StatsWales. Preview: {preview}") from exc

        if not isinstance(data, dict):
            raise InputSourceError(f"Unexpected StatsWales response type: {type(data)}")
        return data

    def fetch_records(self) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        url: Optional[str] = self.source
        pages = 0

        while url:
            pages += 1
            if pages > self.max_pages:
                logger.warning(
                    "Stopped after %s pages of %s; results may be incomplete.",
                    self.max_pages,
                    self.dataset_code,
                )
                break

            logger.info("Fetching %s page %s", self.dataset_code, pages)
            page = self._fetch_page(url)

            values = page.get("value") or []
            if not isinstance(values, list):
                raise InputSourceError("StatsWales response 'value' is not a list")
            records.extend(values)

            url = page.get(NEXT_LINK_KEY)

        logger.info("Fetched %s records for %s", len(records), self.dataset_code)
        return records

    def open(self) -> TextIO:
        records = self.fetch_records()
        return io.StringIO(json.dumps({"value": records}, ensure_ascii=False))
