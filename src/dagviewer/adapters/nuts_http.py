from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from dagviewer.adapters.rate_limiter import SimpleRateLimiter, backoff_sleep
from dagviewer.config import settings
from dagviewer.core.errors import NotFoundError, TransportError

log = logging.getLogger(__name__)


class NutsHttpClient:
    """
    Shared GET plumbing for the Nuts node's internal APIs.

    404 maps to NotFoundError and is never retried; connection failures and
    other HTTP errors map to TransportError after `max_retries` attempts.
    """

    def __init__(
        self,
        base_url: str = settings.NUTS_NODE_URL,
        requests_per_sec: float = settings.NUTS_REQUESTS_PER_SEC,
        timeout_sec: int = settings.NUTS_TIMEOUT_SEC,
        max_retries: int = settings.NUTS_MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._max_retries = max(1, max_retries)
        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()

    # ---------- internal ----------

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        accept: Optional[str] = None,
    ) -> requests.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {"Accept": accept} if accept else None
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            if attempt > 0:
                backoff_sleep(attempt - 1)
            try:
                self._rl.wait()
                log.debug("GET %s", url)
                resp = self._session.get(url, params=params, headers=headers, timeout=self._timeout)
            except requests.RequestException as e:
                last_err = e
                continue

            if resp.status_code == 404:
                raise NotFoundError(f"not found: {url}")
            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                last_err = e
                continue
            return resp

        raise TransportError(f"GET {url} failed: {last_err}") from last_err

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        resp = self._get(path, params=params, accept="application/json")
        try:
            return resp.json()
        except (ValueError, RecursionError) as e:
            raise TransportError(f"invalid JSON from {path}: {e}") from e
