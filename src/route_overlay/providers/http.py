from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests
from requests.exceptions import ReadTimeout, ConnectionError

log = logging.getLogger(__name__)

# upstream hiccups worth a second attempt
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass
class HTTPClient:
    user_agent: str
    accept: str = "application/json"
    timeout_s: int = 20
    tries: int = 2
    backoff_s: float = 0.5
    auth: Optional[Tuple[str, str]] = None

    def __post_init__(self) -> None:
        self.s = requests.Session()
        self.s.headers.update({"User-Agent": self.user_agent, "Accept": self.accept})
        if self.auth is not None:
            self.s.auth = self.auth

    def _send(
        self,
        method: str,
        url: str,
        timeout_s: Optional[int] = None,
        tries: Optional[int] = None,
        **kwargs: Any,
    ) -> requests.Response:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        n = max(1, tries if tries is not None else self.tries)
        last_err: Optional[Exception] = None
        for attempt in range(n):
            final = attempt == n - 1
            try:
                r = self.s.request(method, url, timeout=timeout, **kwargs)
                if r.status_code in RETRY_STATUSES and not final:
                    log.debug("%s %s -> %s, retrying", method, url, r.status_code)
                    time.sleep(self.backoff_s)
                    continue
                r.raise_for_status()
                return r
            except (ReadTimeout, ConnectionError) as e:
                last_err = e
                log.debug("%s %s failed (%s), attempt %d/%d", method, url, e, attempt + 1, n)
                if not final:
                    time.sleep(self.backoff_s)
        raise last_err if last_err else RuntimeError(f"HTTP {method} failed")

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout_s: Optional[int] = None,
        tries: Optional[int] = None,
    ) -> Any:
        r = self._send("GET", url, timeout_s=timeout_s, tries=tries, params=params, headers=headers)
        return r.json()

    def post_json(
        self,
        url: str,
        body: Any,
        headers: Optional[Dict[str, str]] = None,
        timeout_s: Optional[int] = None,
        tries: Optional[int] = None,
    ) -> Any:
        r = self._send("POST", url, timeout_s=timeout_s, tries=tries, json=body, headers=headers)
        return r.json()
