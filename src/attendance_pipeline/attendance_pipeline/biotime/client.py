"""HTTP client for the ZKTeco BioTime REST API."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

import requests

from ..common.datetime_utils import format_source_timestamp, now_local
from ..core.constants import (
    BIOTIME_EMPLOYEE_PAGE_SIZE,
    BIOTIME_PAGE_DELAY_SECONDS,
    BIOTIME_TIMEOUT_SECONDS,
    BIOTIME_TOKEN_TTL_HOURS,
    BIOTIME_TRANSACTION_PAGE_SIZE,
)
from ..core.exceptions import AuthenticationError, SourceUnavailableError

logger = logging.getLogger(__name__)

AUTH_PATH = "jwt-api-token-auth/"
TRANSACTIONS_PATH = "iclock/api/transactions/"
EMPLOYEES_PATH = "personnel/api/employees/"
TERMINALS_PATH = "iclock/api/terminals/"


class BioTimeClient:
    """Token-authenticated, paginating client.

    The JWT is cached until shortly before the server-side expiry and fetched
    again transparently when missing, expired, or rejected with 401.
    """

    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        password: str,
        timeout: float = BIOTIME_TIMEOUT_SECONDS,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
        page_size: int = BIOTIME_TRANSACTION_PAGE_SIZE,
        employee_page_size: int = BIOTIME_EMPLOYEE_PAGE_SIZE,
        page_delay: float = BIOTIME_PAGE_DELAY_SECONDS,
        token_ttl: timedelta = timedelta(hours=BIOTIME_TOKEN_TTL_HOURS),
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_local,
    ):
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._username = username
        self._password = password
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._session = session or requests.Session()
        self._page_size = int(page_size)
        self._employee_page_size = int(employee_page_size)
        self._page_delay = page_delay
        self._token_ttl = token_ttl
        self._sleep = sleep
        self._clock = clock

        self._token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    @property
    def has_valid_token(self) -> bool:
        return bool(self._token) and self._token_expiry is not None and self._token_expiry > self._clock()

    def authenticate(self) -> str:
        logger.info("Authenticating with BioTime at %s", self._base_url)
        try:
            response = self._session.post(
                self._base_url + AUTH_PATH,
                json={"username": self._username, "password": self._password},
                timeout=self._timeout,
                verify=self._verify_ssl,
            )
        except requests.RequestException as exc:
            raise SourceUnavailableError(f"BioTime unreachable: {exc}") from exc

        if response.status_code >= 500:
            raise SourceUnavailableError(f"BioTime auth returned HTTP {response.status_code}")
        if response.status_code != 200:
            raise AuthenticationError(f"Authentication failed (HTTP {response.status_code})")

        token = (response.json() or {}).get("token")
        if not token:
            raise AuthenticationError("Authentication failed: no token in response")

        self._token = token
        self._token_expiry = self._clock() + self._token_ttl
        return token

    def ensure_authenticated(self) -> str:
        if not self.has_valid_token:
            return self.authenticate()
        return self._token

    def invalidate_token(self) -> None:
        self._token = None
        self._token_expiry = None

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        for attempt in range(2):
            token = self.ensure_authenticated()
            try:
                response = self._session.get(
                    self._base_url + path,
                    params=params,
                    headers={"Authorization": f"JWT {token}", "Content-Type": "application/json"},
                    timeout=self._timeout,
                    verify=self._verify_ssl,
                )
            except requests.RequestException as exc:
                raise SourceUnavailableError(f"GET {path} failed: {exc}") from exc

            if response.status_code == 401 and attempt == 0:
                logger.warning("BioTime rejected the cached token, re-authenticating")
                self.invalidate_token()
                continue
            if response.status_code == 401:
                raise AuthenticationError("Authentication failed: token rejected")
            if response.status_code != 200:
                raise SourceUnavailableError(f"GET {path} returned HTTP {response.status_code}")
            return response.json() or {}

        raise AuthenticationError("Authentication failed: token rejected")

    def fetch_transactions(self, start: datetime, end: datetime) -> list[dict]:
        """All punches with start <= punch_time < end, across as many pages as needed."""
        records: list[dict] = []
        page = 1
        while True:
            body = self._get(
                TRANSACTIONS_PATH,
                {
                    "punch_time__gte": format_source_timestamp(start),
                    "punch_time__lt": format_source_timestamp(end),
                    "page_size": self._page_size,
                    "page": page,
                },
            )
            rows = body.get("data")
            if rows is None:
                rows = body.get("results")
            if not rows:
                logger.debug("Transactions page %d empty, stopping", page)
                break

            records.extend(rows)
            logger.debug("Transactions page %d: %d records", page, len(rows))
            if len(rows) < self._page_size:
                break

            page += 1
            self._sleep(self._page_delay)

        logger.info("Fetched %d transactions in %d page(s) for %s .. %s", len(records), page, start, end)
        return records

    def fetch_employees(self) -> list[dict]:
        employees: list[dict] = []
        page = 1
        while True:
            body = self._get(EMPLOYEES_PATH, {"page": page, "page_size": self._employee_page_size})
            rows = body.get("data")
            if rows is None:
                rows = body.get("results") or []
            employees.extend(rows)

            if not rows or (not body.get("next") and len(rows) < self._employee_page_size):
                break
            page += 1
            self._sleep(self._page_delay)

        logger.info("Fetched %d employees in %d page(s)", len(employees), page)
        return employees

    def test_connection(self) -> bool:
        try:
            self._get(TERMINALS_PATH, {"page_size": 1})
            return True
        except (AuthenticationError, SourceUnavailableError) as exc:
            logger.warning("BioTime connection test failed: %s", exc)
            return False
