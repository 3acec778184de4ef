# ABOUTME: Async client for the Congress.gov bill API implementing the Congress port.
# ABOUTME: Builds bill listing and detail requests, retries transient errors and redacts the API key.

import re
from datetime import date
from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from legis_track.config import Settings, get_settings
from legis_track.models import BillDetail, BillsPage, BillSummary
from legis_track.ports import CongressPort

log = structlog.get_logger()

RECENT_BILLS_SORT = "latestAction.actionDate+desc"
_API_KEY_PATTERN = re.compile(r"(api_key=)[^&]+")


class CongressApiError(Exception):
    """Raised when the Congress.gov API cannot be reached or answers with an error."""


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code == 429 or error.response.status_code >= 500
    return isinstance(error, httpx.TransportError)


def _sanitize_url(url: str) -> str:
    return _API_KEY_PATTERN.sub(r"\1***", url)


def _to_bill_summary(raw: dict[str, Any]) -> BillSummary:
    number = raw.get("number")
    return BillSummary(
        congress=raw.get("congress"),
        number=str(number) if number is not None else None,
        type=raw.get("type"),
        title=raw.get("title"),
        introduced_date=raw.get("introducedDate"),
    )


class CongressApiClient(CongressPort):
    """Congress.gov v3 client.

    Listing and detail calls retry on transport errors and 5xx answers, then
    raise ``CongressApiError`` so callers can record the failure.
    """

    retry_wait: wait_base = wait_exponential(multiplier=1, min=2, max=30)

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialized HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.congress_api_base_url,
                timeout=self.settings.congress_api_timeout,
            )
        return self._client

    @property
    def api_key(self) -> str:
        if not self.settings.congress_api_key:
            raise ValueError("CONGRESS_API_KEY is required")
        return self.settings.congress_api_key.get_secret_value()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        params = {"api_key": self.api_key, "format": "json", **params}
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_transient),
                stop=stop_after_attempt(self.settings.congress_api_retry_attempts + 1),
                wait=self.retry_wait,
                before_sleep=lambda retry_state: log.warning(
                    "congress_api_retry",
                    path=path,
                    attempt=retry_state.attempt_number,
                    wait=retry_state.next_action.sleep,
                ),
                reraise=True,
            ):
                with attempt:
                    response = await self.client.get(path, params=params)
                    if response.status_code == 404:
                        return response
                    response.raise_for_status()
        except httpx.HTTPError as e:
            url = _sanitize_url(str(e.request.url)) if _has_request(e) else path
            raise CongressApiError(f"Congress API request failed: {url}") from e

        log.debug(
            "congress_api_response",
            url=_sanitize_url(str(response.request.url)),
            status=response.status_code,
            rate_limit_remaining=response.headers.get("x-ratelimit-remaining"),
        )
        return response

    async def get_recent_bills(self, from_date: date, offset: int = 0, limit: int = 20) -> BillsPage:
        response = await self._get(
            "/bill",
            {
                "fromDateTime": f"{from_date.isoformat()}T00:00:00Z",
                "sort": RECENT_BILLS_SORT,
                "limit": limit,
                "offset": offset,
            },
        )
        if response.status_code == 404:
            return BillsPage()
        try:
            bills = [_to_bill_summary(raw) for raw in response.json().get("bills", [])]
        except (ValueError, ValidationError) as e:
            raise CongressApiError("Malformed bill listing from Congress API") from e
        log.info("congress_bills_fetched", from_date=from_date.isoformat(), offset=offset, count=len(bills))
        return BillsPage(bills=bills)

    async def get_bill_details(
        self, congress: int, bill_type: str, bill_number: str
    ) -> BillDetail | None:
        response = await self._get(f"/bill/{congress}/{bill_type.lower()}/{bill_number}", {})
        if response.status_code == 404:
            log.info("congress_bill_not_found", congress=congress, bill_type=bill_type, number=bill_number)
            return None
        raw = response.json().get("bill")
        if not raw:
            return None
        return BillDetail(bill=_to_bill_summary(raw))

    async def ping(self) -> bool:
        """Cheap reachability probe used by the health endpoint."""
        try:
            response = await self.client.get(
                "/bill", params={"api_key": self.api_key, "format": "json", "limit": 1}
            )
        except (httpx.HTTPError, ValueError) as e:
            log.warning("congress_ping_failed", error=str(e))
            return False
        return response.is_success


def _has_request(error: httpx.HTTPError) -> bool:
    try:
        error.request
    except RuntimeError:
        return False
    return True
