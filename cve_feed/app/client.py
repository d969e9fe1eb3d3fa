"""NVD CVE 피드 클라이언트(Client for the NVD CVE API 2.0 feed).

Every public operation is one or two GET requests against a fixed endpoint. The
remote API only knows absolute ``startIndex``/``resultsPerPage`` pagination, so
"page N of the newest records" is computed from a probe call's ``totalResults``.

No retries, no backoff and no caching: the first failure ends the operation with
one of :class:`RemoteUnavailable`, :class:`RemoteRejected` or
:class:`MalformedResponse`. Identifiers are expected to be validated by the
caller already.
"""
from __future__ import annotations

from types import TracebackType
from typing import Optional, Type
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from common_lib.config import Settings, get_settings
from common_lib.errors import InvalidInputError, MalformedResponse, RemoteRejected, RemoteUnavailable
from common_lib.logger import get_logger

from .models import FeedPage, WindowedPage
from .timestamps import format_nvd_timestamp

logger = get_logger(__name__)

SERVICE_NAME = "NVD API"


def compute_window_offset(total_results: int, amount: int, page: int) -> int:
    """최신 기준 페이지의 시작 인덱스 계산(Start index of page ``page`` counted back from the newest record).

    Saturates to 0 (the oldest window) when the request reaches past the start of
    the result set.
    """
    span = amount * page
    if span < total_results:
        return total_results - span
    return 0


def _encode(value: str) -> str:
    return quote(value, safe="")


class NVDFeedClient:
    """NVD CVE 피드 조회 클라이언트(Stateless feed client over a pooled HTTP transport)."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._base_url = self._settings.nvd_api_url
        self._headers = {"User-Agent": f"{self._settings.app_name}/1.0"}
        if self._settings.nvd_api_key:
            self._headers["apiKey"] = self._settings.nvd_api_key
        else:
            logger.warning("NVD API 키가 설정되지 않음 - 제한된 속도로 실행됩니다 (API key not set - running with rate limits)")

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._settings.request_timeout_seconds)

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "NVDFeedClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def fetch_all(self, cpe: str) -> FeedPage:
        """CPE의 전체 CVE 조회(Every record the remote system reports for ``cpe``, in one response)."""

        return await self._query(f"cpeName={_encode(cpe)}")

    async def fetch_window(self, cpe: str, amount: int, page: int = 1) -> WindowedPage:
        """최신 기준 윈도우 조회(Page ``page`` of size ``amount``, newest records first).

        A probe call with ``resultsPerPage=1`` reads the current total, then the real
        call fetches ``amount`` records from the computed offset. The total can move
        between the two calls; the returned page records both totals so callers can
        see the drift.
        """
        if amount < 1 or amount > self._settings.max_page_size:
            raise InvalidInputError("amount", f"must be between 1 and {self._settings.max_page_size}")
        if page < 1:
            raise InvalidInputError("page", "page number has to be 1 or greater")

        cpe_param = f"cpeName={_encode(cpe)}"
        probe = await self._query(f"{cpe_param}&resultsPerPage=1")
        offset = compute_window_offset(probe.total_results, amount, page)
        logger.info(
            "Window for page %d (amount=%d): totalResults=%d -> startIndex=%d",
            page,
            amount,
            probe.total_results,
            offset,
        )

        result = await self._query(f"{cpe_param}&resultsPerPage={amount}&startIndex={offset}")
        if result.total_results != probe.total_results:
            logger.info(
                "totalResults moved between probe and fetch (%d -> %d); window shifted",
                probe.total_results,
                result.total_results,
            )

        return WindowedPage(
            records=result.records,
            total_results=result.total_results,
            page=page,
            requested_amount=amount,
            start_index=offset,
            probe_total_results=probe.total_results,
        )

    async def fetch_changed_within(self, cpe: str, start_epoch: int, end_epoch: int) -> FeedPage:
        """수정 시각 구간 조회(Records for ``cpe`` last modified between the two instants)."""

        start = format_nvd_timestamp(start_epoch)
        end = format_nvd_timestamp(end_epoch)
        return await self._query(f"cpeName={_encode(cpe)}&lastModStartDate={start}&lastModEndDate={end}")

    async def fetch_by_id(self, cve_id: str) -> FeedPage:
        """CVE ID 단건 조회(Look up one CVE; the page holds zero or one record)."""

        return await self._query(f"cveId={_encode(cve_id)}")

    async def _query(self, params: str) -> FeedPage:
        url = f"{self._base_url}?{params}"
        logger.debug("NVD query: %s", params)

        try:
            response = await self._http.get(url, headers=self._headers)
        except httpx.TimeoutException as exc:
            logger.warning("NVD API timeout (%s): %s", params, exc)
            raise RemoteUnavailable(SERVICE_NAME, "request timed out") from exc
        except httpx.DecodingError as exc:
            logger.warning("NVD API body could not be decoded (%s): %s", params, exc)
            raise MalformedResponse(SERVICE_NAME, "response body could not be decoded") from exc
        except httpx.RequestError as exc:
            logger.warning("NVD API transport error (%s): %s", params, exc)
            raise RemoteUnavailable(SERVICE_NAME, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.warning("NVD API refused request (%s): HTTP %d", params, response.status_code)
            raise RemoteRejected(SERVICE_NAME, response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("NVD API returned non-JSON body (%s)", params)
            raise MalformedResponse(SERVICE_NAME, "response body is not JSON") from exc

        try:
            return FeedPage.from_nvd(payload)
        except ValidationError as exc:
            logger.warning("NVD API response has unexpected shape (%s): %d errors", params, exc.error_count())
            raise MalformedResponse(SERVICE_NAME, _summarize_validation_error(exc)) from exc


def _summarize_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}" if location else str(first.get("msg"))
