"""CVE 피드 서비스(Front-end facing feed service).

Both front ends (console and HTTP) call into :class:`FeedService`. It validates
identifiers before anything reaches the feed client, and talks to the
subscription store through an injected session factory.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from common_lib.config import Settings, get_settings
from common_lib.db import session_scope
from common_lib.errors import ExternalServiceError, InvalidIdentifier, InvalidInputError
from common_lib.logger import get_logger

from .client import NVDFeedClient
from .models import DigestEntry, FeedPage, Subscription, WindowedPage
from .repository import SubscriptionRepository
from .severity import count_by_severity
from .timestamps import window_for_last_days
from .validators import is_valid_cpe_string, is_valid_cve_string

logger = get_logger(__name__)


def require_cpe(cpe: str) -> str:
    """CPE 검증 후 반환(Return ``cpe`` or raise InvalidIdentifier)."""
    if not is_valid_cpe_string(cpe):
        raise InvalidIdentifier("cpe", cpe)
    return cpe


def require_cve(cve_id: str) -> str:
    """CVE ID 검증 후 반환(Return ``cve_id`` or raise InvalidIdentifier)."""
    if not is_valid_cve_string(cve_id):
        raise InvalidIdentifier("cve", cve_id)
    return cve_id


class FeedService:
    """CVE 조회 서비스(Service combining the feed client and the subscription store)."""

    def __init__(
        self,
        client: NVDFeedClient,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._client = client
        self._session_factory = session_factory
        self._settings = settings or get_settings()

    async def list_cves(self, cpe: str, page: int = 1, amount: Optional[int] = None) -> WindowedPage:
        """최신 CVE 목록 조회(Page ``page`` of the newest CVEs for ``cpe``)."""

        require_cpe(cpe)
        size = amount if amount is not None else self._settings.default_page_size
        logger.info("Fetching CVEs for CPE (page %d, amount %d): %s", page, size, cpe)
        return await self._client.fetch_window(cpe, size, page)

    async def cve_detail(self, cve_id: str) -> FeedPage:
        """CVE 상세 조회(Look up a single CVE)."""

        require_cve(cve_id)
        logger.info("Fetching CVE details for %s", cve_id)
        return await self._client.fetch_by_id(cve_id)

    async def severity_summary(self, cpe: str) -> Dict[str, int]:
        """심각도 분포 집계(Severity bucket counts over every CVE of ``cpe``)."""

        require_cpe(cpe)
        page = await self._client.fetch_all(cpe)
        counts = count_by_severity(page.records)
        logger.info("Severity summary for %s over %d records: %s", cpe, len(page.records), counts)
        return counts

    async def initialize_store(self) -> None:
        """구독 테이블 준비(Create the subscription table if it does not exist)."""

        async with session_scope(self._require_store()) as session:
            await SubscriptionRepository(session).initialize()

    async def subscribe(self, owner_id: int, cpe: str) -> Subscription:
        """CPE 구독 추가(Subscribe ``owner_id`` to ``cpe``)."""

        require_cpe(cpe)
        async with session_scope(self._require_store()) as session:
            await SubscriptionRepository(session).add_subscription(owner_id, cpe)
        return Subscription(owner_id=owner_id, cpe=cpe)

    async def subscriptions(self, owner_id: int) -> List[Subscription]:
        """구독 목록 조회(List the CPEs ``owner_id`` is subscribed to)."""

        async with session_scope(self._require_store()) as session:
            return await SubscriptionRepository(session).list_subscriptions(owner_id)

    async def new_cves(self, owner_id: int, days: int, now: Optional[datetime] = None) -> List[DigestEntry]:
        """구독 CPE의 최근 변경 CVE 조회(CVEs changed in the last ``days`` days, per subscribed CPE).

        Lookups run concurrently, at most ``digest_concurrency`` at a time. Entries
        follow subscription order. The first failing lookup fails the digest and
        cancels the lookups still in flight.
        """
        if days < 1:
            raise InvalidInputError("days", "has to be 1 or greater")

        start, end = window_for_last_days(days, now)
        subscriptions = await self.subscriptions(owner_id)
        for subscription in subscriptions:
            require_cpe(subscription.cpe)

        semaphore = asyncio.Semaphore(self._settings.digest_concurrency)

        async def _changed(cpe: str) -> DigestEntry:
            async with semaphore:
                page = await self._client.fetch_changed_within(cpe, start, end)
            return DigestEntry(cpe=cpe, page=page)

        logger.info("Building %d-day digest over %d subscriptions for owner %s", days, len(subscriptions), owner_id)
        tasks = [asyncio.ensure_future(_changed(sub.cpe)) for sub in subscriptions]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # unfinished lookups are cancelled and reaped before the failure propagates
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def _require_store(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise ExternalServiceError(
                service_name="Subscription store",
                reason="no session factory configured",
            )
        return self._session_factory
