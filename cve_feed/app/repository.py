"""구독 데이터 저장소(Subscription data repository)."""
from __future__ import annotations

from typing import List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from common_lib.logger import get_logger

from .models import Subscription

logger = get_logger(__name__)


class SubscriptionRepository:
    """구독 저장 레이어(Storage layer for CPE subscriptions)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def initialize(self) -> None:
        """구독 테이블 생성(Create the subscriptions table if missing)."""

        await self._session.execute(
            text(
                """
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id INTEGER PRIMARY KEY,
                    userid INTEGER NOT NULL,
                    cpe TEXT
                )
                """
            )
        )

    async def add_subscription(self, owner_id: int, cpe: str) -> None:
        """구독 추가(Store a subscription of ``owner_id`` to ``cpe``)."""

        await self._session.execute(
            text("INSERT INTO subscriptions (userid, cpe) VALUES (:userid, :cpe)"),
            {"userid": owner_id, "cpe": cpe},
        )
        logger.info("Stored subscription for owner %s", owner_id)

    async def list_subscriptions(self, owner_id: int) -> List[Subscription]:
        """구독 목록 조회(List the owner's subscriptions in insertion order)."""

        result = await self._session.execute(
            text("SELECT userid, cpe FROM subscriptions WHERE userid = :userid ORDER BY id"),
            {"userid": owner_id},
        )
        return [Subscription(owner_id=row.userid, cpe=row.cpe) for row in result.fetchall()]
