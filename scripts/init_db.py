#!/usr/bin/env python3
"""구독 데이터베이스 초기화 스크립트(Subscription database initialization script)."""
import asyncio

from common_lib.config import get_settings
from common_lib.db import create_engine, create_session_factory, session_scope
from cve_feed.app.repository import SubscriptionRepository


async def init_database() -> None:
    """데이터베이스 초기화(Initialize database)."""
    settings = get_settings()
    engine = create_engine(settings)
    try:
        async with session_scope(create_session_factory(engine)) as session:
            await SubscriptionRepository(session).initialize()
        print(f"✓ Database initialized successfully: {settings.database_url}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_database())
