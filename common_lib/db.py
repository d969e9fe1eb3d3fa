"""데이터베이스 연결 풀(Database connection pool).

Engines and session factories are created explicitly and handed to whoever needs
them; nothing here is cached at module level.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings
from .errors import ExternalServiceError
from .logger import get_logger

logger = get_logger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    """비동기 엔진 생성(Create the async engine for the subscription store)."""

    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    logger.info("Initializing async engine (%s)", url.render_as_string(hide_password=True))
    return create_async_engine(url, future=True, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """세션 팩토리 생성(Create a session factory bound to ``engine``)."""

    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """세션 컨텍스트 관리자(Session context manager).

    Commits on success, rolls back on error. Driver errors surface as
    :class:`ExternalServiceError`; anything else propagates unchanged.
    """

    session = factory()
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning("Subscription store error, rolled back: %s", exc)
        raise ExternalServiceError(service_name="Subscription store", reason=str(exc)) from exc
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()
