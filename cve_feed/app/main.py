"""CVE 피드 FastAPI 애플리케이션(CVE feed FastAPI application)."""
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

import httpx
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from common_lib.config import get_settings
from common_lib.db import create_engine, create_session_factory
from common_lib.errors import AppException
from common_lib.logger import get_logger
from common_lib.observability import request_id_ctx

from .client import NVDFeedClient
from .models import DigestEntry, FeedPage, Subscription, SubscriptionInput, WindowedPage
from .service import FeedService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """공유 자원 생성 및 정리(Create and dispose the shared transport and store)."""

    settings = get_settings()
    http_client = httpx.AsyncClient(timeout=settings.request_timeout_seconds)
    engine = create_engine(settings)
    service = FeedService(NVDFeedClient(http_client, settings), create_session_factory(engine), settings)
    await service.initialize_store()
    app.state.feed_service = service
    try:
        yield
    finally:
        await http_client.aclose()
        await engine.dispose()


app = FastAPI(title="CVEFeed", lifespan=lifespan)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """요청 ID 추적 미들웨어(Middleware for request ID tracking and correlation)."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


app.add_middleware(RequestIDMiddleware)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions with standardized error format."""
    logger.warning(
        "AppException: %s (code=%s)",
        exc.message,
        exc.error_code,
        extra={"details": exc.details},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors."""
    logger.error(
        "Unexpected error: %s",
        str(exc),
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Unexpected server error"}},
    )


def get_feed_service(request: Request) -> FeedService:
    """FastAPI 의존성: 공유 서비스 반환(Dependency returning the shared feed service)."""

    return request.app.state.feed_service


@app.get("/api/v1/cves", response_model=WindowedPage, tags=["cves"])
async def list_cves(
    cpe: str = Query(..., description="CPE 2.3 문자열(CPE 2.3 formatted string)"),
    page: int = Query(1, ge=1, description="1부터 시작, 최신순(1-indexed, newest first)"),
    amount: int | None = Query(None, ge=1, description="페이지 크기(Page size)"),
    service: FeedService = Depends(get_feed_service),
) -> WindowedPage:
    """최신 CVE 목록(Newest CVEs for a CPE, one window at a time)."""

    return await service.list_cves(cpe, page=page, amount=amount)


@app.get("/api/v1/cves/{cve_id}", response_model=FeedPage, tags=["cves"])
async def cve_detail(cve_id: str, service: FeedService = Depends(get_feed_service)) -> FeedPage:
    """CVE 상세(Single CVE lookup)."""

    return await service.cve_detail(cve_id)


@app.get("/api/v1/severity", tags=["cves"])
async def severity_summary(
    cpe: str = Query(..., description="CPE 2.3 문자열(CPE 2.3 formatted string)"),
    service: FeedService = Depends(get_feed_service),
) -> Dict[str, Any]:
    """심각도 분포(Severity distribution over every CVE of a CPE)."""

    counts = await service.severity_summary(cpe)
    return {"cpe": cpe, "total": sum(counts.values()), "severity_distribution": counts}


@app.post("/api/v1/subscriptions", response_model=Subscription, status_code=201, tags=["subscriptions"])
async def subscribe(data: SubscriptionInput, service: FeedService = Depends(get_feed_service)) -> Subscription:
    """구독 추가(Subscribe an owner to a CPE)."""

    return await service.subscribe(data.owner_id, data.cpe)


@app.get("/api/v1/subscriptions/{owner_id}", response_model=List[Subscription], tags=["subscriptions"])
async def list_subscriptions(owner_id: int, service: FeedService = Depends(get_feed_service)) -> List[Subscription]:
    """구독 목록(Subscriptions of an owner)."""

    return await service.subscriptions(owner_id)


@app.get("/api/v1/changes", response_model=List[DigestEntry], tags=["subscriptions"])
async def changed_cves(
    owner_id: int = Query(...),
    days: int = Query(7, ge=1, description="조회 기간 일수(Look-back window in days)"),
    service: FeedService = Depends(get_feed_service),
) -> List[DigestEntry]:
    """구독 CPE의 최근 변경 CVE(CVEs changed recently for every subscribed CPE)."""

    return await service.new_cves(owner_id, days)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """헬스체크 엔드포인트(Health check endpoint)."""

    return {"status": "ok"}
