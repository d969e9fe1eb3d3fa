"""공통 설정 모듈(Common configuration module)."""
from __future__ import annotations

import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """시스템 환경설정(System environment settings)."""

    model_config = SettingsConfigDict(
        env_prefix="CVEFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="cve-feed", description="서비스 이름(Service name)")
    environment: str = Field(default="development", description="실행 환경(Runtime environment)")

    nvd_api_url: str = Field(
        default="https://services.nvd.nist.gov/rest/json/cves/2.0",
        description="NVD CVE API 엔드포인트(NVD CVE API base endpoint)",
    )
    nvd_api_key: str = Field(default="", description="NVD API 키(NVD API key)")
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="요청 타임아웃(Per-request transport timeout in seconds)",
    )

    default_page_size: int = Field(default=10, ge=1, description="기본 페이지 크기(Default page size)")
    max_page_size: int = Field(default=2000, ge=1, description="최대 페이지 크기(Maximum page size accepted by NVD)")
    digest_concurrency: int = Field(
        default=4,
        ge=1,
        description="구독 다이제스트 동시성(Concurrent lookups when building a subscription digest)",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/subscriptions.sqlite3",
        description="구독 저장소 DSN(Subscription store DSN)",
    )

    log_level: str = Field(default="INFO", description="로그 레벨(Log level)")
    log_format: str = Field(default="text", description="로그 형식 text|json(Log format)")

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: object) -> str:
        """Accept TEXT/Json/etc. and fall back to text for unknown values."""
        value = str(v or "text").strip().lower()
        return value if value in ("text", "json") else "text"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> str:
        return str(v or "INFO").strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """설정 인스턴스 반환(Return a cached settings instance)."""

    return Settings()


def load_environment() -> None:
    """기본 환경변수를 로드(Load base environment variables)."""

    os.environ.setdefault("TZ", "UTC")
