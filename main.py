"""CVE 피드 콘솔 실행기(Console front end for the CVE feed)."""
from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from typing import Iterable, Optional

import httpx
from dotenv import load_dotenv

from common_lib.config import Settings, get_settings, load_environment
from common_lib.db import create_engine, create_session_factory
from common_lib.errors import AppException
from common_lib.logger import get_logger
from common_lib.observability import request_id_ctx
from cve_feed.app.client import NVDFeedClient
from cve_feed.app.formatting import (
    describe_record,
    format_severity_counts,
    summarize_digest,
    summarize_page,
)
from cve_feed.app.service import FeedService

# Load .env file at startup
load_dotenv()
load_environment()

logger = get_logger(__name__)

STORE_COMMANDS = ("subscribe", "subscriptions", "new-cves")


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    """커맨드라인 인자 파싱(Parse CLI arguments)."""

    parser = argparse.ArgumentParser(description="NVD CVE 피드 조회기(NVD CVE feed lookups)")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cves = commands.add_parser("list-cves", help="CPE의 최신 CVE(Newest CVEs for a CPE)")
    list_cves.add_argument("cpe", help="CPE 2.3 문자열(CPE 2.3 string)")
    list_cves.add_argument("page", nargs="?", type=int, default=1, help="페이지 번호, 1=최신(Page number, 1 = newest)")
    list_cves.add_argument("--amount", type=int, default=None, help="페이지 크기(Page size)")

    detail = commands.add_parser("cve-detail", help="CVE 상세(CVE details)")
    detail.add_argument("cve_id", help="CVE 식별자(CVE identifier)")

    severity = commands.add_parser("severity", help="심각도 분포(Severity distribution for a CPE)")
    severity.add_argument("cpe", help="CPE 2.3 문자열(CPE 2.3 string)")

    subscribe = commands.add_parser("subscribe", help="CPE 구독(Subscribe to a CPE)")
    subscribe.add_argument("owner_id", type=int, help="구독자 ID(Subscriber ID)")
    subscribe.add_argument("cpe", help="CPE 2.3 문자열(CPE 2.3 string)")

    subscriptions = commands.add_parser("subscriptions", help="구독 목록(List subscriptions)")
    subscriptions.add_argument("owner_id", type=int, help="구독자 ID(Subscriber ID)")

    new_cves = commands.add_parser("new-cves", help="구독 CPE의 최근 변경 CVE(Recently changed CVEs)")
    new_cves.add_argument("owner_id", type=int, help="구독자 ID(Subscriber ID)")
    new_cves.add_argument("days", nargs="?", type=int, default=7, help="조회 기간 일수(Days to look back)")

    return parser.parse_args(argv)


async def run_command(args: argparse.Namespace, service: FeedService) -> str:
    """명령 실행 후 출력 텍스트 반환(Run one command and return the text to print)."""

    if args.command == "list-cves":
        page = await service.list_cves(args.cpe, page=args.page, amount=args.amount)
        header = f"CVEs for {args.cpe} (page {page.page}, {page.total_results} total):"
        return "\n".join([header, summarize_page(page)])
    if args.command == "cve-detail":
        result = await service.cve_detail(args.cve_id)
        if not result.records:
            return f"No CVE found for {args.cve_id}"
        return "\n\n".join(describe_record(record) for record in result.records)
    if args.command == "severity":
        return format_severity_counts(await service.severity_summary(args.cpe))
    if args.command == "subscribe":
        await service.subscribe(args.owner_id, args.cpe)
        return "Subscription successfully added!"
    if args.command == "subscriptions":
        subs = await service.subscriptions(args.owner_id)
        return "\n".join(["Your subscribed CPEs:"] + [sub.cpe for sub in subs])
    if args.command == "new-cves":
        return summarize_digest(await service.new_cves(args.owner_id, args.days), args.days)
    raise ValueError(f"Unknown command: {args.command}")


async def main_async(args: argparse.Namespace, settings: Settings) -> int:
    """비동기 메인 루틴(Async main routine)."""

    token = request_id_ctx.set(uuid.uuid4().hex[:12])
    engine = create_engine(settings)
    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as http_client:
            service = FeedService(NVDFeedClient(http_client, settings), create_session_factory(engine), settings)
            try:
                if args.command in STORE_COMMANDS:
                    await service.initialize_store()
                output = await run_command(args, service)
            except AppException as exc:
                logger.warning("Command %s failed: %s", args.command, exc.error_code)
                print(f"Error [{exc.error_code}]: {exc.message}", file=sys.stderr)
                return 1
        print(output)
        return 0
    finally:
        await engine.dispose()
        request_id_ctx.reset(token)


def main(argv: Optional[Iterable[str]] = None) -> int:
    """동기 진입점(Synchronous entrypoint)."""

    args = parse_args(argv)
    return asyncio.run(main_async(args, get_settings()))


if __name__ == "__main__":
    sys.exit(main())
