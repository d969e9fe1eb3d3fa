"""NVD 타임스탬프 유틸리티(Timestamp helpers for NVD date-range queries)."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from common_lib.errors import DateArithmeticFailure
from common_lib.logger import get_logger

logger = get_logger(__name__)

# NVD expects an explicit offset; the value is always sent as +01:00,
# percent-encoded, regardless of the instant's real timezone.
NVD_OFFSET_SUFFIX = "%2B01:00"


def format_nvd_timestamp(epoch_seconds: int) -> str:
    """에포크 초를 NVD 날짜 문자열로 변환(Format epoch seconds for lastModStartDate/EndDate).

    The wall-clock part is the UTC time of the instant.

    Raises:
        DateArithmeticFailure: if the instant is outside the representable range
    """
    try:
        moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise DateArithmeticFailure(
            f"epoch {epoch_seconds} is not a representable instant",
            details={"epoch_seconds": epoch_seconds},
        ) from exc
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + ".000" + NVD_OFFSET_SUFFIX


def window_for_last_days(days: int, now: Optional[datetime] = None) -> Tuple[int, int]:
    """최근 N일 구간 계산(Return ``(start, end)`` epoch seconds covering the last ``days`` days).

    Raises:
        DateArithmeticFailure: if going back ``days`` days underflows the date range
    """
    end = now or datetime.now(timezone.utc)
    try:
        start = end - timedelta(days=days)
        start_epoch = int(start.timestamp())
    except (OverflowError, OSError, ValueError) as exc:
        logger.warning("Window start underflows for days=%s: %s", days, exc)
        raise DateArithmeticFailure(
            f"cannot go back {days} days from {end.isoformat()}",
            details={"days": days},
        ) from exc
    return start_epoch, int(end.timestamp())
