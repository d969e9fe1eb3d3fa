import logging
import sys

from .config import get_settings
from .observability import ServiceJsonFormatter

_logging_configured = False

_TEXT_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"


def setup_logging():
    global _logging_configured
    if _logging_configured:
        return

    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        handler.setFormatter(ServiceJsonFormatter(settings.app_name, settings.environment))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    # 기존 설정 강제 덮어쓰기
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        handlers=[handler],
        force=True,
    )

    # 라이브러리 로그 레벨 조정
    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str):
    """명명된 로거 가져오기(Get a named logger).

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    setup_logging()
    return logging.getLogger(name)
