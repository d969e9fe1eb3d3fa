"""공통 에러 클래스 정의(Common error classes).

Every failure the feed layer can report is an :class:`AppException` subclass. The
subclass (and its ``error_code``) tells callers which kind of failure happened;
``status_code`` is the HTTP status the API front end answers with.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class AppException(Exception):
    """애플리케이션 기본 예외 클래스(Base application exception)."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            status_code: HTTP status code (e.g., 400, 502, 503)
            error_code: Machine-readable error code (e.g., "REMOTE_REJECTED")
            message: Human-readable error message
            details: Additional error context (optional)
        """
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        response: Dict[str, Any] = {
            "error": {
                "code": self.error_code,
                "message": self.message,
            }
        }
        if self.details:
            response["error"]["details"] = self.details
        return response


class InvalidInputError(AppException):
    """유효하지 않은 입력(Invalid input - 400)."""

    def __init__(
        self,
        field: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"Invalid input for '{field}': {reason}"
        super().__init__(
            status_code=400,
            error_code="INVALID_INPUT",
            message=message,
            details=details or {"field": field, "reason": reason},
        )


class InvalidIdentifier(AppException):
    """식별자 문법 위반(CPE/CVE identifier failed its grammar check - 400).

    Raised by callers of the feed client before any request is sent; the client
    itself never raises it.
    """

    def __init__(self, kind: str, value: str) -> None:
        """Initialize with identifier context.

        Args:
            kind: Identifier kind ("cpe" or "cve")
            value: The rejected string
        """
        hint = "CPE has to follow the CPE 2.3 formatted string binding" if kind == "cpe" else "expected CVE-YYYY-NNNN"
        super().__init__(
            status_code=400,
            error_code="INVALID_IDENTIFIER",
            message=f"Invalid {kind.upper()} string: {hint}",
            details={"kind": kind, "value": value},
        )
        self.kind = kind
        self.value = value


class RemoteUnavailable(AppException):
    """원격 API 연결 실패(Transport-level failure reaching the remote API - 503)."""

    def __init__(self, service_name: str, reason: str) -> None:
        super().__init__(
            status_code=503,
            error_code="REMOTE_UNAVAILABLE",
            message=f"{service_name} endpoint not responding: {reason}",
            details={"service_name": service_name, "reason": reason},
        )


class RemoteRejected(AppException):
    """원격 API 거부(Remote API answered with a non-2xx status - 502).

    ``remote_status`` carries the status code the remote system sent.
    """

    def __init__(self, service_name: str, remote_status: int, reason: str = "") -> None:
        message = f"{service_name} endpoint refused the request (HTTP {remote_status})"
        if reason:
            message += f": {reason}"
        super().__init__(
            status_code=502,
            error_code="REMOTE_REJECTED",
            message=message,
            details={"service_name": service_name, "remote_status": remote_status},
        )
        self.remote_status = remote_status


class MalformedResponse(AppException):
    """응답 파싱 실패(2xx response whose body is not the expected JSON shape - 502)."""

    def __init__(self, service_name: str, reason: str) -> None:
        super().__init__(
            status_code=502,
            error_code="MALFORMED_RESPONSE",
            message=f"Failed to parse {service_name} response: {reason}",
            details={"service_name": service_name, "reason": reason},
        )


class DateArithmeticFailure(AppException):
    """날짜 계산 실패(Requested time window falls outside the representable range - 400)."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            status_code=400,
            error_code="DATE_ARITHMETIC_FAILURE",
            message=f"Cannot compute time window: {reason}",
            details=details or {"reason": reason},
        )


class ExternalServiceError(AppException):
    """외부 서비스 오류(External service unavailable - 503)."""

    def __init__(
        self,
        service_name: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize with service context.

        Args:
            service_name: Name of the external service (e.g., "Subscription store")
            reason: Reason for the failure
            details: Additional context
        """
        message = f"{service_name} is currently unavailable: {reason}"
        super().__init__(
            status_code=503,
            error_code="EXTERNAL_SERVICE_ERROR",
            message=message,
            details=details or {"service_name": service_name, "reason": reason},
        )
