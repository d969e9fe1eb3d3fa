"""Pytest configuration and shared fixtures."""
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from common_lib.config import Settings

SAMPLE_CPE = "cpe:2.3:o:microsoft:windows_10:1607:*:*:*:*:*:*:*"
NVD_TEST_URL = "https://nvd.test/rest/json/cves/2.0"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment, with a throwaway SQLite store."""
    return Settings(
        nvd_api_url=NVD_TEST_URL,
        nvd_api_key="test-key",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'subscriptions.sqlite3'}",
        digest_concurrency=2,
        _env_file=None,
    )


def make_cve(
    cve_id: str = "CVE-2021-0001",
    v31: Optional[List[Dict[str, Any]]] = None,
    v2: Optional[List[Dict[str, Any]]] = None,
    descriptions: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    """Build one NVD ``cve`` object in wire format."""
    metrics: Dict[str, Any] = {}
    if v31 is not None:
        metrics["cvssMetricV31"] = v31
    if v2 is not None:
        metrics["cvssMetricV2"] = v2
    return {
        "id": cve_id,
        "sourceIdentifier": "secure@microsoft.com",
        "published": "2021-08-04T13:00:00.000",
        "lastModified": "2021-10-22T13:36:00.000",
        "vulnStatus": "Analyzed",
        "descriptions": descriptions
        if descriptions is not None
        else [{"lang": "en", "value": f"Description of {cve_id}"}],
        "metrics": metrics,
    }


def v31_entry(severity: str = "HIGH", score: Optional[float] = 7.5) -> Dict[str, Any]:
    data: Dict[str, Any] = {"version": "3.1", "baseSeverity": severity}
    if score is not None:
        data["baseScore"] = score
    return {"source": "nvd@nist.gov", "type": "Primary", "cvssData": data}


def v2_entry(severity: str = "MEDIUM", score: Optional[float] = 5.0) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"source": "nvd@nist.gov", "baseSeverity": severity, "type": "Primary"}
    if score is not None:
        entry["cvssData"] = {"version": "2.0", "baseScore": score}
    return entry


def nvd_body(cves: List[Dict[str, Any]], total_results: Optional[int] = None) -> Dict[str, Any]:
    """Wrap ``cve`` objects into an NVD response body."""
    return {
        "resultsPerPage": len(cves),
        "startIndex": 0,
        "totalResults": len(cves) if total_results is None else total_results,
        "format": "NVD_CVE",
        "version": "2.0",
        "vulnerabilities": [{"cve": cve} for cve in cves],
    }


class RecordingTransport:
    """Collects every request and answers from a handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)


def mock_http_client(transport: RecordingTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(transport))
