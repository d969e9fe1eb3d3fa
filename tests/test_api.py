"""HTTP API tests, run in-process through httpx.ASGITransport."""
from typing import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio

from common_lib.db import create_engine, create_session_factory
from cve_feed.app.client import NVDFeedClient
from cve_feed.app.main import app, get_feed_service
from cve_feed.app.service import FeedService

from tests.conftest import SAMPLE_CPE, RecordingTransport, make_cve, mock_http_client, nvd_body, v2_entry, v31_entry

Handler = Callable[[httpx.Request], httpx.Response]


@pytest_asyncio.fixture
async def api(settings) -> AsyncIterator[Callable[[Handler], httpx.AsyncClient]]:
    """Return a factory wiring the app to a mocked NVD and a temporary store."""
    engine = create_engine(settings)
    opened = []

    def _make(handler: Handler) -> httpx.AsyncClient:
        nvd = mock_http_client(RecordingTransport(handler))
        service = FeedService(NVDFeedClient(nvd, settings), create_session_factory(engine), settings)
        app.dependency_overrides[get_feed_service] = lambda: service
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
        opened.extend([nvd, client])
        return client

    yield _make

    app.dependency_overrides.clear()
    for client in opened:
        await client.aclose()
    await engine.dispose()


def _ok(cves, total=None) -> Handler:
    return lambda request: httpx.Response(200, json=nvd_body(cves, total_results=total))


@pytest.mark.asyncio
async def test_health(api):
    client = api(_ok([]))
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_list_cves_returns_window(api):
    client = api(_ok([make_cve("CVE-2021-0015", v31=[v31_entry("HIGH", 8.1)])], total=25))

    response = await client.get("/api/v1/cves", params={"cpe": SAMPLE_CPE, "amount": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["start_index"] == 15
    assert body["total_results"] == 25
    assert body["total_drift"] == 0
    assert body["records"][0]["id"] == "CVE-2021-0015"
    assert body["records"][0]["scores"]["kind"] == "v31"


@pytest.mark.asyncio
async def test_invalid_cpe_is_400(api):
    client = api(_ok([]))

    response = await client.get("/api/v1/cves", params={"cpe": "test123"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_IDENTIFIER"


@pytest.mark.asyncio
async def test_invalid_cve_is_400(api):
    client = api(_ok([]))

    response = await client.get("/api/v1/cves/CVE-2015-4000-")

    assert response.status_code == 400
    assert response.json()["error"]["details"]["kind"] == "cve"


@pytest.mark.asyncio
async def test_remote_rejection_is_502(api):
    client = api(lambda request: httpx.Response(404))

    response = await client.get("/api/v1/cves/CVE-2015-4000")

    assert response.status_code == 502
    error = response.json()["error"]
    assert error["code"] == "REMOTE_REJECTED"
    assert error["details"]["remote_status"] == 404


@pytest.mark.asyncio
async def test_remote_unavailable_is_503(api):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = api(handler)

    response = await client.get("/api/v1/severity", params={"cpe": SAMPLE_CPE})

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "REMOTE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_malformed_response_is_502(api):
    client = api(lambda request: httpx.Response(200, text="not json"))

    response = await client.get("/api/v1/cves/CVE-2015-4000")

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "MALFORMED_RESPONSE"


@pytest.mark.asyncio
async def test_severity_distribution(api):
    cves = [
        make_cve("CVE-2021-0001", v31=[v31_entry("CRITICAL", 9.8)]),
        make_cve("CVE-2021-0002", v2=[v2_entry("LOW", 2.1)]),
    ]
    client = api(_ok(cves))

    response = await client.get("/api/v1/severity", params={"cpe": SAMPLE_CPE})

    assert response.status_code == 200
    assert response.json() == {
        "cpe": SAMPLE_CPE,
        "total": 2,
        "severity_distribution": {"Low": 1, "Medium": 0, "High": 0, "Critical": 1},
    }


@pytest.mark.asyncio
async def test_subscription_flow(api):
    client = api(_ok([make_cve("CVE-2021-3000")]))
    await app.dependency_overrides[get_feed_service]().initialize_store()

    created = await client.post("/api/v1/subscriptions", json={"owner_id": 5, "cpe": SAMPLE_CPE})
    assert created.status_code == 201
    assert created.json() == {"owner_id": 5, "cpe": SAMPLE_CPE}

    listed = await client.get("/api/v1/subscriptions/5")
    assert listed.json() == [{"owner_id": 5, "cpe": SAMPLE_CPE}]

    changes = await client.get("/api/v1/changes", params={"owner_id": 5, "days": 3})
    assert changes.status_code == 200
    digest = changes.json()
    assert digest[0]["cpe"] == SAMPLE_CPE
    assert digest[0]["page"]["records"][0]["id"] == "CVE-2021-3000"


@pytest.mark.asyncio
async def test_subscribe_rejects_invalid_cpe(api):
    client = api(_ok([]))

    response = await client.post("/api/v1/subscriptions", json={"owner_id": 5, "cpe": "cpe:2.3:x"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_IDENTIFIER"
