from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_crawl_dispatcher
from app.api.routes.results import summarize_results
from app.main import app
from app.models import CrawlResult
from app.services.job_store import get_job_store


@pytest.fixture
def dispatched():
    return []


@pytest.fixture
def client(job_store, dispatched):
    app.dependency_overrides[get_job_store] = lambda: job_store
    app.dependency_overrides[get_crawl_dispatcher] = lambda: (
        lambda job_id, payload, client_ip: dispatched.append((job_id, payload, client_ip))
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_submit_crawl_creates_pending_job(client, dispatched):
    response = client.post(
        "/api/crawl",
        json={"url": "https://example.com", "maxDepth": 2, "excludePatterns": ["/admin/"]},
        headers={"x-forwarded-for": "198.51.100.1, 10.0.0.1"},
    )

    assert response.status_code == 200
    job_id = response.json()["jobId"]
    assert len(job_id) >= 10

    dispatched_id, payload, client_ip = dispatched[0]
    assert dispatched_id == job_id
    assert payload["url"] == "https://example.com"
    assert payload["max_depth"] == 2
    assert payload["exclude_patterns"] == ["/admin/"]
    assert client_ip == "198.51.100.1"

    progress = client.get(f"/api/crawl/{job_id}").json()
    assert progress["jobId"] == job_id
    assert progress["status"] == "pending"
    assert progress["processedPages"] == 0
    assert progress["generatedContent"] is None


@pytest.mark.parametrize("headers, expected", [({"x-real-ip": "192.0.2.5"}, "192.0.2.5"), ({}, "unknown")])
def test_client_ip_fallbacks(client, dispatched, headers, expected):
    client.post("/api/crawl", json={"url": "https://example.com"}, headers=headers)

    assert dispatched[0][2] == expected


@pytest.mark.parametrize("url", ["", "   ", "example.com", "ftp://example.com"])
def test_invalid_url_is_rejected(client, dispatched, url):
    response = client.post("/api/crawl", json={"url": url})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid URL provided"
    assert dispatched == []


def test_invalid_depth_is_rejected(client):
    response = client.post("/api/crawl", json={"url": "https://example.com", "maxDepth": 0})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid crawl request"


def test_malformed_body_is_rejected(client):
    response = client.post(
        "/api/crawl", content=b"not json", headers={"content-type": "application/json"}
    )

    assert response.status_code == 400


def test_dispatch_failure_marks_job_as_error(client, job_store):
    def failing_dispatch(job_id, payload, client_ip):
        raise ConnectionError("broker down")

    app.dependency_overrides[get_crawl_dispatcher] = lambda: failing_dispatch

    response = client.post("/api/crawl", json={"url": "https://example.com"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to start crawling"


def test_poll_validates_job_id(client):
    assert client.get("/api/crawl/short").status_code == 400

    response = client.get("/api/crawl/lq2x9zunknown")
    assert response.status_code == 404
    assert response.json()["detail"] == "Job not found or expired"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_summarize_results():
    now = datetime(2024, 5, 2, 15, 0, tzinfo=timezone.utc)
    results = [
        CrawlResult(url="https://a.com", ip_address="1.1.1.1", created_at=datetime(2024, 5, 2, 9, tzinfo=timezone.utc)),
        CrawlResult(url="https://a.com", ip_address="2.2.2.2", created_at=datetime(2024, 5, 1, 23, tzinfo=timezone.utc)),
        CrawlResult(url="https://b.com", ip_address="1.1.1.1", created_at=datetime(2024, 5, 2, 0, 0)),
    ]

    stats = summarize_results(results, now)

    assert stats.total_crawls == 3
    assert stats.today_crawls == 2
    assert stats.unique_ips == 2
    assert stats.unique_urls == 2
    assert stats.model_dump(by_alias=True) == {
        "totalCrawls": 3,
        "todayCrawls": 2,
        "uniqueIps": 2,
        "uniqueUrls": 2,
    }
