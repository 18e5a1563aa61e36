"""
API tests through FastAPI's TestClient.

The job queue and LLM client are swapped via dependency_overrides; the
TestClient context keeps a single event loop alive, so the scheduler task
started by POST /queue/start keeps running between requests.
"""

import io
import time
import zipfile

import pytest
from fastapi.testclient import TestClient

from doc_anonymizer.api.dependencies import get_job_queue, get_llm_client, get_settings
from doc_anonymizer.main import app


@pytest.fixture
def api_queue(make_queue):
    return make_queue()


@pytest.fixture
def llm_client(echo_client):
    return echo_client


@pytest.fixture
def client(api_queue, llm_client):
    app.dependency_overrides[get_job_queue] = lambda: api_queue
    app.dependency_overrides[get_llm_client] = lambda: llm_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def upload(client, *documents):
    files = [("files", (name, content, "application/octet-stream")) for name, content in documents]
    return client.post("/jobs", files=files)


def wait_for_idle(client, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get("/jobs").json()
        if body["state"] == "IDLE":
            return body
        time.sleep(0.02)
    raise AssertionError("queue did not return to IDLE")


def assert_error_shape(body: dict, error: str):
    assert body["error"] == error
    assert set(body) == {"error", "message", "details", "timestamp"}


# ============================================================================
# Upload
# ============================================================================


def test_upload_creates_pending_jobs(client, docx_factory):
    response = upload(client, ("a.docx", docx_factory("Hello")), ("b.txt", b"World"))

    assert response.status_code == 202
    body = response.json()
    assert len(body["job_ids"]) == 2
    assert body["queue_size"] == 2
    assert [job["status"] for job in body["jobs"]] == ["PENDING", "PENDING"]

    listing = client.get("/jobs").json()
    assert listing["state"] == "IDLE"
    assert listing["stats"]["pending"] == 2
    assert [job["filename"] for job in listing["jobs"]] == ["a.docx", "b.txt"]


def test_upload_unsupported_type_rejected(client, api_queue):
    response = upload(client, ("scan.pdf", b"%PDF"))

    assert response.status_code == 400
    assert_error_shape(response.json(), "invalid_document")
    assert api_queue.jobs == []


def test_upload_without_files_rejected(client):
    response = client.post("/jobs")

    assert response.status_code == 400
    assert_error_shape(response.json(), "invalid_request")


def test_upload_over_capacity_rejected(client, make_queue):
    small_queue = make_queue(capacity=2)
    app.dependency_overrides[get_job_queue] = lambda: small_queue

    response = upload(client, ("1.txt", b"a"), ("2.txt", b"b"), ("3.txt", b"c"))

    assert response.status_code == 400
    body = response.json()
    assert_error_shape(body, "queue_capacity_exceeded")
    assert body["details"]["capacity"] == 2
    assert client.get("/jobs").json()["stats"]["total"] == 0


def test_upload_oversized_file_rejected(client, api_queue, test_settings):
    test_settings.UPLOAD_MAX_BYTES = 10
    app.dependency_overrides[get_settings] = lambda: test_settings

    response = upload(client, ("small.txt", b"ok"), ("big.txt", b"x" * 11))

    assert response.status_code == 400
    body = response.json()
    assert_error_shape(body, "invalid_document")
    assert body["details"] == {"filename": "big.txt", "max_bytes": 10}
    assert api_queue.jobs == []


def test_upload_at_size_limit_accepted(client, test_settings):
    test_settings.UPLOAD_MAX_BYTES = 10
    app.dependency_overrides[get_settings] = lambda: test_settings

    response = upload(client, ("exact.txt", b"x" * 10))

    assert response.status_code == 202


# ============================================================================
# Processing flow
# ============================================================================


def test_full_flow_upload_process_download(client, docx_factory, read_docx):
    job_id = upload(client, ("memo.docx", docx_factory("Call me", "tomorrow"))).json()["job_ids"][0]

    started = client.post("/queue/start")
    assert started.status_code == 200
    assert started.json()["state"] == "RUNNING"

    listing = wait_for_idle(client)
    assert listing["stats"]["completed"] == 1

    detail = client.get(f"/jobs/{job_id}").json()
    assert detail["status"] == "COMPLETED"
    assert detail["result_text"] == "Call me\ntomorrow"
    assert detail["has_document"] is True

    document = client.get(f"/jobs/{job_id}/document")
    assert document.status_code == 200
    assert "anonymized_memo.docx" in document.headers["content-disposition"]
    assert read_docx(document.content) == ["Call me", "tomorrow"]

    archive = client.get("/archive")
    assert archive.status_code == 200
    assert archive.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
        assert zf.namelist() == ["anonymized_memo.docx"]


def test_failed_job_reported(client):
    job_id = upload(client, ("blank.txt", b"   ")).json()["job_ids"][0]

    client.post("/queue/start")
    wait_for_idle(client)

    detail = client.get(f"/jobs/{job_id}").json()
    assert detail["status"] == "ERROR"
    assert detail["error"] == "Document contains no text"
    assert client.get(f"/jobs/{job_id}/document").status_code == 409


def test_document_not_ready_is_conflict(client):
    job_id = upload(client, ("a.txt", b"text")).json()["job_ids"][0]

    response = client.get(f"/jobs/{job_id}/document")

    assert response.status_code == 409
    assert_error_shape(response.json(), "conflict")


def test_unknown_job_is_not_found(client):
    for path in ("/jobs/missing", "/jobs/missing/document"):
        response = client.get(path)
        assert response.status_code == 404
        assert_error_shape(response.json(), "not_found")


def test_archive_without_results_is_not_found(client):
    response = client.get("/archive")

    assert response.status_code == 404
    assert_error_shape(response.json(), "not_found")


def test_clear_removes_jobs(client):
    upload(client, ("a.txt", b"one"), ("b.txt", b"two"))

    response = client.delete("/jobs")

    assert response.status_code == 200
    assert response.json() == {"removed": 2}
    assert client.get("/jobs").json()["jobs"] == []


# ============================================================================
# Queue control while busy
# ============================================================================


@pytest.fixture
def slow_queue(make_queue):
    """Queue that sits in its pre-job delay long enough to poke at it."""
    return make_queue(job_delay=30.0)


def test_controls_rejected_while_running(client, slow_queue):
    app.dependency_overrides[get_job_queue] = lambda: slow_queue
    upload(client, ("a.txt", b"text"))
    assert client.post("/queue/start").json()["state"] == "RUNNING"

    busy_upload = upload(client, ("b.txt", b"more"))
    assert busy_upload.status_code == 409
    assert_error_shape(busy_upload.json(), "queue_busy")

    busy_clear = client.delete("/jobs")
    assert busy_clear.status_code == 409

    stopped = client.post("/queue/stop")
    assert stopped.json()["state"] == "STOPPING"

    listing = wait_for_idle(client)
    assert listing["jobs"][0]["status"] == "PENDING"


# ============================================================================
# Probes
# ============================================================================


def test_ping_reachable(client):
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json()["reachable"] is True


def test_ping_unreachable(client, fake_client_factory):
    app.dependency_overrides[get_llm_client] = lambda: fake_client_factory(reachable=False)

    response = client.get("/ping")

    assert response.json()["reachable"] is False


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["queue_state"] == "IDLE"


def test_root_and_request_id(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.json()["jobs"] == "/jobs"
    assert response.headers["X-Request-ID"] == "req-123"
