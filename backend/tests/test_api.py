import pytest
from fastapi.testclient import TestClient

from intake.main import create_app
from intake.services.storage.local_storage import LocalStorage

from conftest import XLSX_MIME, make_docx


@pytest.fixture
def app(tmp_path):
    return create_app(storage=LocalStorage(tmp_path / "store"))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def xlsx_part(content, name="orders.xlsx"):
    return ("files", (name, content, XLSX_MIME))


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["storage"] == "local"
    assert "x-request-id" in res.headers


def test_sync_ingest_of_tracking_sheet(client, tracking_xlsx):
    res = client.post("/api/ingest/sync", files=[xlsx_part(tracking_xlsx)], data={"tenant_id": "acme"})
    assert res.status_code == 200, res.text
    body = res.json()

    assert body["files_processed"] == 1
    assert body["categories"] == {"tracking": 1, "knowledge": 0, "other": 0}
    assert body["main_file"] == {"name": "orders.xlsx", "type": "excel", "rows": 3}

    report = body["quality_report"]
    assert report["quality_score"] == 67
    assert [i["row"] for i in report["critical_issues"]] == [3, 4]
    assert {r["type"] for r in report["recommendations"]} == {"data_quality", "formula_errors"}

    assert body["manifest"]["total_files"] == 1
    assert body["manifest"]["main_file"]["filename"] == "orders.xlsx"
    assert body["validation"][0]["is_valid"] is True
    [saved] = body["saved_files"]
    assert saved["type"] == "excel"
    assert saved["json_key"].startswith("acme/default/processed/orders/")


def test_manifest_is_readable_after_ingest(client, tracking_xlsx):
    assert client.get("/api/manifests/acme").status_code == 404

    client.post("/api/ingest/sync", files=[xlsx_part(tracking_xlsx)], data={"tenant_id": "acme", "persona_id": "buyer"})

    res = client.get("/api/manifests/acme", params={"persona_id": "buyer"})
    assert res.status_code == 200
    manifest = res.json()
    assert manifest["tenant_id"] == "acme"
    assert manifest["persona"] == "buyer"
    assert manifest["files"][0]["triage"]["route"] == "structured_excel"


def test_batch_abort_names_the_failing_file(client, tracking_xlsx):
    res = client.post(
        "/api/ingest/sync",
        files=[xlsx_part(tracking_xlsx), ("files", ("blank.txt", b"   \n  ", "text/plain"))],
        data={"tenant_id": "acme"},
    )
    assert res.status_code == 422
    error = res.json()["error"]
    assert error["code"] == "BATCH_ABORTED"
    assert "blank.txt" in error["message"]
    assert error["details"]["cause_code"] == "EMPTY_DOCUMENT"

    # Nothing from the aborted batch is persisted.
    assert client.get("/api/manifests/acme").status_code == 404


def test_invalid_extension_is_rejected_before_processing(client):
    res = client.post(
        "/api/ingest",
        files=[("files", ("archive.zip", b"PK\x03\x04", "application/zip"))],
        data={"tenant_id": "acme"},
    )
    assert res.status_code == 422
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["files"][0]["filename"] == "archive.zip"


def test_queued_ingest_completes(app, client, tracking_xlsx):
    docx = make_docx(["Supplier guide", "Ship within 5 days."])
    res = client.post(
        "/api/ingest",
        files=[
            xlsx_part(tracking_xlsx),
            ("files", ("guide.docx", docx, "application/vnd.openxmlformats-officedocument.wordprocessingml.document")),
        ],
        data={"tenant_id": "acme"},
    )
    assert res.status_code == 202, res.text
    accepted = res.json()
    assert accepted["status"] == "pending"
    assert accepted["status_url"] == f"/api/jobs/{accepted['job_id']}"

    app.state.job_queue.join()

    job = client.get(accepted["status_url"]).json()
    assert job["status"] == "completed"
    assert job["progress"] == 1.0
    assert job["result"]["categories"] == {"tracking": 1, "knowledge": 1, "other": 0}

    cancel = client.delete(accepted["status_url"]).json()
    assert cancel == {"job_id": accepted["job_id"], "cancelled": False, "status": "completed"}


def test_queued_ingest_failure_is_reported_on_the_job(app, client):
    res = client.post(
        "/api/ingest",
        files=[("files", ("blank.txt", b"  ", "text/plain"))],
        data={"tenant_id": "acme"},
    )
    job_id = res.json()["job_id"]
    app.state.job_queue.join()

    job = client.get(f"/api/jobs/{job_id}").json()
    assert job["status"] == "failed"
    assert job["error_details"]["code"] == "BATCH_ABORTED"
    assert "blank.txt" in job["error"]


def test_unknown_job(client):
    assert client.get("/api/jobs/nope").status_code == 404
    assert client.delete("/api/jobs/nope").status_code == 404


def test_quality_analyze_endpoint(client):
    res = client.post(
        "/api/quality/analyze",
        json={"rows": [{"PO_Number": "SG-001", "Status": ""}, {"PO_Number": "SG-001", "Status": "Shipped"}]},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["details"]["analyzed_columns"] == ["PO_Number", "Status"]
    assert body["duplicates"] == [{"column": "PO_Number", "value": "SG-001", "rows": [2, 3], "count": 2}]
    assert body["quality_score"] == 75


def test_missing_tenant_uses_error_envelope(client, tracking_xlsx):
    res = client.post("/api/ingest/sync", files=[xlsx_part(tracking_xlsx)])
    assert res.status_code == 422
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any("tenant_id" in e["loc"] for e in error["details"]["errors"])
