import threading

from intake.constants.routes import FileType, TriageRoute
from intake.pdf.types import TextQualityMetrics
from intake.quality.analyzer import analyze_data_quality
from intake.services.ingestion_service import categorize_files
from intake.services.manifest_store import ManifestStore, merge_manifest
from intake.services.storage.base import read_json
from intake.triage.types import ProcessedFile, TriageInfo

NOW = "2024-03-01T00:00:00+00:00"


def processed(name, file_type=FileType.EXCEL, data=None, columns=None):
    route = {
        FileType.EXCEL: TriageRoute.STRUCTURED_SPREADSHEET,
        FileType.PDF: TriageRoute.TEXT_PDF,
        FileType.DOCX: TriageRoute.TEXT_DOC,
        FileType.TXT: TriageRoute.TEXT_PLAIN,
    }[file_type]
    metadata = {"columns": columns or []}
    if file_type == FileType.EXCEL:
        metadata["row_count"] = len(data or [])
    return ProcessedFile(
        original_name=name,
        file_type=file_type,
        data=data if data is not None else [],
        metadata=metadata,
        triage=TriageInfo(route=route, reason="test", quality=TextQualityMetrics(1.0, True, "ok")),
        file_size=10,
    )


def merge(existing, files, main=None, report=None):
    return merge_manifest(existing, files, categorize_files(files), main, report, now=NOW)


def test_merge_into_empty_manifest():
    tracking = processed("orders.xlsx", data=[{"PO": "1"}], columns=["PO"])
    guide = processed("guide.pdf", FileType.PDF, data={"full_text": "x"})
    manifest = merge(None, [tracking, guide], main=tracking)

    assert manifest["upload_time"] == NOW
    assert manifest["total_files"] == 2
    assert manifest["file_types"] == {"tracking": 1, "knowledge": 1, "other": 0}
    assert manifest["main_file"] == {"filename": "orders.xlsx", "type": "excel", "rows": 1, "columns": ["PO"]}
    assert manifest["files"][0]["metadata"]["triage_route"] == "structured_excel"
    assert manifest["files"][1]["category"] == "knowledge"
    assert manifest["quality_report"] is None


def test_reupload_replaces_entry_by_name():
    first = merge(None, [processed("notes.txt", FileType.TXT, data={"full_text": "a"})])
    second = merge(first, [processed("notes.txt", FileType.TXT, data={"full_text": "b"})])
    assert second["total_files"] == 1
    assert [f["name"] for f in second["files"]] == ["notes.txt"]


def test_existing_main_file_and_report_survive_unrelated_upload():
    tracking = processed("orders.xlsx", data=[{"PO": "1"}], columns=["PO"])
    report = analyze_data_quality([{"PO": "1"}], ["PO"])
    first = merge(None, [tracking], main=tracking, report=report)

    second = merge(first, [processed("faq.docx", FileType.DOCX, data={"full_text": "q"})])
    assert second["main_file"]["filename"] == "orders.xlsx"
    assert second["quality_report"] == first["quality_report"]
    assert second["total_files"] == 2


def test_legacy_entries_without_category_are_backfilled():
    existing = {"files": [{"name": "old.xlsx", "type": "excel"}, {"name": "old.pdf", "type": "pdf"}, {"name": "x", "type": "zip"}]}
    manifest = merge(existing, [])
    assert [f["category"] for f in manifest["files"]] == ["tracking", "knowledge", "other"]


def test_stale_main_file_falls_back_to_a_tracking_entry():
    existing = {
        "files": [{"name": "b.xlsx", "type": "excel", "category": "tracking", "metadata": {"row_count": 4, "columns": ["PO"]}}],
        "main_file": {"filename": "gone.xlsx"},
    }
    manifest = merge(existing, [])
    assert manifest["main_file"] == {"filename": "b.xlsx", "type": "excel", "rows": 4, "columns": ["PO"]}


def test_load_falls_back_to_tenant_manifest(storage):
    store = ManifestStore(storage)
    assert store.load("acme") is None

    store.save("acme", {"files": [], "total_files": 0})
    loaded = store.load("acme", "buyer")
    assert loaded["tenant_id"] == "acme"
    assert loaded["total_files"] == 0


def test_update_reads_exact_key_and_saves(storage):
    store = ManifestStore(storage)
    store.save("acme", {"files": [{"name": "tenant-level.txt"}], "total_files": 1})

    seen = []

    def fn(current):
        seen.append(current)
        return {"files": [], "total_files": 0}

    saved = store.update("acme", "buyer", fn)
    assert seen == [None]
    assert saved["persona"] == "buyer"
    assert read_json(storage, store.key("acme", "buyer"))["tenant_id"] == "acme"
    assert store.delete("acme", "buyer") is True


def test_concurrent_updates_do_not_lose_writes(storage):
    store = ManifestStore(storage)

    def add_one(current):
        count = (current or {}).get("total_files", 0)
        return {"files": [], "total_files": count + 1}

    threads = [threading.Thread(target=store.update, args=("acme", None, add_one)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.load("acme")["total_files"] == 8


def test_unreadable_manifest_is_treated_as_missing(storage):
    store = ManifestStore(storage)
    storage.save(store.key("acme"), "{not json")
    assert store.load("acme") is None
