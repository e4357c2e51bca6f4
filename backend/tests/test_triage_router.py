import threading

import pytest

from intake.constants.routes import FileType, TriageRoute
from intake.constants.statuses import EscalationStatus
from intake.core import AppError, ErrorCode
from intake.pdf.types import ExtractedPDF
from intake.triage.router import TriageRouter, detect_file_type
from intake.vision.client import VisionResult
from intake.vision.escalator import VisionEscalator

from conftest import CLEAN_PROSE, DOCX_MIME, XLSX_MIME, FakeVisionClient, make_docx, make_pdf, make_xlsx, upload

GARBLED = "\x00\x01\x02\x03\x04\x05\x06\x07" * 10


def _quick(text, pages=1):
    def extractor(_bytes):
        return ExtractedPDF(text=text, page_count=pages, pages_with_text=1 if text else 0, strategy="fake")

    return extractor


def _failing_extractor(_bytes):
    raise RuntimeError("cannot parse")


def _router(client=None, *, quick=None, vision_pdf_enabled=False, storage=None):
    escalator = VisionEscalator(client, storage, local_extractor=lambda _b: None)
    kwargs = {"vision_pdf_enabled": vision_pdf_enabled}
    if quick is not None:
        kwargs["quick_extractor"] = quick
    return TriageRouter(escalator, **kwargs)


@pytest.mark.parametrize(
    "filename,content_type,expected",
    [
        ("orders.xlsx", "", FileType.EXCEL),
        ("orders.CSV", "", FileType.EXCEL),
        ("blob", XLSX_MIME, FileType.EXCEL),
        ("scan.pdf", "", FileType.PDF),
        ("notes", DOCX_MIME, FileType.DOCX),
        ("readme.txt", "", FileType.TXT),
        ("image.png", "image/png", None),
    ],
)
def test_detect_file_type(filename, content_type, expected):
    assert detect_file_type(upload(b"x", filename, content_type)) == expected


def test_spreadsheet_goes_down_path_a():
    data = make_xlsx(["PO", "Customer"], [["1", "  Acme Corp  "]])
    [pf] = _router().process_files([upload(data, "po.xlsx", XLSX_MIME)])
    assert pf.triage.route == TriageRoute.STRUCTURED_SPREADSHEET
    assert pf.triage.quality.score == 1
    assert pf.triage.quality.reason == "Structured spreadsheet"
    assert pf.data == [{"PO": "1", "Customer": "Acme Corp"}]
    assert pf.to_dict()["metadata"]["triage_route"] == "structured_excel"


def test_docx_goes_down_text_doc_path():
    data = make_docx([CLEAN_PROSE])
    [pf] = _router().process_files([upload(data, "policy.docx", DOCX_MIME)])
    assert pf.triage.route == TriageRoute.TEXT_DOC
    assert pf.triage.reason == "DOCX text extracted locally (Path B)."
    assert pf.triage.quality.is_usable


def test_short_txt_keeps_route_but_reports_degraded():
    [pf] = _router().process_files([upload(b"tiny note", "note.txt", "text/plain")])
    assert pf.triage.route == TriageRoute.TEXT_PLAIN
    assert "degraded" in pf.triage.reason
    assert pf.triage.quality.is_usable is False


def test_clean_pdf_is_accepted_on_text_path():
    router = _router(quick=_quick(CLEAN_PROSE))
    [pf] = router.process_files([upload(b"%PDF-fake", "manual.pdf", "application/pdf")])
    assert pf.triage.route == TriageRoute.TEXT_PDF
    assert pf.data["full_text"] == CLEAN_PROSE
    assert pf.data["tables"] == []
    assert pf.metadata["extraction_method"] == "quick_pdf_parse:fake"
    assert pf.triage.recommended_tool is None


def test_real_pdf_bytes_run_through_quick_extraction():
    pdf = make_pdf(["\n".join(CLEAN_PROSE[i:i + 90] for i in range(0, 1800, 90))])
    [pf] = _router().process_files([upload(pdf, "real.pdf", "application/pdf")])
    assert pf.triage.route == TriageRoute.TEXT_PDF
    assert "quick brown Fox" in pf.data["full_text"]
    assert pf.data["pages"] == 1


def test_garbled_pdf_escalates_with_vision_flag_off():
    router = _router(quick=_quick(GARBLED), vision_pdf_enabled=False)
    [pf] = router.process_files([upload(b"%PDF-fake", "scan.pdf", "application/pdf")])
    assert pf.triage.route == TriageRoute.VISION_PDF
    assert "degraded" in pf.triage.reason
    assert pf.triage.recommended_tool == "process_pdf_with_vlm"
    # no vision client configured
    assert pf.triage.escalation["status"] == EscalationStatus.SKIPPED.value
    assert pf.triage.escalation["reason"] == "low_quality_text"
    assert pf.data["full_text"] == GARBLED
    assert pf.metadata["requires_vision"] is True


def test_garbled_pdf_escalates_for_tables_with_vision_flag_on():
    client = FakeVisionClient(
        VisionResult(
            raw_text="Invoice 42",
            structured_payload={"summary": "invoice", "full_text": "Invoice 42", "tables": []},
            model_id="gemini-test",
            latency_ms=12,
        )
    )
    router = _router(client, quick=_quick(GARBLED), vision_pdf_enabled=True)
    [pf] = router.process_files([upload(b"%PDF-fake", "invoice.pdf", "application/pdf")])
    assert pf.triage.route == TriageRoute.VISION_PDF
    assert client.calls[0]["reason"] == "table_structure_loss"
    assert pf.metadata["extraction_method"] == "triage_table_escalated"
    assert pf.triage.escalation["status"] == "completed"
    assert pf.data["full_text"] == "Invoice 42"
    assert pf.data["vision_payload"]["summary"] == "invoice"
    assert pf.data["quick_extract"]["full_text"] == GARBLED


def test_vision_failure_degrades_instead_of_raising():
    client = FakeVisionClient(error=TimeoutError("vision timed out"))
    router = _router(client, quick=_quick(GARBLED))
    [pf] = router.process_files([upload(b"%PDF-fake", "scan.pdf", "application/pdf")])
    assert pf.triage.route == TriageRoute.VISION_PDF
    assert pf.triage.escalation["status"] == "failed"
    assert "timed out" in pf.triage.escalation["error"]
    assert pf.data["full_text"] == GARBLED


def test_unreadable_pdf_escalates_with_empty_text():
    router = _router(quick=_failing_extractor)
    [pf] = router.process_files([upload(b"garbage", "broken.pdf", "application/pdf")])
    assert pf.triage.route == TriageRoute.VISION_PDF
    assert pf.triage.quality.reason == "Quick extraction unavailable"
    assert pf.data["full_text"] == ""


def test_unsupported_files_are_skipped():
    out = _router().process_files([
        upload(b"\x89PNG", "logo.png", "image/png"),
        upload(CLEAN_PROSE.encode(), "notes.txt", "text/plain"),
    ])
    assert [pf.original_name for pf in out] == ["notes.txt"]


def test_extractor_error_aborts_the_batch():
    files = [
        upload(CLEAN_PROSE.encode(), "ok.txt", "text/plain"),
        upload(b"   ", "empty.txt", "text/plain"),
        upload(CLEAN_PROSE.encode(), "never.txt", "text/plain"),
    ]
    with pytest.raises(AppError) as exc:
        _router().process_files(files)
    err = exc.value
    assert err.code == ErrorCode.BATCH_ABORTED
    assert err.details["filename"] == "empty.txt"
    assert err.details["cause_code"] == ErrorCode.EMPTY_DOCUMENT.value
    assert "empty.txt" in str(err)


def test_unexpected_exception_also_aborts_the_batch(monkeypatch):
    def boom(_upload):
        raise ValueError("corrupt zip")

    monkeypatch.setattr("intake.triage.router.extract_docx", boom)
    with pytest.raises(AppError) as exc:
        _router().process_files([upload(b"PK..", "bad.docx", DOCX_MIME)])
    assert exc.value.code == ErrorCode.BATCH_ABORTED
    assert exc.value.details["cause_code"] == ErrorCode.INTERNAL_ERROR.value


def test_cancelled_batch_stops_between_files():
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(AppError) as exc:
        _router().process_files([upload(CLEAN_PROSE.encode(), "a.txt", "text/plain")], cancel_event=cancel)
    assert exc.value.code == ErrorCode.JOB_CANCELLED
