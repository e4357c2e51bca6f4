from intake.constants.routes import EscalationReason
from intake.pdf.quality import summarize_text_quality
from intake.pdf.types import TextQualityMetrics
from intake.triage.escalation import PdfState, decide_pdf_route

from conftest import CLEAN_PROSE

GARBLED = "\x00\x01\x02\x03 \x04\x05" * 12


def test_clean_text_is_accepted():
    q = summarize_text_quality(CLEAN_PROSE)
    d = decide_pdf_route(q, CLEAN_PROSE, vision_pdf_enabled=True)
    assert d.state == PdfState.ACCEPTED
    assert d.reason_code is None
    assert d.escalate is False


def test_lost_tables_with_clean_text_stay_on_text_path():
    q = summarize_text_quality(CLEAN_PROSE)
    assert q.table_confidence.score < q.table_confidence.threshold
    d = decide_pdf_route(q, CLEAN_PROSE, vision_pdf_enabled=True)
    assert d.state == PdfState.ACCEPTED
    assert d.table_likely_lost is True


def test_lost_tables_and_bad_text_escalate_for_tables_when_enabled():
    q = summarize_text_quality(GARBLED)
    d = decide_pdf_route(q, GARBLED, vision_pdf_enabled=True)
    assert d.state == PdfState.ESCALATED_FOR_TABLES
    assert d.reason_code == EscalationReason.TABLE_STRUCTURE_LOSS


def test_bad_text_escalates_even_when_vision_flag_is_off():
    q = summarize_text_quality(GARBLED)
    d = decide_pdf_route(q, GARBLED, vision_pdf_enabled=False)
    assert d.state == PdfState.ESCALATED_FOR_QUALITY
    assert d.reason_code == EscalationReason.LOW_QUALITY_TEXT


def test_missing_quality_uses_unavailable_defaults():
    d = decide_pdf_route(None, "", vision_pdf_enabled=True)
    # default table score 1 is never below the default threshold
    assert d.table_likely_lost is False
    assert d.text_looks_bad is True
    assert d.state == PdfState.ESCALATED_FOR_QUALITY
    assert d.reason_code == EscalationReason.LOW_QUALITY_TEXT


def test_usable_but_empty_text_escalates_for_tables():
    q = TextQualityMetrics(score=1.0, is_usable=True, reason="ok")
    d = decide_pdf_route(q, "   ", vision_pdf_enabled=False)
    assert d.state == PdfState.ESCALATED_FOR_QUALITY
    assert d.reason_code == EscalationReason.ESCALATED_FOR_TABLES


def test_low_score_counts_as_bad_text():
    q = TextQualityMetrics(score=0.5, is_usable=True, reason="meh")
    d = decide_pdf_route(q, "", vision_pdf_enabled=False)
    assert d.text_looks_bad is True
