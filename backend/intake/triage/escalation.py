"""intake/triage/escalation.py

Accept-or-escalate decision for a PDF after quick extraction. Pure: no I/O,
the router acts on the returned decision.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from intake.constants.routes import EscalationReason
from intake.pdf.types import TextQualityMetrics

logger = logging.getLogger("intake.triage.escalation")

DEFAULT_TABLE_SCORE = 1.0
DEFAULT_TABLE_THRESHOLD = 0.25
MIN_ACCEPTABLE_SCORE = 0.7

UNAVAILABLE_QUALITY = TextQualityMetrics(score=0.0, is_usable=False, reason="Quick extraction unavailable")


class PdfState(str, Enum):
    ACCEPTED = "accepted"
    ESCALATED_FOR_TABLES = "escalated_for_tables"
    ESCALATED_FOR_QUALITY = "escalated_for_quality"


@dataclass(frozen=True)
class PdfDecision:
    state: PdfState
    reason_code: EscalationReason | None
    table_likely_lost: bool
    text_looks_bad: bool

    @property
    def escalate(self) -> bool:
        return self.state != PdfState.ACCEPTED


def decide_pdf_route(
    quality: TextQualityMetrics | None,
    text: str,
    vision_pdf_enabled: bool,
    *,
    filename: str = "",
) -> PdfDecision:
    quality = quality or UNAVAILABLE_QUALITY
    table = quality.table_confidence

    table_score = table.score if table is not None else DEFAULT_TABLE_SCORE
    threshold = table.threshold if table is not None else DEFAULT_TABLE_THRESHOLD
    table_likely_lost = table_score < threshold
    text_looks_bad = (not quality.is_usable) or quality.score < MIN_ACCEPTABLE_SCORE

    if vision_pdf_enabled and table_likely_lost and text_looks_bad:
        return PdfDecision(
            PdfState.ESCALATED_FOR_TABLES,
            EscalationReason.TABLE_STRUCTURE_LOSS,
            table_likely_lost,
            text_looks_bad,
        )

    if quality.is_usable and (text or "").strip():
        if table_likely_lost and vision_pdf_enabled:
            logger.info("triage.pdf.tables_lost_text_ok", extra={"file_name": filename})
        elif table_likely_lost:
            logger.info("triage.pdf.tables_lost_vision_disabled", extra={"file_name": filename})
        return PdfDecision(PdfState.ACCEPTED, None, table_likely_lost, text_looks_bad)

    # escalated_for_tables here needs usable-but-empty text, which the evaluator never reports.
    reason = EscalationReason.LOW_QUALITY_TEXT if text_looks_bad else EscalationReason.ESCALATED_FOR_TABLES
    return PdfDecision(PdfState.ESCALATED_FOR_QUALITY, reason, table_likely_lost, text_looks_bad)
