"""intake/pdf/quality.py

Cheap, explainable heuristics to score extracted text.

Two independent evaluators:
- text quality: is this text plausibly clean prose, or garbled / too thin?
- table confidence: does the raw line structure look like a table that a
  naive extraction has flattened?

Both are pure functions of their input; nothing here touches I/O.
"""

import re

from intake.pdf.types import TableConfidenceMetrics, TextQualityMetrics


_NON_PRINTABLE = re.compile(r"[^\x09\x0A\x0D\x20-\x7E]")
_LATIN_LETTER = re.compile(r"[A-Za-z]")
_WHITESPACE_RUN = re.compile(r"\s+")
_DOUBLE_SPACE_RUN = re.compile(r"\s{2,}")
_LINE_SPLIT = re.compile(r"\r?\n")

MIN_TEXT_LENGTH = 150
MIN_CHARS_PER_PAGE = 120
MAX_AVG_WORD_LENGTH = 16
MIN_LETTER_RATIO = 0.25
MAX_NON_PRINTABLE_RATIO = 0.35
ISSUE_PENALTY = 0.25

TABLE_THRESHOLD_MULTI_PAGE = 0.25
TABLE_THRESHOLD_SINGLE_PAGE = 0.18


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def evaluate_table_confidence(raw_text: str | None, page_count: int = 1) -> TableConfidenceMetrics:
    lines = _LINE_SPLIT.split(raw_text or "")

    rich_line_count = 0
    pipe_count = 0
    tab_count = 0
    multi_space_lines = 0

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            continue

        pipes = trimmed.count("|")
        tabs = trimmed.count("\t")
        double_spaces = len(_DOUBLE_SPACE_RUN.findall(trimmed))

        if pipes >= 2 or tabs >= 2 or double_spaces >= 2:
            rich_line_count += 1
        if pipes >= 2:
            pipe_count += 1
        if tabs >= 2:
            tab_count += 1
        if double_spaces >= 3:
            multi_space_lines += 1

    total_lines = max(len(lines), 1)
    rich_ratio = rich_line_count / total_lines
    pipe_ratio = pipe_count / total_lines
    tab_ratio = tab_count / total_lines
    multi_space_ratio = multi_space_lines / total_lines

    score = min(1.0, rich_ratio * 0.6 + pipe_ratio * 1.5 + tab_ratio * 1.5 + multi_space_ratio * 0.5)
    threshold = TABLE_THRESHOLD_MULTI_PAGE if page_count >= 2 else TABLE_THRESHOLD_SINGLE_PAGE
    is_likely = score >= threshold

    reason = (
        "Detected alignment patterns consistent with table structure."
        if is_likely
        else "Table-like alignment not detected in quick extraction."
    )

    return TableConfidenceMetrics(
        is_likely=is_likely,
        score=score,
        threshold=threshold,
        reason=reason,
        total_lines=total_lines,
        rich_line_count=rich_line_count,
        pipe_count=pipe_count,
        tab_count=tab_count,
        multi_space_lines=multi_space_lines,
        rich_ratio=rich_ratio,
        pipe_ratio=pipe_ratio,
        tab_ratio=tab_ratio,
        multi_space_ratio=multi_space_ratio,
    )


def summarize_text_quality(raw_text: str | None, page_count: int = 1) -> TextQualityMetrics:
    text = (raw_text or "").strip()

    if not text:
        return TextQualityMetrics(
            score=0.0,
            is_usable=False,
            reason="No text extracted",
            page_count=page_count,
        )

    cleaned = _WHITESPACE_RUN.sub(" ", text).strip()
    length = len(cleaned)
    words = [w for w in cleaned.split(" ") if w]
    word_count = len(words)
    avg_word_length = length / word_count if word_count else float(length)

    non_printable_ratio = len(_NON_PRINTABLE.findall(cleaned)) / length
    letter_ratio = len(_LATIN_LETTER.findall(cleaned)) / length

    issues: list[str] = []
    if length < max(MIN_TEXT_LENGTH, page_count * MIN_CHARS_PER_PAGE):
        issues.append("very little text for document size")
    if avg_word_length > MAX_AVG_WORD_LENGTH:
        issues.append("average word length unusually high")
    if letter_ratio < MIN_LETTER_RATIO:
        issues.append("letter ratio low")
    if non_printable_ratio > MAX_NON_PRINTABLE_RATIO:
        issues.append("many non-printable characters")

    table_confidence = evaluate_table_confidence(raw_text, page_count)
    score = _clamp(1 - len(issues) * ISSUE_PENALTY)

    if issues:
        reason = f"Text extraction appears degraded ({', '.join(issues)})."
    else:
        reason = "Clean text extraction (Path B)."

    return TextQualityMetrics(
        score=score,
        is_usable=not issues,
        reason=reason,
        length=length,
        word_count=word_count,
        avg_word_length=avg_word_length,
        non_printable_ratio=non_printable_ratio,
        letter_ratio=letter_ratio,
        page_count=page_count,
        issues=tuple(issues),
        table_confidence_score=table_confidence.score,
        table_confidence=table_confidence,
    )
