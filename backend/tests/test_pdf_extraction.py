import pytest

from intake.core import AppError, ErrorCode
from intake.pdf.extract import extract_text_from_bytes
from intake.pdf.layout import (
    PAGE_BREAK,
    aligns_with_header,
    detect_tables,
    extract_structured,
    group_by_rows,
    group_into_paragraphs,
    is_likely_table_header,
    render_page,
)
from intake.pdf.strategies import Strategy, run_chain
from intake.pdf.types import LayoutRow, PositionedWord as W, StructuredPDF

from conftest import make_pdf

TABLE_WORDS = [
    W("Item", 50, 100, 30), W("Qty", 150, 100, 20), W("Price", 250, 100, 30),
    W("Widget", 52, 115, 40), W("2", 152, 115, 5), W("9.99", 252, 115, 20),
    W("Gadget", 50, 130, 40), W("5", 150, 130, 5), W("1.50", 250, 130, 20),
]
PROSE_WORDS = [W("Terms", 50, 200, 30), W("apply.", 90, 200, 30)]


def test_group_by_rows_merges_close_y_and_sorts_by_x():
    rows = group_by_rows([W("b", 80, 101, 5), W("a", 10, 100, 5), W("c", 10, 120, 5)])
    assert [[w.text for w in r.items] for r in rows] == [["a", "b"], ["c"]]


def test_header_needs_three_evenly_spaced_short_items():
    assert is_likely_table_header(LayoutRow(100, TABLE_WORDS[:3]))
    assert not is_likely_table_header(LayoutRow(100, TABLE_WORDS[:2]))
    uneven = [W("A", 0, 0, 10), W("B", 20, 0, 10), W("C", 300, 0, 10)]
    assert not is_likely_table_header(LayoutRow(0, uneven))
    too_long = [W("x" * 60, 0, 0, 10), W("B", 40, 0, 10), W("C", 80, 0, 10)]
    assert not is_likely_table_header(LayoutRow(0, too_long))


def test_row_alignment():
    header = LayoutRow(100, TABLE_WORDS[:3])
    assert aligns_with_header(LayoutRow(115, TABLE_WORDS[3:6]), header)
    assert not aligns_with_header(LayoutRow(115, [W("solo", 50, 115, 10)]), header)
    assert not aligns_with_header(LayoutRow(115, [W("x", 400, 115, 5), W("y", 500, 115, 5)]), header)


def test_detect_tables_collects_aligned_rows():
    [table] = detect_tables(TABLE_WORDS + PROSE_WORDS, page_num=1)
    assert table.page == 1
    assert table.cell_rows() == [["Item", "Qty", "Price"], ["Widget", "2", "9.99"], ["Gadget", "5", "1.50"]]
    assert (table.start_y, table.end_y) == (100, 130)


def test_paragraphs_split_on_vertical_gap_and_left_margin():
    words = [W("One", 60, 10, 20), W("two", 90, 10, 20), W("Three", 60, 50, 20), W("Four", 20, 52, 20)]
    paras = group_into_paragraphs(words, page_num=2)
    assert [p.text for p in paras] == ["One two", "Three", "Four"]
    assert all(p.page == 2 for p in paras)


def test_render_page_puts_tables_after_paragraphs_as_markdown():
    text, tables, paragraphs = render_page(TABLE_WORDS + PROSE_WORDS, page_num=3)
    assert len(tables) == 1
    assert [p.text for p in paragraphs] == ["Terms apply."]
    assert text.startswith("Terms apply.")
    assert "### Table 1 (Page 3)" in text
    assert "| Item | Qty | Price |\n| --- | --- | --- |\n| Widget | 2 | 9.99 |" in text


def test_run_chain_first_success_wins():
    calls = []

    def fail(_):
        calls.append("a")
        raise ValueError("nope")

    def ok(_):
        calls.append("b")
        return "result"

    chain = run_chain([Strategy("a", fail), Strategy("b", ok), Strategy("c", ok)], b"")
    assert chain.result == "result"
    assert calls == ["a", "b"]
    assert chain.errors == {"a": "nope"}


def test_structured_extraction_falls_back_to_basic():
    basic = StructuredPDF(full_text="plain", tables=[], paragraphs=[], page_count=1, strategy="basic")

    def layout(_):
        raise RuntimeError("layout broke")

    result = extract_structured(b"%PDF", strategies=[Strategy("layout", layout), Strategy("basic", lambda _: basic)])
    assert result.strategy == "basic"


def test_structured_extraction_fails_when_every_strategy_fails():
    def empty(_):
        raise ValueError("PDF file appears to be empty or contains only images")

    with pytest.raises(AppError) as exc:
        extract_structured(b"%PDF", strategies=[Strategy("basic", empty)])
    assert exc.value.code == ErrorCode.EXTRACTION_FAILED
    assert exc.value.details["attempts"]["basic"].startswith("PDF file appears to be empty")


def test_quick_extraction_of_real_pdf():
    pdf = make_pdf(["First page text", "Second page text"])
    extracted = extract_text_from_bytes(pdf)
    assert extracted.strategy == "pymupdf"
    assert extracted.page_count == 2
    assert extracted.pages_with_text == 2
    assert "Second page text" in extracted.text


def test_structured_extraction_of_real_pdf_uses_layout():
    pdf = make_pdf(["Alpha beta", "Gamma delta"])
    result = extract_structured(pdf)
    assert result.strategy == "layout"
    assert result.page_count == 2
    assert PAGE_BREAK.strip() in result.full_text
    assert "Gamma" in result.full_text


def test_quick_extraction_rejects_empty_bytes():
    with pytest.raises(AppError) as exc:
        extract_text_from_bytes(b"")
    assert exc.value.code == ErrorCode.VALIDATION_ERROR


def test_quick_extraction_of_garbage_fails_cleanly():
    with pytest.raises(AppError) as exc:
        extract_text_from_bytes(b"definitely not a pdf")
    assert exc.value.code == ErrorCode.EXTRACTION_FAILED
    assert set(exc.value.details["attempts"]) == {"pymupdf", "pdfplumber", "pypdf"}
