"""intake/pdf/extract.py

Quick (non-layout-aware) PDF -> text extraction.

Strategy chain, first success wins:
1) PyMuPDF (fitz)
2) pdfplumber
3) pypdf (very basic)
"""

import io

from intake.core import AppError, ErrorCode, ErrorReason
from intake.pdf.strategies import Strategy, run_chain
from intake.pdf.types import ExtractedPDF


def _extract_pymupdf(pdf_bytes: bytes) -> ExtractedPDF:
    import fitz  # type: ignore

    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        page_count = doc.page_count
        texts: list[str] = []
        pages_with_text = 0
        for i in range(page_count):
            t = doc.load_page(i).get_text("text") or ""
            if t.strip():
                pages_with_text += 1
            texts.append(t)
    return ExtractedPDF(
        text="\n\n".join(texts),
        page_count=page_count,
        pages_with_text=pages_with_text,
        strategy="pymupdf",
    )


def _extract_pdfplumber(pdf_bytes: bytes) -> ExtractedPDF:
    import pdfplumber  # type: ignore

    texts: list[str] = []
    pages_with_text = 0
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        page_count = len(pdf.pages)
        for p in pdf.pages:
            t = p.extract_text() or ""
            if t.strip():
                pages_with_text += 1
            texts.append(t)
    return ExtractedPDF(
        text="\n\n".join(texts),
        page_count=page_count,
        pages_with_text=pages_with_text,
        strategy="pdfplumber",
    )


def _extract_pypdf(pdf_bytes: bytes) -> ExtractedPDF:
    from pypdf import PdfReader  # type: ignore

    reader = PdfReader(io.BytesIO(pdf_bytes))
    page_count = len(reader.pages)
    texts: list[str] = []
    pages_with_text = 0
    for p in reader.pages:
        t = p.extract_text() or ""
        if t.strip():
            pages_with_text += 1
        texts.append(t)
    return ExtractedPDF(
        text="\n\n".join(texts),
        page_count=page_count,
        pages_with_text=pages_with_text,
        strategy="pypdf",
    )


QUICK_STRATEGIES: tuple[Strategy[ExtractedPDF], ...] = (
    Strategy("pymupdf", _extract_pymupdf),
    Strategy("pdfplumber", _extract_pdfplumber),
    Strategy("pypdf", _extract_pypdf),
)


def extract_text_from_bytes(pdf_bytes: bytes, strategies=QUICK_STRATEGIES) -> ExtractedPDF:
    if not pdf_bytes:
        raise AppError(
            code=ErrorCode.VALIDATION_ERROR,
            reason=ErrorReason.EMPTY_FILE,
            message="Empty PDF bytes",
            status_code=400,
        )

    chain = run_chain(strategies, pdf_bytes)
    if chain.result is None:
        raise AppError(
            code=ErrorCode.EXTRACTION_FAILED,
            reason=ErrorReason.PDF_INVALID,
            message="No PDF extraction backend could read this file",
            status_code=422,
            details={"attempts": chain.errors},
        )
    return chain.result
