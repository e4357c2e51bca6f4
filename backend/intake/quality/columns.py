"""intake/quality/columns.py

Column classifier for tabular data. A column name maps to a set of tags by
case-insensitive substring match against fixed keyword lists.
"""

from enum import Enum
from typing import Sequence

CRITICAL_KEYWORDS = ("po", "order", "status", "customer", "eta", "tracking", "invoice", "reference", "shipment")
ID_KEYWORDS = ("po", "order", "id", "number")
DATE_KEYWORDS = ("date", "eta", "time")

FALLBACK_CRITICAL_COUNT = 5


class ColumnTag(str, Enum):
    CRITICAL = "critical"
    ID_LIKE = "id_like"
    DATE_LIKE = "date_like"


_KEYWORDS_BY_TAG = {
    ColumnTag.CRITICAL: CRITICAL_KEYWORDS,
    ColumnTag.ID_LIKE: ID_KEYWORDS,
    ColumnTag.DATE_LIKE: DATE_KEYWORDS,
}


def classify_column(name: str) -> frozenset[ColumnTag]:
    lowered = str(name).lower()
    return frozenset(
        tag for tag, keywords in _KEYWORDS_BY_TAG.items() if any(k in lowered for k in keywords)
    )


def columns_with(columns: Sequence[str], tag: ColumnTag) -> list[str]:
    return [col for col in columns if tag in classify_column(col)]


def critical_fields(columns: Sequence[str]) -> list[str]:
    """Critical columns; with no keyword match, the first five columns."""
    critical = columns_with(columns, ColumnTag.CRITICAL)
    return critical or list(columns[:FALLBACK_CRITICAL_COUNT])


def id_columns(columns: Sequence[str]) -> list[str]:
    return columns_with(columns, ColumnTag.ID_LIKE)


def date_columns(columns: Sequence[str]) -> list[str]:
    return columns_with(columns, ColumnTag.DATE_LIKE)
