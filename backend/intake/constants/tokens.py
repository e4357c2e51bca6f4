"""
tokens.py
- Purpose: Cell-value tokens shared by the spreadsheet extractor and the
  data quality analyzer.
"""

import re

# Spreadsheet error values; matched as a prefix, same as the producing apps print them.
FORMULA_ERROR_RE = re.compile(r"^#(N/A|REF!|VALUE!|DIV/0!|NUM!|NAME\?|NULL!)")

# Subset used when highlighting a single row in the UI.
ROW_HIGHLIGHT_ERROR_RE = re.compile(r"^#(N/A|REF!|VALUE!)")

PLACEHOLDER_VALUES = frozenset({"tbd", "pending", "???"})


def is_formula_error(value) -> bool:
    return isinstance(value, str) and FORMULA_ERROR_RE.match(value) is not None


def is_placeholder(value) -> bool:
    return isinstance(value, str) and value.lower() in PLACEHOLDER_VALUES
