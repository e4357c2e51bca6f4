"""intake/extractors/encoding.py

Byte -> str decoding for plain-text style uploads (TXT, CSV).
"""

import logging

from charset_normalizer import from_bytes

logger = logging.getLogger("intake.extractors.encoding")


def detect_encoding(raw: bytes) -> str:
    best = from_bytes(raw).best()
    return best.encoding if best else "utf-8"


def decode_bytes(raw: bytes) -> str:
    if not raw:
        return ""
    # Plain UTF-8 (with or without BOM) is by far the common case.
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    encoding = detect_encoding(raw)
    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.warning("decode.fallback_replace", extra={"encoding": encoding})
        return raw.decode("utf-8", errors="replace")
