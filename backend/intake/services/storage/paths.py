"""intake/services/storage/paths.py

Object key conventions. Every key a tenant can touch lives under
`{tenant}/{persona}/...`; segments are normalised so user-supplied ids can
never escape that prefix.
"""

import re

_SEGMENT_INVALID_RE = re.compile(r"[^a-z0-9\-_]+")
_DASH_RUN_RE = re.compile(r"-{2,}")

MAX_SEGMENT_LENGTH = 80
MAX_TENANT_ID_LENGTH = 40
MAX_BASE_NAME_LENGTH = 80

MANIFEST_FILENAME = "manifest.json"


def normalize_segment(value, fallback: str = "default") -> str:
    base = str(value if value is not None else fallback).lower()
    cleaned = _SEGMENT_INVALID_RE.sub("-", base)
    cleaned = _DASH_RUN_RE.sub("-", cleaned).strip("-")[:MAX_SEGMENT_LENGTH]
    return cleaned or fallback


def join_key(*parts) -> str:
    return "/".join(
        str(p).strip("/") for p in parts if p is not None and str(p).strip("/")
    )


def tenant_persona_prefix(tenant_id: str | None, persona_id: str | None) -> str:
    return join_key(normalize_segment(tenant_id), normalize_segment(persona_id))


def processed_prefix(tenant_id: str | None, persona_id: str | None) -> str:
    return join_key(tenant_persona_prefix(tenant_id, persona_id), "processed")


def raw_prefix(tenant_id: str | None, persona_id: str | None) -> str:
    return join_key(tenant_persona_prefix(tenant_id, persona_id), "raw")


def build_processed_key(tenant_id: str | None, persona_id: str | None, *segments) -> str:
    return join_key(processed_prefix(tenant_id, persona_id), *segments)


def build_raw_key(tenant_id: str | None, persona_id: str | None, *segments) -> str:
    return join_key(raw_prefix(tenant_id, persona_id), *segments)


def manifest_key(tenant_id: str | None, persona_id: str | None) -> str:
    return build_processed_key(tenant_id, persona_id, MANIFEST_FILENAME)


def sanitize_tenant_id(tenant_id: str | None) -> str:
    return normalize_segment(tenant_id)[:MAX_TENANT_ID_LENGTH] or "default"


def safe_base_name(original_name: str | None, index: int) -> str:
    """Filesystem-friendly stem of an uploaded file name."""
    name = (original_name or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    stem = name.rsplit(".", 1)[0] if "." in name else name
    cleaned = re.sub(r"[^a-zA-Z0-9\-_]+", "-", stem)
    cleaned = _DASH_RUN_RE.sub("-", cleaned).strip("-").lower()[:MAX_BASE_NAME_LENGTH]
    return cleaned or f"file-{index}"
