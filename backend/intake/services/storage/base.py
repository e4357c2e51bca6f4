"""intake/services/storage/base.py

The storage contract every backend implements. Keys are opaque strings;
backends may add their own prefix.
"""

import json
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class StoredObject:
    key: str
    backend: str
    location: str  # filesystem path or "bucket/path"


class Storage(Protocol):
    backend: str

    def save(self, key: str, data: bytes | str | dict | list, content_type: str | None = None) -> StoredObject: ...

    def read(self, key: str) -> bytes: ...

    def exists(self, key: str) -> bool: ...

    def remove(self, key: str) -> bool: ...


def encode_payload(data: Any, *, pretty: bool = True) -> tuple[bytes, str]:
    """Normalise a save() payload to bytes plus a default content type."""
    if isinstance(data, bytes):
        return data, "application/octet-stream"
    if isinstance(data, str):
        return data.encode("utf-8"), "text/plain; charset=utf-8"
    body = json.dumps(data, indent=2 if pretty else None, ensure_ascii=False, default=str)
    return body.encode("utf-8"), "application/json"


def read_json(storage: Storage, key: str) -> Any:
    return json.loads(storage.read(key).decode("utf-8"))
