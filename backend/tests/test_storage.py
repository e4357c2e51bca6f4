import pytest

from intake.core import AppError, ErrorCode
from intake.services.storage.base import read_json
from intake.services.storage.factory import build_storage
from intake.services.storage.local_storage import LocalStorage
from intake.services.storage.paths import (
    build_processed_key,
    manifest_key,
    normalize_segment,
    safe_base_name,
    sanitize_tenant_id,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Acme Corp", "acme-corp"),
        ("../../etc", "etc"),
        ("  ", "default"),
        (None, "default"),
        ("tenant_01", "tenant_01"),
        ("a!!b??c", "a-b-c"),
    ],
)
def test_normalize_segment(value, expected):
    assert normalize_segment(value) == expected


def test_keys_are_scoped_to_tenant_and_persona():
    assert manifest_key("Acme", "Buyer") == "acme/buyer/processed/manifest.json"
    assert manifest_key("Acme", None) == "acme/default/processed/manifest.json"
    assert build_processed_key("acme", "p1", "orders", "1_0_ab.json") == "acme/p1/processed/orders/1_0_ab.json"


def test_sanitize_tenant_id_truncates():
    assert sanitize_tenant_id("x" * 100) == "x" * 40
    assert sanitize_tenant_id("") == "default"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("PO Tracking (Q1).xlsx", "po-tracking-q1"),
        ("dir/sub/report.final.pdf", "report-final"),
        ("???.txt", "file-3"),
        (None, "file-3"),
    ],
)
def test_safe_base_name(name, expected):
    assert safe_base_name(name, 3) == expected


def test_local_storage_round_trip(tmp_path):
    store = LocalStorage(tmp_path, prefix="uploads")
    obj = store.save("acme/p1/a.json", {"rows": [1, 2]})
    assert obj.backend == "local"
    assert obj.location.endswith("uploads/acme/p1/a.json")
    assert store.exists("acme/p1/a.json")
    assert read_json(store, "acme/p1/a.json") == {"rows": [1, 2]}

    store.save("acme/p1/b.txt", "hello")
    assert store.read("acme/p1/b.txt") == b"hello"

    assert store.remove("acme/p1/a.json") is True
    assert store.remove("acme/p1/a.json") is False
    assert not store.exists("acme/p1/a.json")


def test_local_storage_missing_object(tmp_path):
    store = LocalStorage(tmp_path)
    with pytest.raises(AppError) as exc:
        store.read("nope.json")
    assert exc.value.code == ErrorCode.NOT_FOUND
    assert exc.value.status_code == 404


def test_local_storage_rejects_escaping_keys(tmp_path):
    store = LocalStorage(tmp_path / "root")
    with pytest.raises(AppError) as exc:
        store.save("../../outside.txt", "x")
    assert exc.value.code == ErrorCode.VALIDATION_ERROR
    assert not (tmp_path / "outside.txt").exists()


def test_build_storage_rejects_unknown_backend(monkeypatch):
    from intake.core.config import settings

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "s3")
    with pytest.raises(AppError) as exc:
        build_storage(settings)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_build_storage_supabase_requires_credentials(monkeypatch):
    from intake.core.config import settings

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "supabase")
    monkeypatch.setattr(settings, "SUPABASE_URL", None)
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_ROLE_KEY", None)
    with pytest.raises(AppError) as exc:
        build_storage(settings)
    assert exc.value.code == ErrorCode.CONFIG_ERROR
