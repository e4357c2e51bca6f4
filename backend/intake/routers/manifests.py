from fastapi import APIRouter, Depends

from intake.api.deps import get_manifest_store
from intake.core.errors import not_found
from intake.services.manifest_store import ManifestStore

router = APIRouter(prefix="/api/manifests", tags=["Manifests"])


@router.get("/{tenant_id}")
def get_manifest(tenant_id: str, persona_id: str | None = None, store: ManifestStore = Depends(get_manifest_store)):
    manifest = store.load(tenant_id, persona_id)
    if manifest is None:
        raise not_found(
            message="No manifest for this tenant yet",
            details={"tenant_id": tenant_id, "persona_id": persona_id},
        )
    return manifest
