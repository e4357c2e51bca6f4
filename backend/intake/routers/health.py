from fastapi import APIRouter, Request

from intake.core.config import settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health(request: Request):
    storage = getattr(request.app.state, "storage", None)
    return {
        "status": "ok",
        "storage": getattr(storage, "backend", None),
        "vision_enabled": settings.VISION_ENABLED,
        "vision_pdf_enabled": settings.VISION_PDF_ENABLED,
    }
