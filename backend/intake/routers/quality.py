from fastapi import APIRouter

from intake.quality.analyzer import analyze_data_quality
from intake.schemas.ingest import QualityAnalyzeRequest

router = APIRouter(prefix="/api/quality", tags=["Quality"])


@router.post("/analyze")
def analyze(body: QualityAnalyzeRequest):
    columns = body.columns if body.columns is not None else list(body.rows[0].keys()) if body.rows else []
    return analyze_data_quality(body.rows, columns).to_dict()
