import logging
from typing import List

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from turmeric_care.config import ANALYZE_RATE_LIMIT, MAX_UPLOAD_BYTES
from turmeric_care.errors import UploadValidationError
from turmeric_care.models import Analysis, AnalyzeRequest, AnalyzeResponse
from turmeric_care.routers.auth import get_session_user_id
from turmeric_care.services.analysis import analyze_image, get_analysis, get_user_analyses
from turmeric_care.utils.rate_limiter import limiter
from turmeric_care.utils.upload import to_data_url, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analyses", tags=["analyses"])

RETRY_MESSAGE = "Analysis failed. Please try again with a clearer image of the turmeric leaf."


async def _analyze(image_base64: str, user_id) -> AnalyzeResponse:
    try:
        analysis_id = await analyze_image(image_base64, user_id=user_id)
    except UploadValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Analyze request failed: {e}")
        raise HTTPException(status_code=502, detail=RETRY_MESSAGE)
    return AnalyzeResponse(analysis_id=analysis_id)


@router.post("", response_model=AnalyzeResponse)
@limiter.limit(ANALYZE_RATE_LIMIT)
async def create_analysis(request: Request, body: AnalyzeRequest):
    """Analyze an image sent as a base64 data URL"""
    return await _analyze(body.image_base64, get_session_user_id(request))


@router.post("/upload", response_model=AnalyzeResponse)
@limiter.limit(ANALYZE_RATE_LIMIT)
async def upload_analysis(request: Request, file: UploadFile = File(...)):
    """Analyze an image sent as a multipart file"""
    # One byte past the ceiling is enough to reject an oversized file
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    try:
        validate_upload(file.content_type, len(data))
    except UploadValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _analyze(to_data_url(file.content_type, data), get_session_user_id(request))


@router.get("", response_model=List[Analysis])
async def list_my_analyses(request: Request):
    """Newest analyses of the signed-in user (empty when anonymous)"""
    return get_user_analyses(get_session_user_id(request))


@router.get("/{analysis_id}", response_model=Analysis)
async def read_analysis(analysis_id: str):
    analysis = get_analysis(analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis
