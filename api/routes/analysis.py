from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from modules.analysis.service import AnalysisService
from modules.analysis.schemas import AnalyzeItemsRequest, AnalyzeItemsResponse, AnalysisErrorResponse
from modules.users.models import User
from api.middleware.auth import get_analysis_caller
from utils.ai_gateway import ExtractionGateway, get_extraction_gateway

router = APIRouter()

# Plain def: the gateway client blocks, so FastAPI runs this in its threadpool
@router.post(
    "/analyze-items",
    response_model=AnalyzeItemsResponse,
    responses={401: {"model": AnalysisErrorResponse}, 500: {"model": AnalysisErrorResponse}}
)
def analyze_items(
    request: AnalyzeItemsRequest,
    current_user: User = Depends(get_analysis_caller),
    db: Session = Depends(get_db),
    gateway: ExtractionGateway = Depends(get_extraction_gateway)
):
    """Analyze uploaded item photos and save one inventory item per image"""
    analysis_service = AnalysisService(db, gateway)
    items = analysis_service.analyze(request.image_urls, current_user.id)
    return {"success": True, "items": items}
