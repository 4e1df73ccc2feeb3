import logging
from fastapi import APIRouter, Depends
from app.dependencies import get_count_synchronizer
from app.schemas.category import RecomputeSummary
from app.services.interfaces.count_synchronizer_interface import ICountSynchronizer

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/recompute-counts", response_model=RecomputeSummary)
async def recompute_category_counts(counts: ICountSynchronizer = Depends(get_count_synchronizer)):
    logger.info("Manual request to recompute category product counts")
    return await counts.recompute_all()
