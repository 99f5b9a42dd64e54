"""
Learning Data API
Read-only view of the pattern summaries saved after complaint reviews.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from prose_counsel.models.schemas import LearningDataResponse
from prose_counsel.services.document_intake import LEARNING_CATEGORY
from prose_counsel.services.stores import Storage, get_storage

router = APIRouter(prefix="/api/learning", tags=["Learning"])


@router.get("", response_model=list[LearningDataResponse])
async def list_learning_data(
    category: str = Query(LEARNING_CATEGORY),
    jurisdiction: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage),
):
    """Entries for one category (optionally one jurisdiction), newest first."""
    return await storage.learning.list_by_category(category, jurisdiction)
