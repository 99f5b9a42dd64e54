"""
Case Management API
Every document, deadline and case-scoped chat thread hangs off a case.
"""

import logging

from fastapi import APIRouter, Depends

from prose_counsel.core.errors import NotFound
from prose_counsel.models.models import Case
from prose_counsel.models.schemas import (
    CaseCreate,
    CaseResponse,
    CaseUpdate,
    DeadlineResponse,
    DocumentResponse,
)
from prose_counsel.services.stores import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cases", tags=["Cases"])


async def _require_case(storage: Storage, case_id: str) -> Case:
    case = await storage.cases.get(case_id)
    if case is None:
        raise NotFound("Case not found")
    return case


# =============================================================================
# Case CRUD Endpoints
# =============================================================================

@router.get("", response_model=list[CaseResponse])
async def list_cases(storage: Storage = Depends(get_storage)):
    """All cases, newest first."""
    return await storage.cases.list_all()


@router.get("/{case_id}", response_model=CaseResponse)
async def get_case(case_id: str, storage: Storage = Depends(get_storage)):
    return await _require_case(storage, case_id)


@router.post("", response_model=CaseResponse, status_code=201)
async def create_case(case_data: CaseCreate, storage: Storage = Depends(get_storage)):
    case = await storage.cases.create(**case_data.model_dump())
    logger.info("Created case %s (%s)", case.id, case.jurisdiction)
    return case


@router.patch("/{case_id}", response_model=CaseResponse)
async def update_case(case_id: str, update: CaseUpdate, storage: Storage = Depends(get_storage)):
    """Partial update; fields not sent keep their stored values."""
    case = await storage.cases.update(case_id, **update.changes())
    if case is None:
        raise NotFound("Case not found")
    return case


# =============================================================================
# Case Children
# =============================================================================

@router.get("/{case_id}/documents", response_model=list[DocumentResponse])
async def list_case_documents(case_id: str, storage: Storage = Depends(get_storage)):
    return await storage.documents.list_for_case(case_id)


@router.get("/{case_id}/deadlines", response_model=list[DeadlineResponse])
async def list_case_deadlines(case_id: str, storage: Storage = Depends(get_storage)):
    return await storage.deadlines.list_for_case(case_id)
