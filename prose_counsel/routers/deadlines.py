"""
Deadlines API
Filing, hearing, response and discovery dates tied to a case.
"""

import logging

from fastapi import APIRouter, Depends

from prose_counsel.core.errors import NotFound
from prose_counsel.models.schemas import DeadlineCreate, DeadlineResponse, DeadlineUpdate
from prose_counsel.services.stores import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/deadlines", tags=["Deadlines"])


@router.get("", response_model=list[DeadlineResponse])
async def list_deadlines(storage: Storage = Depends(get_storage)):
    """All deadlines, soonest due first."""
    return await storage.deadlines.list_all()


@router.get("/upcoming", response_model=list[DeadlineResponse])
async def upcoming_deadlines(storage: Storage = Depends(get_storage)):
    """Incomplete deadlines due within the next 30 days."""
    return await storage.deadlines.list_upcoming()


@router.get("/{deadline_id}", response_model=DeadlineResponse)
async def get_deadline(deadline_id: str, storage: Storage = Depends(get_storage)):
    deadline = await storage.deadlines.get(deadline_id)
    if deadline is None:
        raise NotFound("Deadline not found")
    return deadline


@router.post("", response_model=DeadlineResponse, status_code=201)
async def create_deadline(data: DeadlineCreate, storage: Storage = Depends(get_storage)):
    if await storage.cases.get(data.case_id) is None:
        raise NotFound("Case not found")
    deadline = await storage.deadlines.create(**data.model_dump())
    logger.info("Deadline %s due %s", deadline.id, deadline.due_date.isoformat())
    return deadline


@router.patch("/{deadline_id}", response_model=DeadlineResponse)
async def update_deadline(
    deadline_id: str,
    update: DeadlineUpdate,
    storage: Storage = Depends(get_storage),
):
    deadline = await storage.deadlines.update(deadline_id, **update.changes())
    if deadline is None:
        raise NotFound("Deadline not found")
    return deadline
