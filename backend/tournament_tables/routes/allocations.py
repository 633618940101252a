from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from tournament_tables.database import get_session
from tournament_tables.services.allocation_edit_service import AllocationEditService
from tournament_tables.services.errors import AllocationNotFoundError, AllocationValidationError

router = APIRouter()


class TableAssignmentUpdate(BaseModel):
    table_id: int


class SwapRequest(BaseModel):
    allocation_id1: int
    allocation_id2: int


@router.patch("/allocations/{allocation_id}")
def edit_allocation(
    allocation_id: int,
    update: TableAssignmentUpdate,
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """
    Move an allocation to another table.

    A table already in use this round is accepted; the response lists the
    resulting TABLE_COLLISION conflicts.
    """
    try:
        return AllocationEditService(session).edit_table_assignment(allocation_id, update.table_id)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AllocationValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/allocations/swap")
def swap_allocations(request: SwapRequest, session: Session = Depends(get_session)) -> Dict[str, Any]:
    try:
        return AllocationEditService(session).swap_tables(request.allocation_id1, request.allocation_id2)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AllocationValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
