"""
Round endpoints: import pairings, (re)generate, publish and inspect.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator, model_validator
from sqlmodel import Session

from tournament_tables.database import get_session
from tournament_tables.services.allocation_generation import (
    get_round,
    get_tournament,
    import_round_pairings,
    publish_round,
    regenerate_round_allocations,
)
from tournament_tables.services.allocation_reason import AllocationReason
from tournament_tables.services.allocation_records import allocation_to_dict, load_round_allocations
from tournament_tables.services.errors import AllocationNotFoundError, AllocationValidationError
from tournament_tables.services.pairing import make_pairing
from tournament_tables.services.table_collision_detector import TableCollisionDetector

router = APIRouter()


class PairingPlayer(BaseModel):
    id: str
    name: str
    score: int = 0
    total_score: int = 0

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not v or not v.strip():
            raise ValueError("player id is required")
        return v.strip()


class PairingIn(BaseModel):
    player1: PairingPlayer
    player2: Optional[PairingPlayer] = None  # None -> bye
    table_number: Optional[int] = None  # Source table, honoured in round 1 only

    @model_validator(mode="before")
    @classmethod
    def blank_opponent_is_bye(cls, data):
        """A second player with an empty id means no opponent."""
        if isinstance(data, dict):
            player2 = data.get("player2")
            if isinstance(player2, dict) and not str(player2.get("id") or "").strip():
                data = {**data, "player2": None}
        return data


class RoundImportRequest(BaseModel):
    pairings: List[PairingIn]


class PublishResponse(BaseModel):
    round_number: int
    is_published: bool
    message: str


@router.post("/tournaments/{tournament_id}/rounds/{round_number}/import")
def import_round(
    tournament_id: int,
    round_number: int,
    request: RoundImportRequest,
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Replace a round's pairings and allocate tables for them"""
    pairings = [
        make_pairing(
            player1_id=p.player1.id,
            player1_name=p.player1.name,
            player1_round_score=p.player1.score,
            player1_total_score=p.player1.total_score,
            player2_id=p.player2.id if p.player2 else None,
            player2_name=p.player2.name if p.player2 else None,
            player2_round_score=p.player2.score if p.player2 else 0,
            player2_total_score=p.player2.total_score if p.player2 else 0,
            origin_table_number=p.table_number,
        )
        for p in request.pairings
    ]

    try:
        return import_round_pairings(session, tournament_id, round_number, pairings)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AllocationValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/tournaments/{tournament_id}/rounds/{round_number}/generate")
def generate_round(
    tournament_id: int,
    round_number: int,
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Re-run allocation over the round's stored pairings"""
    try:
        return regenerate_round_allocations(session, tournament_id, round_number)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AllocationValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/tournaments/{tournament_id}/rounds/{round_number}/publish", response_model=PublishResponse)
def publish(tournament_id: int, round_number: int, session: Session = Depends(get_session)):
    try:
        round_ = publish_round(session, tournament_id, round_number)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PublishResponse(
        round_number=round_.round_number,
        is_published=round_.is_published,
        message=f"Round {round_number} allocations are now public",
    )


@router.get("/tournaments/{tournament_id}/rounds/{round_number}")
def get_round_allocations(
    tournament_id: int,
    round_number: int,
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Allocations, stored conflicts and live table collisions for a round"""
    try:
        get_tournament(session, tournament_id)
        round_ = get_round(session, tournament_id, round_number)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    allocations = load_round_allocations(session, round_.id)
    conflicts = [
        conflict.to_dict()
        for allocation in allocations
        for conflict in AllocationReason.from_dict(allocation.allocation_reason).conflicts
    ]
    collisions = TableCollisionDetector(session).get_collisions(round_.id)

    return {
        "round_number": round_.round_number,
        "is_published": round_.is_published,
        "allocations": [allocation_to_dict(session, a) for a in allocations],
        "conflicts": conflicts,
        "collisions": [c.to_dict() for c in collisions],
    }
