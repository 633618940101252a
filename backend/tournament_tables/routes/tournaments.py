from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tournament_tables.database import get_session
from tournament_tables.models.terrain_type import TerrainType
from tournament_tables.models.tournament import Tournament
from tournament_tables.models.tournament_table import TournamentTable
from tournament_tables.services.allocation_records import load_tables

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    table_count: int

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("table_count")
    @classmethod
    def validate_table_count(cls, v):
        if v < 1:
            raise ValueError("table_count must be >= 1")
        return v


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    table_count: int
    created_at: datetime


class TableResponse(BaseModel):
    id: int
    table_number: int
    terrain_type_id: Optional[int] = None
    terrain_type_name: Optional[str] = None


class TableUpdate(BaseModel):
    terrain_type_id: Optional[int] = None


class TerrainTypeCreate(BaseModel):
    name: str
    description: Optional[str] = None
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TerrainTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    sort_order: int


def _table_response(table: TournamentTable) -> TableResponse:
    terrain = table.terrain_type
    return TableResponse(
        id=table.id,
        table_number=table.table_number,
        terrain_type_id=table.terrain_type_id,
        terrain_type_name=terrain.name if terrain else None,
    )


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament with tables numbered 1..table_count"""
    tournament = Tournament(name=tournament_data.name, table_count=tournament_data.table_count)
    session.add(tournament)
    session.flush()

    for table_number in range(1, tournament_data.table_count + 1):
        session.add(TournamentTable(tournament_id=tournament.id, table_number=table_number))

    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    return _get_tournament_or_404(session, tournament_id)


@router.get("/tournaments/{tournament_id}/tables", response_model=List[TableResponse])
def list_tables(tournament_id: int, session: Session = Depends(get_session)):
    _get_tournament_or_404(session, tournament_id)
    return [_table_response(t) for t in load_tables(session, tournament_id)]


@router.patch("/tournaments/{tournament_id}/tables/{table_number}", response_model=TableResponse)
def update_table(
    tournament_id: int,
    table_number: int,
    update: TableUpdate,
    session: Session = Depends(get_session),
):
    """Set (or clear, with null) the terrain type of a table"""
    _get_tournament_or_404(session, tournament_id)

    table = session.exec(
        select(TournamentTable).where(
            TournamentTable.tournament_id == tournament_id,
            TournamentTable.table_number == table_number,
        )
    ).first()
    if not table:
        raise HTTPException(status_code=404, detail="Table not found")

    if update.terrain_type_id is not None and not session.get(TerrainType, update.terrain_type_id):
        raise HTTPException(status_code=404, detail="Terrain type not found")

    table.terrain_type_id = update.terrain_type_id
    session.add(table)
    session.commit()
    session.refresh(table)
    return _table_response(table)


@router.get("/terrain-types", response_model=List[TerrainTypeResponse])
def list_terrain_types(session: Session = Depends(get_session)):
    return session.exec(select(TerrainType).order_by(TerrainType.sort_order, TerrainType.name)).all()


@router.post("/terrain-types", response_model=TerrainTypeResponse, status_code=201)
def create_terrain_type(request: TerrainTypeCreate, session: Session = Depends(get_session)):
    terrain_type = TerrainType(**request.model_dump())
    try:
        session.add(terrain_type)
        session.commit()
        session.refresh(terrain_type)
        return terrain_type
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Terrain type '{request.name}' already exists")
