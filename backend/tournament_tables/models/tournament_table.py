from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_tables.models.terrain_type import TerrainType
    from tournament_tables.models.tournament import Tournament


class TournamentTable(SQLModel, table=True):
    """A physical table at the venue, numbered 1..N within a tournament."""

    __table_args__ = (
        SAUniqueConstraint("tournament_id", "table_number", name="uq_table_tournament_number"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    table_number: int
    terrain_type_id: Optional[int] = Field(default=None, foreign_key="terraintype.id")

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="tables")
    terrain_type: Optional["TerrainType"] = Relationship()
