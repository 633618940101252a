from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_tables.models.tournament import Tournament


class Player(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "external_id", name="uq_player_tournament_external_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    external_id: str  # Identifier from the pairing source, stable across rounds
    name: str
    total_score: int = Field(default=0)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="players")
