from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_tables.models.round import Round
    from tournament_tables.models.tournament_table import TournamentTable


class Allocation(SQLModel, table=True):
    """One pairing seated at one table for one round.

    Byes have neither a table nor a second player.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    round_id: int = Field(foreign_key="round.id")
    table_id: Optional[int] = Field(default=None, foreign_key="tournamenttable.id")
    player1_id: int = Field(foreign_key="player.id")
    player2_id: Optional[int] = Field(default=None, foreign_key="player.id")
    player1_score: int = Field(default=0)
    player2_score: int = Field(default=0)

    # Table hint from the pairing source, kept so a round can be regenerated
    origin_table_number: Optional[int] = Field(default=None)

    # Serialized AllocationReason (see services/allocation_reason.py)
    allocation_reason: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    # Relationships
    round: "Round" = Relationship(back_populates="allocations")
    table: Optional["TournamentTable"] = Relationship()

    @property
    def is_bye(self) -> bool:
        return self.player2_id is None
