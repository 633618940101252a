"""
Conversions between persisted rows and engine values.
"""

from typing import Any, Dict, List

from sqlmodel import Session, select

from tournament_tables.models.allocation import Allocation
from tournament_tables.models.player import Player
from tournament_tables.models.tournament_table import TournamentTable
from tournament_tables.services.allocation_reason import AllocationReason
from tournament_tables.services.cost_calculator import TableCandidate
from tournament_tables.services.pairing import Participant


def participant_for_player(player: Player, round_score: int = 0) -> Participant:
    return Participant(
        id=player.external_id,
        name=player.name,
        round_score=round_score,
        total_score=player.total_score,
    )


def table_candidate(table: TournamentTable) -> TableCandidate:
    terrain = table.terrain_type
    return TableCandidate(
        table_number=table.table_number,
        terrain_type_id=table.terrain_type_id,
        terrain_type_name=terrain.name if terrain else None,
        table_id=table.id,
    )


def load_tables(session: Session, tournament_id: int) -> List[TournamentTable]:
    return list(
        session.exec(
            select(TournamentTable)
            .where(TournamentTable.tournament_id == tournament_id)
            .order_by(TournamentTable.table_number)
        ).all()
    )


def load_round_allocations(session: Session, round_id: int) -> List[Allocation]:
    """Allocations of a round, seated ones by table number, byes last."""
    allocations = session.exec(select(Allocation).where(Allocation.round_id == round_id)).all()

    def sort_key(allocation: Allocation):
        table = allocation.table
        if table is None:
            return (1, 0, allocation.id or 0)
        return (0, table.table_number, allocation.id or 0)

    return sorted(allocations, key=sort_key)


def _player_dict(player: Player, score: int) -> Dict[str, Any]:
    return {
        "id": player.id,
        "external_id": player.external_id,
        "name": player.name,
        "score": score,
        "total_score": player.total_score,
    }


def allocation_to_dict(session: Session, allocation: Allocation) -> Dict[str, Any]:
    player1 = session.get(Player, allocation.player1_id)
    player2 = session.get(Player, allocation.player2_id) if allocation.player2_id is not None else None
    table = allocation.table
    terrain = table.terrain_type if table else None
    reason = AllocationReason.from_dict(allocation.allocation_reason)

    return {
        "id": allocation.id,
        "round_id": allocation.round_id,
        "table_id": allocation.table_id,
        "table_number": table.table_number if table else None,
        "terrain_type": terrain.name if terrain else None,
        "origin_table_number": allocation.origin_table_number,
        "is_bye": allocation.is_bye,
        "player1": _player_dict(player1, allocation.player1_score) if player1 else None,
        "player2": _player_dict(player2, allocation.player2_score) if player2 else None,
        "reason": reason.to_dict(),
        "conflicts": [c.to_dict() for c in reason.conflicts],
    }
