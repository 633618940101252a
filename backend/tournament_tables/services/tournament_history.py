"""
Prior-round table/terrain exposure for participants of one tournament.

A TournamentHistory is bound to a fixed "current round" at construction and
only ever looks at rounds strictly before it. Build a fresh instance for every
generation or edit call and discard it afterwards.

The engine asks about every (pairing x candidate table) combination, so each
participant's history is loaded with a single query on first access and served
from memory afterwards.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from sqlmodel import Session, or_, select

from tournament_tables.models.allocation import Allocation
from tournament_tables.models.player import Player
from tournament_tables.models.round import Round
from tournament_tables.models.tournament_table import TournamentTable


@dataclass
class ParticipantHistory:
    # Table numbers in round order (a table may appear more than once)
    table_numbers: List[int] = field(default_factory=list)
    terrain_type_ids: Set[int] = field(default_factory=set)


class TournamentHistory:
    def __init__(self, session: Session, tournament_id: int, current_round_number: int):
        self.session = session
        self.tournament_id = tournament_id
        self.current_round_number = current_round_number
        self.queries_executed = 0
        self._cache: Dict[str, ParticipantHistory] = {}

    def has_player_used_table(self, participant_id: str, table_number: int) -> bool:
        return table_number in self._history_for(participant_id).table_numbers

    def has_player_experienced_terrain(self, participant_id: str, terrain_type_id: Optional[int]) -> bool:
        if terrain_type_id is None:
            return False
        return terrain_type_id in self._history_for(participant_id).terrain_type_ids

    def get_player_table_history(self, participant_id: str) -> List[int]:
        return list(self._history_for(participant_id).table_numbers)

    def get_player_terrain_history(self, participant_id: str) -> Set[int]:
        return set(self._history_for(participant_id).terrain_type_ids)

    def clear_cache(self) -> None:
        self._cache = {}

    def _history_for(self, participant_id: str) -> ParticipantHistory:
        key = str(participant_id)
        cached = self._cache.get(key)
        if cached is None:
            cached = self._query_participant_history(key)
            self._cache[key] = cached
        return cached

    def _query_participant_history(self, participant_id: str) -> ParticipantHistory:
        """
        Load every table the participant sat at in earlier rounds.

        Byes carry no table and are excluded by the inner join. Round 1 has no
        earlier rounds, so no query is issued.
        """
        history = ParticipantHistory()
        if self.current_round_number <= 1:
            return history

        player_ids = select(Player.id).where(
            Player.tournament_id == self.tournament_id,
            Player.external_id == participant_id,
        )

        rows = self.session.exec(
            select(TournamentTable.table_number, TournamentTable.terrain_type_id, Round.round_number)
            .select_from(Allocation)
            .join(TournamentTable, Allocation.table_id == TournamentTable.id)
            .join(Round, Allocation.round_id == Round.id)
            .where(
                Round.tournament_id == self.tournament_id,
                Round.round_number < self.current_round_number,
                or_(
                    Allocation.player1_id.in_(player_ids),
                    Allocation.player2_id.in_(player_ids),
                ),
            )
            .order_by(Round.round_number, TournamentTable.table_number)
        ).all()
        self.queries_executed += 1

        for table_number, terrain_type_id, _round_number in rows:
            history.table_numbers.append(table_number)
            if terrain_type_id is not None:
                history.terrain_type_ids.add(terrain_type_id)

        return history
