"""
Allocation Edit Service: manual table changes after generation

Operations:
- edit_table_assignment: move one allocation to another table
- swap_tables: exchange the tables of two allocations in the same round

Rules:
- A table already held by another allocation of the round is NOT an error.
  The edit goes through and is annotated with a TABLE_COLLISION conflict per
  occupant. Other allocations are never modified.
- Table/terrain reuse is recomputed against the rounds before the edited one
  and stored as a fresh AllocationReason with is_manual_edit set.
- Byes never hold a table, so they cannot be edited or swapped.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Collection, Dict, List, Optional

from sqlmodel import Session, select

from tournament_tables.models.allocation import Allocation
from tournament_tables.models.player import Player
from tournament_tables.models.round import Round
from tournament_tables.models.tournament_table import TournamentTable
from tournament_tables.services.allocation_reason import (
    AllocationReason,
    Conflict,
    ConflictType,
    reuse_conflicts,
    utc_timestamp,
)
from tournament_tables.services.allocation_records import participant_for_player, table_candidate
from tournament_tables.services.cost_calculator import CostCalculator
from tournament_tables.services.errors import (
    AllocationNotFoundError,
    AllocationValidationError,
    CrossRoundSwapError,
)
from tournament_tables.services.pairing import Participant
from tournament_tables.services.tournament_history import TournamentHistory

logger = logging.getLogger(__name__)


class AllocationEditService:
    def __init__(
        self,
        session: Session,
        cost_calculator: Optional[CostCalculator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.cost_calculator = cost_calculator or CostCalculator()
        self._clock = clock

    def edit_table_assignment(self, allocation_id: int, new_table_id: int) -> Dict[str, Any]:
        """
        Move an allocation to another table of the same tournament.

        Returns:
            Dict with success, allocation_id, new_table_id, table_number and
            the allocation's recomputed conflicts

        Raises:
            AllocationNotFoundError: allocation, table or round missing
            AllocationValidationError: foreign table, or a bye allocation
        """
        allocation = self._get_allocation(allocation_id)

        table = self.session.get(TournamentTable, new_table_id)
        if not table:
            raise AllocationNotFoundError("Table", new_table_id)

        round_ = self._get_round(allocation)

        if table.tournament_id != round_.tournament_id:
            raise AllocationValidationError(f"Table {table.table_number} does not belong to this tournament")
        if allocation.is_bye:
            raise AllocationValidationError("Bye allocations cannot be assigned a table")

        history = TournamentHistory(self.session, round_.tournament_id, round_.round_number)

        try:
            conflicts = self._reassign(allocation, table, round_, history, exclude_ids={allocation.id})
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Moving allocation %s to table %s failed", allocation_id, new_table_id)
            raise

        logger.info(
            "Allocation %s moved to table %s (%d conflict(s))",
            allocation_id,
            table.table_number,
            len(conflicts),
        )

        return {
            "success": True,
            "allocation_id": allocation_id,
            "new_table_id": table.id,
            "table_number": table.table_number,
            "conflicts": [c.to_dict() for c in conflicts],
        }

    def swap_tables(self, allocation_id1: int, allocation_id2: int) -> Dict[str, Any]:
        """
        Exchange the tables of two allocations of the same round.

        Both sides are re-costed against their new table and committed
        together. Collision checks ignore the two swapped allocations.
        """
        if allocation_id1 == allocation_id2:
            raise AllocationValidationError("Cannot swap an allocation with itself")

        allocation1 = self._get_allocation(allocation_id1)
        allocation2 = self._get_allocation(allocation_id2)

        if allocation1.round_id != allocation2.round_id:
            raise CrossRoundSwapError("Both allocations must be in the same round")
        if allocation1.is_bye or allocation2.is_bye:
            raise AllocationValidationError("Bye allocations cannot be swapped")

        round_ = self._get_round(allocation1)

        table1 = allocation1.table
        table2 = allocation2.table
        if table1 is None or table2 is None:
            raise AllocationValidationError("Both allocations must hold a table to be swapped")

        history = TournamentHistory(self.session, round_.tournament_id, round_.round_number)
        exclude_ids = {allocation1.id, allocation2.id}

        try:
            conflicts1 = self._reassign(allocation1, table2, round_, history, exclude_ids)
            conflicts2 = self._reassign(allocation2, table1, round_, history, exclude_ids)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Swapping allocations %s and %s failed", allocation_id1, allocation_id2)
            raise

        logger.info(
            "Swapped allocations %s (now table %s) and %s (now table %s)",
            allocation_id1,
            table2.table_number,
            allocation_id2,
            table1.table_number,
        )

        return {
            "success": True,
            "allocation1": {
                "id": allocation_id1,
                "new_table_id": table2.id,
                "table_number": table2.table_number,
                "conflicts": [c.to_dict() for c in conflicts1],
            },
            "allocation2": {
                "id": allocation_id2,
                "new_table_id": table1.id,
                "table_number": table1.table_number,
                "conflicts": [c.to_dict() for c in conflicts2],
            },
        }

    def _reassign(
        self,
        allocation: Allocation,
        table: TournamentTable,
        round_: Round,
        history: TournamentHistory,
        exclude_ids: Collection[int],
    ) -> List[Conflict]:
        """Point the allocation at table and rewrite its reason. Does not commit."""
        candidate = table_candidate(table)
        cost = self.cost_calculator.calculate(
            self._participants(allocation),
            candidate.table_number,
            candidate.terrain_type_id,
            candidate.terrain_type_name,
            history,
        )

        conflicts = reuse_conflicts(cost, candidate.table_number, candidate.terrain_type_id, candidate.terrain_type_name)
        for occupant in self._occupants(round_.id, table.id, exclude_ids):
            conflicts.append(
                Conflict(
                    type=ConflictType.TABLE_COLLISION,
                    message=f"Table {table.table_number} is also assigned to allocation {occupant.id}",
                    table_number=table.table_number,
                    other_allocation_id=occupant.id,
                )
            )

        reason = AllocationReason(
            timestamp=utc_timestamp(self._clock() if self._clock else None),
            total_cost=cost.total_cost,
            cost_breakdown=cost.cost_breakdown,
            reasons=[f"Manually assigned to table {table.table_number}"] + cost.reasons,
            alternatives_considered={},
            is_round1=round_.round_number == 1,
            is_manual_edit=True,
            conflicts=conflicts,
        )

        allocation.table_id = table.id
        allocation.allocation_reason = reason.to_dict()
        self.session.add(allocation)
        return conflicts

    def _occupants(self, round_id: int, table_id: int, exclude_ids: Collection[int]) -> List[Allocation]:
        return list(
            self.session.exec(
                select(Allocation)
                .where(
                    Allocation.round_id == round_id,
                    Allocation.table_id == table_id,
                    Allocation.id.not_in(list(exclude_ids)),
                )
                .order_by(Allocation.id)
            ).all()
        )

    def _participants(self, allocation: Allocation) -> List[Participant]:
        participants = []
        for player_id, score in (
            (allocation.player1_id, allocation.player1_score),
            (allocation.player2_id, allocation.player2_score),
        ):
            if player_id is None:
                continue
            player = self.session.get(Player, player_id)
            if player is None:
                raise AllocationNotFoundError("Player", player_id)
            participants.append(participant_for_player(player, score))
        return participants

    def _get_allocation(self, allocation_id: int) -> Allocation:
        allocation = self.session.get(Allocation, allocation_id)
        if not allocation:
            raise AllocationNotFoundError("Allocation", allocation_id)
        return allocation

    def _get_round(self, allocation: Allocation) -> Round:
        round_ = self.session.get(Round, allocation.round_id)
        if not round_:
            raise AllocationNotFoundError("Round", allocation.round_id)
        return round_
