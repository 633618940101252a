"""
Read-only check for tables shared by several allocations of one round.

Collisions normally come from manual edits or from rounds with more pairings
than tables. Byes hold no table and are never counted.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from sqlmodel import Session, func, select

from tournament_tables.models.allocation import Allocation
from tournament_tables.models.tournament_table import TournamentTable


@dataclass
class TableCollision:
    table_id: int
    table_number: int
    allocation_ids: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_id": self.table_id,
            "table_number": self.table_number,
            "allocation_ids": list(self.allocation_ids),
        }


class TableCollisionDetector:
    def __init__(self, session: Session):
        self.session = session

    def get_collisions(self, round_id: int) -> List[TableCollision]:
        shared = self.session.exec(
            select(Allocation.table_id, TournamentTable.table_number)
            .join(TournamentTable, Allocation.table_id == TournamentTable.id)
            .where(Allocation.round_id == round_id)
            .group_by(Allocation.table_id, TournamentTable.table_number)
            .having(func.count(Allocation.id) > 1)
            .order_by(TournamentTable.table_number)
        ).all()

        collisions = []
        for table_id, table_number in shared:
            allocation_ids = self.session.exec(
                select(Allocation.id)
                .where(Allocation.round_id == round_id, Allocation.table_id == table_id)
                .order_by(Allocation.id)
            ).all()
            collisions.append(
                TableCollision(table_id=table_id, table_number=table_number, allocation_ids=list(allocation_ids))
            )
        return collisions

    def collision_count(self, round_id: int) -> int:
        shared = (
            select(Allocation.table_id)
            .where(Allocation.round_id == round_id, Allocation.table_id.is_not(None))
            .group_by(Allocation.table_id)
            .having(func.count(Allocation.id) > 1)
            .subquery()
        )
        return self.session.exec(select(func.count()).select_from(shared)).one()

    def has_collisions(self, round_id: int) -> bool:
        return self.collision_count(round_id) > 0

    def has_table_collision(self, round_id: int, table_id: int) -> bool:
        count = self.session.exec(
            select(func.count(Allocation.id)).where(
                Allocation.round_id == round_id,
                Allocation.table_id == table_id,
            )
        ).one()
        return count > 1
