"""
Allocation Service: history-aware table assignment for one round

Algorithm:
1. Split byes from regular pairings. Byes never take a table.
2. Round 1: trust the pairing source's own table layout. A pairing whose
   origin table is unusable (absent, unknown or already taken) falls through
   to step 3 for that pairing only.
3. Round 2+: sort pairings by combined total score (descending), then by the
   smaller participant id (ascending), then by input order.
4. Greedy pick: for each pairing, cost every unused table and take the
   cheapest (ties -> lower table number). When every table is already taken
   the pairing is costed against all tables and the chosen one is flagged as
   a TABLE_COLLISION.
5. Every allocation carries an AllocationReason audit record.

Non-goals:
- Global optimality (no min-cost matching)
- Zero conflicts (unavoidable reuse is flagged, not refused)
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from tournament_tables.services.allocation_reason import (
    AllocationReason,
    Conflict,
    ConflictType,
    reuse_conflicts,
    utc_timestamp,
)
from tournament_tables.services.cost_calculator import CostBreakdown, CostCalculator, TableCandidate
from tournament_tables.services.errors import AllocationValidationError
from tournament_tables.services.pairing import ByePairing, Pairing, Participant, RegularPairing

logger = logging.getLogger(__name__)

BYE_REASON = "Bye - no opponent this round"
ROUND1_REASON = "Round 1 - using original table assignment"
ROUND1_NO_ORIGIN_REASON = "Round 1 - no original table number, assigned by cost"


def _participant_dict(participant: Participant) -> Dict[str, Any]:
    return {
        "id": participant.id,
        "name": participant.name,
        "score": participant.round_score,
        "total_score": participant.total_score,
    }


@dataclass
class ProposedAllocation:
    """A generated (not yet persisted) allocation."""
    pairing: Pairing
    table: Optional[TableCandidate]
    reason: AllocationReason

    @property
    def table_number(self) -> Optional[int]:
        return self.table.table_number if self.table else None

    @property
    def is_bye(self) -> bool:
        return self.pairing.is_bye

    @property
    def conflicts(self) -> List[Conflict]:
        return self.reason.conflicts

    def to_dict(self) -> Dict[str, Any]:
        pairing = self.pairing
        return {
            "table_number": self.table_number,
            "table_id": self.table.table_id if self.table else None,
            "terrain_type": self.table.terrain_type_name if self.table else None,
            "player1": _participant_dict(pairing.player1),
            "player2": None if isinstance(pairing, ByePairing) else _participant_dict(pairing.player2),
            "origin_table_number": pairing.origin_table_number,
            "reason": self.reason.to_dict(),
        }


@dataclass
class AllocationResult:
    allocations: List[ProposedAllocation]
    conflicts: List[Conflict]
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allocations": [a.to_dict() for a in self.allocations],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "summary": self.summary,
        }


def pairing_sort_key(pairing: Pairing) -> Tuple[int, str]:
    """Higher combined score first, then smaller participant id."""
    return (-pairing.combined_total_score, pairing.tie_break_id)


def build_summary(allocations: Sequence[ProposedAllocation], conflicts: Sequence[Conflict]) -> str:
    bye_count = sum(1 for a in allocations if a.is_bye)
    head = f"{len(allocations)} allocation(s) generated"
    if bye_count:
        head += f" ({bye_count} bye)"

    if not conflicts:
        return f"{head}; no conflicts."

    counts = Counter(c.type for c in conflicts)
    labels = (
        (ConflictType.TABLE_REUSE, "table reuse"),
        (ConflictType.TERRAIN_REUSE, "terrain reuse"),
        (ConflictType.TABLE_COLLISION, "table collision"),
    )
    parts = [f"{counts[conflict_type]} {label}" for conflict_type, label in labels if counts[conflict_type]]
    return f"{head} with {len(conflicts)} conflict(s): {', '.join(parts)}."


class AllocationService:
    def __init__(
        self,
        cost_calculator: Optional[CostCalculator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.cost_calculator = cost_calculator or CostCalculator()
        self._clock = clock

    def generate_allocations(
        self,
        pairings: Sequence[Pairing],
        tables: Sequence[TableCandidate],
        round_number: int,
        history,
    ) -> AllocationResult:
        """
        Generate allocations for one round.

        Args:
            pairings: Regular and bye pairings, in source order
            tables: Every table of the tournament
            round_number: 1-based round number
            history: TournamentHistory (or equivalent) cut off at round_number

        Returns:
            AllocationResult: seated pairings first, byes last

        Raises:
            AllocationValidationError: regular pairings but no tables at all
        """
        regular = [p for p in pairings if not p.is_bye]
        byes = [p for p in pairings if p.is_bye]

        if regular and not tables:
            raise AllocationValidationError("No tables available for allocation")

        timestamp = utc_timestamp(self._clock() if self._clock else None)
        is_round1 = round_number == 1
        ordered_tables = sorted(tables, key=lambda t: t.table_number)

        allocations: List[ProposedAllocation] = []
        # table_number -> first allocation seated there
        seated: Dict[int, ProposedAllocation] = {}

        pending: List[Tuple[RegularPairing, Optional[str]]] = []
        if is_round1:
            tables_by_number = {t.table_number: t for t in ordered_tables}
            for pairing in regular:
                origin = pairing.origin_table_number
                table = tables_by_number.get(origin) if origin is not None else None
                if table is None:
                    note = (
                        ROUND1_NO_ORIGIN_REASON
                        if origin is None
                        else f"Round 1 - original table {origin} is not a tournament table, assigned by cost"
                    )
                    pending.append((pairing, note))
                    continue
                if table.table_number in seated:
                    pending.append(
                        (pairing, f"Round 1 - original table {origin} already assigned, assigned by cost")
                    )
                    continue

                allocation = self._round1_allocation(pairing, table, timestamp)
                seated[table.table_number] = allocation
                allocations.append(allocation)
        else:
            pending = [(pairing, None) for pairing in regular]

        # sorted() is stable, so equal keys keep input order
        for pairing, note in sorted(pending, key=lambda item: pairing_sort_key(item[0])):
            allocation = self._allocate_pairing(
                pairing, ordered_tables, seated, history, is_round1, timestamp, note
            )
            seated.setdefault(allocation.table_number, allocation)
            allocations.append(allocation)

        for pairing in byes:
            allocations.append(self._bye_allocation(pairing, is_round1, timestamp))

        conflicts = [conflict for allocation in allocations for conflict in allocation.conflicts]
        summary = build_summary(allocations, conflicts)

        logger.info(
            "Round %s: %d allocation(s), %d bye(s), %d conflict(s)",
            round_number,
            len(allocations),
            len(byes),
            len(conflicts),
        )

        return AllocationResult(allocations=allocations, conflicts=conflicts, summary=summary)

    def _round1_allocation(
        self,
        pairing: RegularPairing,
        table: TableCandidate,
        timestamp: str,
    ) -> ProposedAllocation:
        reason = AllocationReason(
            timestamp=timestamp,
            total_cost=0,
            cost_breakdown=CostBreakdown(),
            reasons=[ROUND1_REASON],
            alternatives_considered={},
            is_round1=True,
            conflicts=[],
        )
        return ProposedAllocation(pairing=pairing, table=table, reason=reason)

    def _allocate_pairing(
        self,
        pairing: RegularPairing,
        tables: List[TableCandidate],
        seated: Dict[int, ProposedAllocation],
        history,
        is_round1: bool,
        timestamp: str,
        note: Optional[str] = None,
    ) -> ProposedAllocation:
        """Seat one pairing at the cheapest table still free (any table once all are taken)."""
        pool = [t for t in tables if t.table_number not in seated]
        candidates = pool or tables

        costs = {t.table_number: self.cost_calculator.calculate_for_pairing(pairing, t, history) for t in candidates}
        best = min(candidates, key=lambda t: (costs[t.table_number].total_cost, t.table_number))
        cost = costs[best.table_number]

        alternatives = {number: c.total_cost for number, c in costs.items() if number != best.table_number}

        conflicts = reuse_conflicts(cost, best.table_number, best.terrain_type_id, best.terrain_type_name)

        holder = seated.get(best.table_number)
        if holder is not None:
            conflicts.append(
                Conflict(
                    type=ConflictType.TABLE_COLLISION,
                    message=(
                        f"Table {best.table_number} is also assigned to {holder.pairing.describe()} "
                        "(more pairings than tables)"
                    ),
                    table_number=best.table_number,
                )
            )

        reasons = ([note] if note else []) + cost.reasons

        reason = AllocationReason(
            timestamp=timestamp,
            total_cost=cost.total_cost,
            cost_breakdown=cost.cost_breakdown,
            reasons=reasons,
            alternatives_considered=alternatives,
            is_round1=is_round1,
            conflicts=conflicts,
        )
        return ProposedAllocation(pairing=pairing, table=best, reason=reason)

    def _bye_allocation(self, pairing: ByePairing, is_round1: bool, timestamp: str) -> ProposedAllocation:
        reason = AllocationReason(
            timestamp=timestamp,
            total_cost=0,
            cost_breakdown=CostBreakdown(),
            reasons=[BYE_REASON],
            alternatives_considered={},
            is_round1=is_round1,
            is_bye=True,
            conflicts=[],
        )
        return ProposedAllocation(pairing=pairing, table=None, reason=reason)
