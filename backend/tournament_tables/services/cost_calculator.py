"""
Cost model for seating a pairing at a table.

Three tiers, each dominating the next:
1. Table reuse   - 100000 per participant who already played on this table
2. Terrain reuse -  10000 per participant who already played on this terrain
3. Table number  -      1 per table number (lower tables for stronger pairings)

The magnitudes are kept far apart so the weighted sum orders candidates
lexicographically by (table reuses, terrain reuses, table number) for any
realistic venue size (fewer than 10000 tables).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from tournament_tables.services.pairing import Pairing, Participant

COST_TABLE_REUSE = 100000
COST_TERRAIN_REUSE = 10000
COST_TABLE_NUMBER = 1


@dataclass(frozen=True)
class TableCandidate:
    """A table as seen by the engine (no ORM state)."""
    table_number: int
    terrain_type_id: Optional[int] = None
    terrain_type_name: Optional[str] = None
    table_id: Optional[int] = None


@dataclass
class CostBreakdown:
    table_reuse: int = 0
    terrain_reuse: int = 0
    table_number: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "table_reuse": self.table_reuse,
            "terrain_reuse": self.terrain_reuse,
            "table_number": self.table_number,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, int]]) -> "CostBreakdown":
        data = data or {}
        return cls(
            table_reuse=int(data.get("table_reuse", 0)),
            terrain_reuse=int(data.get("terrain_reuse", 0)),
            table_number=int(data.get("table_number", 0)),
        )


@dataclass
class CostResult:
    total_cost: int
    cost_breakdown: CostBreakdown
    reasons: List[str] = field(default_factory=list)
    # Participants behind each reuse charge, in the order the charges were added
    table_reuse_by: List[Participant] = field(default_factory=list)
    terrain_reuse_by: List[Participant] = field(default_factory=list)


class CostCalculator:
    """
    Pure cost function. History is any object answering
    has_player_used_table(participant_id, table_number) and
    has_player_experienced_terrain(participant_id, terrain_type_id).
    """

    def calculate(
        self,
        participants: Sequence[Participant],
        table_number: int,
        terrain_type_id: Optional[int],
        terrain_type_name: Optional[str],
        history,
    ) -> CostResult:
        """
        Calculate the cost of seating the given participants at a table.

        Args:
            participants: One participant for a bye-like check, two for a game
            table_number: Candidate table number
            terrain_type_id: Candidate table's terrain type, or None
            terrain_type_name: Terrain name used in reasons
            history: Prior-round lookup for the tournament

        Returns:
            CostResult with total, per-tier breakdown and one reason per reuse
        """
        breakdown = CostBreakdown()
        result = CostResult(total_cost=0, cost_breakdown=breakdown)

        # Tier 1: table reuse
        for participant in participants:
            if history.has_player_used_table(participant.id, table_number):
                breakdown.table_reuse += COST_TABLE_REUSE
                result.table_reuse_by.append(participant)
                result.reasons.append(f"{participant.name} previously played on table {table_number}")

        # Tier 2: terrain reuse (tables without a terrain type never count)
        if terrain_type_id is not None:
            terrain_label = terrain_type_name or f"terrain type {terrain_type_id}"
            for participant in participants:
                if history.has_player_experienced_terrain(participant.id, terrain_type_id):
                    breakdown.terrain_reuse += COST_TERRAIN_REUSE
                    result.terrain_reuse_by.append(participant)
                    result.reasons.append(f"{participant.name} previously experienced {terrain_label}")

        # Tier 3: table number
        breakdown.table_number = table_number * COST_TABLE_NUMBER

        result.total_cost = breakdown.table_reuse + breakdown.terrain_reuse + breakdown.table_number
        return result

    def calculate_for_pairing(self, pairing: Pairing, table: TableCandidate, history) -> CostResult:
        return self.calculate(
            pairing.participants,
            table.table_number,
            table.terrain_type_id,
            table.terrain_type_name,
            history,
        )
