"""
Audit trail attached to every allocation.

AllocationReason is stored as JSON on Allocation.allocation_reason and is
rewritten whole on every edit. Conflicts are annotations on a successful
allocation, not errors.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from tournament_tables.services.cost_calculator import CostBreakdown, CostResult


class ConflictType(str, Enum):
    TABLE_REUSE = "TABLE_REUSE"
    TERRAIN_REUSE = "TERRAIN_REUSE"
    TABLE_COLLISION = "TABLE_COLLISION"


@dataclass
class Conflict:
    type: ConflictType
    message: str
    participant_id: Optional[str] = None
    table_number: Optional[int] = None
    terrain_type_id: Optional[int] = None
    other_allocation_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value, "message": self.message}
        for key in ("participant_id", "table_number", "terrain_type_id", "other_allocation_id"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Conflict":
        return cls(
            type=ConflictType(data["type"]),
            message=data.get("message", ""),
            participant_id=data.get("participant_id"),
            table_number=data.get("table_number"),
            terrain_type_id=data.get("terrain_type_id"),
            other_allocation_id=data.get("other_allocation_id"),
        )


@dataclass
class AllocationReason:
    timestamp: str
    total_cost: int = 0
    cost_breakdown: CostBreakdown = field(default_factory=CostBreakdown)
    reasons: List[str] = field(default_factory=list)
    alternatives_considered: Dict[int, int] = field(default_factory=dict)
    is_round1: bool = False
    is_bye: bool = False
    is_manual_edit: bool = False
    conflicts: List[Conflict] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "total_cost": self.total_cost,
            "cost_breakdown": self.cost_breakdown.to_dict(),
            "reasons": list(self.reasons),
            # JSON object keys are strings
            "alternatives_considered": {str(k): v for k, v in sorted(self.alternatives_considered.items())},
            "is_round1": self.is_round1,
            "is_bye": self.is_bye,
            "is_manual_edit": self.is_manual_edit,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AllocationReason":
        data = data or {}
        return cls(
            timestamp=data.get("timestamp", ""),
            total_cost=int(data.get("total_cost", 0)),
            cost_breakdown=CostBreakdown.from_dict(data.get("cost_breakdown")),
            reasons=list(data.get("reasons", [])),
            alternatives_considered={int(k): int(v) for k, v in (data.get("alternatives_considered") or {}).items()},
            is_round1=bool(data.get("is_round1", False)),
            is_bye=bool(data.get("is_bye", False)),
            is_manual_edit=bool(data.get("is_manual_edit", False)),
            conflicts=[Conflict.from_dict(c) for c in data.get("conflicts", [])],
        )


def utc_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def reuse_conflicts(
    cost: CostResult,
    table_number: int,
    terrain_type_id: Optional[int],
    terrain_type_name: Optional[str],
) -> List[Conflict]:
    """Turn the reuse charges of a CostResult into conflict entries.

    Table reuse entries come first, then terrain reuse, each in participant
    order.
    """
    conflicts: List[Conflict] = []
    for participant in cost.table_reuse_by:
        conflicts.append(
            Conflict(
                type=ConflictType.TABLE_REUSE,
                message=f"{participant.name} previously played on table {table_number}",
                participant_id=participant.id,
                table_number=table_number,
            )
        )
    terrain_label = terrain_type_name or f"terrain type {terrain_type_id}"
    for participant in cost.terrain_reuse_by:
        conflicts.append(
            Conflict(
                type=ConflictType.TERRAIN_REUSE,
                message=f"{participant.name} previously experienced {terrain_label} (table {table_number})",
                participant_id=participant.id,
                table_number=table_number,
                terrain_type_id=terrain_type_id,
            )
        )
    return conflicts
