"""
Pairing values handed to the allocation engine for one round.

A pairing is either a RegularPairing (two participants) or a ByePairing (one
participant, no opponent). Code that only makes sense for two participants
takes a RegularPairing, so a bye never reaches a second-player lookup.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Union


@dataclass(frozen=True)
class Participant:
    id: str
    name: str
    round_score: int = 0
    total_score: int = 0


@dataclass(frozen=True)
class RegularPairing:
    player1: Participant
    player2: Participant
    # Table number suggested by the pairing source; only trusted in round 1
    origin_table_number: Optional[int] = None

    is_bye: ClassVar[bool] = False

    @property
    def participants(self) -> Tuple[Participant, ...]:
        return (self.player1, self.player2)

    @property
    def combined_total_score(self) -> int:
        return self.player1.total_score + self.player2.total_score

    @property
    def tie_break_id(self) -> str:
        return min(self.player1.id, self.player2.id)

    def describe(self) -> str:
        return f"{self.player1.name} vs {self.player2.name}"


@dataclass(frozen=True)
class ByePairing:
    player1: Participant

    is_bye: ClassVar[bool] = True
    origin_table_number: ClassVar[Optional[int]] = None

    @property
    def participants(self) -> Tuple[Participant, ...]:
        return (self.player1,)

    @property
    def combined_total_score(self) -> int:
        return self.player1.total_score

    @property
    def tie_break_id(self) -> str:
        return self.player1.id

    def describe(self) -> str:
        return f"{self.player1.name} (bye)"


Pairing = Union[RegularPairing, ByePairing]


def make_pairing(
    player1_id: str,
    player1_name: str,
    player1_round_score: int = 0,
    player1_total_score: int = 0,
    player2_id: Optional[str] = None,
    player2_name: Optional[str] = None,
    player2_round_score: int = 0,
    player2_total_score: int = 0,
    origin_table_number: Optional[int] = None,
) -> Pairing:
    """Build the right pairing variant from flat import fields.

    A missing or empty player2_id makes the pairing a bye; the second player's
    other fields and the table hint are ignored in that case.
    """
    player1 = Participant(
        id=player1_id,
        name=player1_name,
        round_score=player1_round_score,
        total_score=player1_total_score,
    )
    if not player2_id:
        return ByePairing(player1=player1)

    player2 = Participant(
        id=player2_id,
        name=player2_name or player2_id,
        round_score=player2_round_score,
        total_score=player2_total_score,
    )
    return RegularPairing(player1=player1, player2=player2, origin_table_number=origin_table_number)
