"""
Round allocation pipeline

Pairings in, persisted allocations out:
- import_round_pairings: a fresh pairing list from the pairing source. Players
  are upserted (name and total score refreshed) and the round's allocations
  are replaced.
- regenerate_round_allocations: re-runs the engine over the pairings already
  stored for a round, keeping each pairing's original table hint.

Both replace every allocation of the round inside a single transaction; on any
failure the session is rolled back and the error re-raised.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from tournament_tables.models.allocation import Allocation
from tournament_tables.models.player import Player
from tournament_tables.models.round import Round
from tournament_tables.models.tournament import Tournament
from tournament_tables.services.allocation_records import (
    allocation_to_dict,
    load_round_allocations,
    load_tables,
    participant_for_player,
    table_candidate,
)
from tournament_tables.services.allocation_service import AllocationResult, AllocationService
from tournament_tables.services.errors import AllocationNotFoundError, AllocationValidationError
from tournament_tables.services.pairing import ByePairing, Pairing, Participant, RegularPairing
from tournament_tables.services.tournament_history import TournamentHistory

logger = logging.getLogger(__name__)


def get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise AllocationNotFoundError("Tournament", tournament_id)
    return tournament


def get_round(session: Session, tournament_id: int, round_number: int) -> Round:
    round_ = session.exec(
        select(Round).where(Round.tournament_id == tournament_id, Round.round_number == round_number)
    ).first()
    if not round_:
        raise AllocationNotFoundError("Round", round_number)
    return round_


def _get_or_create_round(session: Session, tournament_id: int, round_number: int) -> Round:
    round_ = session.exec(
        select(Round).where(Round.tournament_id == tournament_id, Round.round_number == round_number)
    ).first()
    if round_ is None:
        round_ = Round(tournament_id=tournament_id, round_number=round_number)
        session.add(round_)
        session.flush()
    return round_


def _upsert_player(session: Session, tournament_id: int, participant: Participant) -> Player:
    player = session.exec(
        select(Player).where(Player.tournament_id == tournament_id, Player.external_id == participant.id)
    ).first()
    if player is None:
        player = Player(
            tournament_id=tournament_id,
            external_id=participant.id,
            name=participant.name,
            total_score=participant.total_score,
        )
    else:
        player.name = participant.name
        player.total_score = participant.total_score
    session.add(player)
    session.flush()
    return player


def _replace_round_allocations(
    session: Session,
    tournament_id: int,
    round_: Round,
    pairings: Sequence[Pairing],
    players: Dict[str, Player],
    allocation_service: AllocationService,
) -> AllocationResult:
    for allocation in session.exec(select(Allocation).where(Allocation.round_id == round_.id)).all():
        session.delete(allocation)
    session.flush()

    tables = [table_candidate(t) for t in load_tables(session, tournament_id)]
    history = TournamentHistory(session, tournament_id, round_.round_number)
    result = allocation_service.generate_allocations(pairings, tables, round_.round_number, history)

    for proposed in result.allocations:
        pairing = proposed.pairing
        player2 = None if isinstance(pairing, ByePairing) else pairing.player2
        session.add(
            Allocation(
                round_id=round_.id,
                table_id=proposed.table.table_id if proposed.table else None,
                player1_id=players[pairing.player1.id].id,
                player2_id=players[player2.id].id if player2 else None,
                player1_score=pairing.player1.round_score,
                player2_score=player2.round_score if player2 else 0,
                origin_table_number=pairing.origin_table_number,
                allocation_reason=proposed.reason.to_dict(),
            )
        )
    session.flush()
    return result


def _result_payload(session: Session, round_: Round, result: AllocationResult) -> Dict[str, Any]:
    return {
        "round_number": round_.round_number,
        "allocations": [allocation_to_dict(session, a) for a in load_round_allocations(session, round_.id)],
        "conflicts": [c.to_dict() for c in result.conflicts],
        "summary": result.summary,
    }


def import_round_pairings(
    session: Session,
    tournament_id: int,
    round_number: int,
    pairings: Sequence[Pairing],
    allocation_service: Optional[AllocationService] = None,
) -> Dict[str, Any]:
    """
    Store a round's pairings and allocate tables for them.

    Returns:
        Dict with round_number, persisted allocations, conflicts and summary

    Raises:
        AllocationNotFoundError: unknown tournament
        AllocationValidationError: round_number < 1, or pairings but no tables
    """
    get_tournament(session, tournament_id)
    if round_number < 1:
        raise AllocationValidationError("Round number must be at least 1")

    allocation_service = allocation_service or AllocationService()

    try:
        round_ = _get_or_create_round(session, tournament_id, round_number)

        players: Dict[str, Player] = {}
        for pairing in pairings:
            for participant in pairing.participants:
                players[participant.id] = _upsert_player(session, tournament_id, participant)

        result = _replace_round_allocations(session, tournament_id, round_, pairings, players, allocation_service)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Importing round %s for tournament %s failed", round_number, tournament_id)
        raise

    logger.info(
        "Imported %d pairing(s) for tournament %s round %s: %s",
        len(pairings),
        tournament_id,
        round_number,
        result.summary,
    )
    return _result_payload(session, round_, result)


def _pairings_from_allocations(
    session: Session, allocations: List[Allocation]
) -> Tuple[List[Pairing], Dict[str, Player]]:
    pairings: List[Pairing] = []
    players: Dict[str, Player] = {}

    for allocation in allocations:
        player1 = session.get(Player, allocation.player1_id)
        if player1 is None:
            raise AllocationNotFoundError("Player", allocation.player1_id)
        participant1 = participant_for_player(player1, allocation.player1_score)

        if allocation.is_bye:
            players[player1.external_id] = player1
            pairings.append(ByePairing(player1=participant1))
            continue

        player2 = session.get(Player, allocation.player2_id)
        if player2 is None:
            raise AllocationNotFoundError("Player", allocation.player2_id)
        players[player1.external_id] = player1
        players[player2.external_id] = player2
        pairings.append(
            RegularPairing(
                player1=participant1,
                player2=participant_for_player(player2, allocation.player2_score),
                origin_table_number=allocation.origin_table_number,
            )
        )

    return pairings, players


def regenerate_round_allocations(
    session: Session,
    tournament_id: int,
    round_number: int,
    allocation_service: Optional[AllocationService] = None,
) -> Dict[str, Any]:
    """
    Re-run allocation for a round from the pairings it already holds.

    Manual edits are discarded. Total scores are taken from the stored players,
    so a refreshed standings import changes the priority order.
    """
    get_tournament(session, tournament_id)
    round_ = get_round(session, tournament_id, round_number)
    allocation_service = allocation_service or AllocationService()

    existing = session.exec(
        select(Allocation).where(Allocation.round_id == round_.id).order_by(Allocation.id)
    ).all()
    if not existing:
        raise AllocationValidationError(f"Round {round_number} has no pairings to allocate")

    pairings, players = _pairings_from_allocations(session, list(existing))

    try:
        result = _replace_round_allocations(session, tournament_id, round_, pairings, players, allocation_service)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Regenerating round %s for tournament %s failed", round_number, tournament_id)
        raise

    logger.info("Regenerated tournament %s round %s: %s", tournament_id, round_number, result.summary)
    return _result_payload(session, round_, result)


def publish_round(session: Session, tournament_id: int, round_number: int) -> Round:
    get_tournament(session, tournament_id)
    round_ = get_round(session, tournament_id, round_number)
    round_.is_published = True
    session.add(round_)
    session.commit()
    session.refresh(round_)
    logger.info("Published tournament %s round %s", tournament_id, round_number)
    return round_
