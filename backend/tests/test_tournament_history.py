"""
TournamentHistory reads prior rounds only and loads each participant once.
"""

import pytest
from sqlmodel import Session

from tests.factories import (
    create_allocation,
    create_player,
    create_round,
    create_terrain_type,
    create_tournament,
    get_table,
)
from tournament_tables.services.tournament_history import TournamentHistory


@pytest.fixture
def three_rounds(session: Session):
    """alice/bob play rounds 1-3 on tables 1, 2, 3; carol has a round-1 bye."""
    urban = create_terrain_type(session, "Urban")
    ruins = create_terrain_type(session, "Ruins")
    tournament = create_tournament(session, table_count=4, terrain_type_ids=[urban.id, ruins.id, None, urban.id])

    alice = create_player(session, tournament.id, "alice")
    bob = create_player(session, tournament.id, "bob")
    carol = create_player(session, tournament.id, "carol")

    for round_number, table_number in ((1, 1), (2, 2), (3, 3)):
        round_ = create_round(session, tournament.id, round_number)
        create_allocation(session, round_, alice, bob, get_table(session, tournament.id, table_number))
        if round_number == 1:
            create_allocation(session, round_, carol)

    return {"tournament": tournament, "urban": urban, "ruins": ruins}


def test_round_one_never_queries(session: Session, three_rounds):
    history = TournamentHistory(session, three_rounds["tournament"].id, 1)

    assert history.has_player_used_table("alice", 1) is False
    assert history.get_player_terrain_history("alice") == set()
    assert history.queries_executed == 0


def test_only_earlier_rounds_are_visible(session: Session, three_rounds):
    history = TournamentHistory(session, three_rounds["tournament"].id, 3)

    assert history.get_player_table_history("alice") == [1, 2]
    assert history.has_player_used_table("bob", 2) is True
    assert history.has_player_used_table("bob", 3) is False


def test_terrain_history(session: Session, three_rounds):
    history = TournamentHistory(session, three_rounds["tournament"].id, 2)

    assert history.has_player_experienced_terrain("alice", three_rounds["urban"].id) is True
    assert history.has_player_experienced_terrain("alice", three_rounds["ruins"].id) is False


def test_no_terrain_is_never_experienced_and_costs_no_query(session: Session, three_rounds):
    history = TournamentHistory(session, three_rounds["tournament"].id, 4)

    assert history.has_player_experienced_terrain("alice", None) is False
    assert history.queries_executed == 0


def test_bye_rounds_leave_no_table_history(session: Session, three_rounds):
    history = TournamentHistory(session, three_rounds["tournament"].id, 4)

    assert history.get_player_table_history("carol") == []


def test_one_query_per_participant(session: Session, three_rounds):
    history = TournamentHistory(session, three_rounds["tournament"].id, 4)

    for table_number in range(1, 5):
        history.has_player_used_table("alice", table_number)
        history.has_player_experienced_terrain("alice", three_rounds["urban"].id)
    assert history.queries_executed == 1

    history.has_player_used_table("bob", 1)
    assert history.queries_executed == 2

    history.clear_cache()
    history.has_player_used_table("alice", 1)
    assert history.queries_executed == 3


def test_other_tournaments_are_ignored(session: Session, three_rounds):
    other = create_tournament(session, table_count=2, name="Other Open")
    alice = create_player(session, other.id, "alice")
    dave = create_player(session, other.id, "dave")
    round_ = create_round(session, other.id, 1)
    create_allocation(session, round_, alice, dave, get_table(session, other.id, 2))

    history = TournamentHistory(session, other.id, 2)

    assert history.get_player_table_history("alice") == [2]
