from dataclasses import FrozenInstanceError

import pytest

from tournament_tables.services.pairing import ByePairing, Participant, RegularPairing, make_pairing


def test_missing_second_player_makes_a_bye():
    pairing = make_pairing("p1", "Alice", player1_round_score=3, player1_total_score=12)

    assert isinstance(pairing, ByePairing)
    assert pairing.is_bye is True
    assert pairing.participants == (Participant("p1", "Alice", 3, 12),)


def test_empty_second_player_id_makes_a_bye_and_drops_table_hint():
    pairing = make_pairing("p1", "Alice", player2_id="", player2_name="Ghost", origin_table_number=4)

    assert isinstance(pairing, ByePairing)
    assert pairing.origin_table_number is None


def test_regular_pairing_fields():
    pairing = make_pairing(
        "p2",
        "Bob",
        player1_total_score=10,
        player2_id="p1",
        player2_name="Alice",
        player2_total_score=7,
        origin_table_number=5,
    )

    assert isinstance(pairing, RegularPairing)
    assert pairing.is_bye is False
    assert pairing.combined_total_score == 17
    assert pairing.tie_break_id == "p1"
    assert pairing.origin_table_number == 5
    assert pairing.describe() == "Bob vs Alice"


def test_second_player_name_defaults_to_id():
    pairing = make_pairing("p1", "Alice", player2_id="p9")

    assert pairing.player2.name == "p9"


def test_bye_scores_and_tie_break_use_the_single_participant():
    pairing = ByePairing(Participant("p5", "Eve", total_score=9))

    assert pairing.combined_total_score == 9
    assert pairing.tie_break_id == "p5"
    assert pairing.describe() == "Eve (bye)"


def test_pairings_are_immutable():
    pairing = make_pairing("p1", "Alice", player2_id="p2", player2_name="Bob")

    with pytest.raises(FrozenInstanceError):
        pairing.origin_table_number = 3
