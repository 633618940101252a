from tournament_tables.models.allocation import Allocation
from tournament_tables.models.player import Player
from tournament_tables.models.round import Round
from tournament_tables.models.terrain_type import TerrainType
from tournament_tables.models.tournament import Tournament
from tournament_tables.models.tournament_table import TournamentTable

__all__ = [
    "Tournament",
    "TerrainType",
    "TournamentTable",
    "Player",
    "Round",
    "Allocation",
]
