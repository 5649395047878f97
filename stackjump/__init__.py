"""StackJump: rules engines for stacking checkers-family games.

The heart of the package is the forced multi-capture move generator in
``stackjump.rules``; ``stackjump.game_engine`` runs whole games on top of it
and ``stackjump.main`` serves it over HTTP.
"""

from .game_engine import GameEngine
from .models import BoardState, GameState, Piece, Rank, ValidationResult, ValidationState
from .rules import EMERGO, LASCA, build_catalog, moves_for

__all__ = [
    "BoardState",
    "EMERGO",
    "GameEngine",
    "GameState",
    "LASCA",
    "Piece",
    "Rank",
    "ValidationResult",
    "ValidationState",
    "build_catalog",
    "moves_for",
]

__version__ = "1.0.0"
