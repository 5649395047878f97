"""Rules layer: geometry, rulesets, capture-chain search, catalog, validation.

Everything in this package is a pure function of its inputs: boards are
read, cloned and returned, never mutated in place, and no state is kept
between calls.
"""

from .capture_chain import canonicalize_chains, enumerate_jumps, extend_chains
from .catalog import build_catalog, moves_for
from .entering import pieces_in_hand, placements_for
from .geometry import DiagonalRayService, Direction, SquareDiagGraph
from .rulesets import EMERGO, LASCA, RULESETS, RuleSet, get_ruleset
from .validator import MoveValidator

__all__ = [
    "DiagonalRayService",
    "Direction",
    "EMERGO",
    "LASCA",
    "MoveValidator",
    "RULESETS",
    "RuleSet",
    "SquareDiagGraph",
    "build_catalog",
    "canonicalize_chains",
    "enumerate_jumps",
    "extend_chains",
    "get_ruleset",
    "moves_for",
    "pieces_in_hand",
    "placements_for",
]
