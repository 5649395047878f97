"""Board builders and reference positions shared by the test modules."""

from typing import Dict, List, Sequence, Tuple

from stackjump.models import BoardState
from stackjump.rules.rulesets import LASCA

Pairs = Dict[str, Sequence[Tuple[int, int]]]


def make_board(pairs: Pairs, size: int = 7) -> BoardState:
    """Build a board from ``{cell: [(owner, rank), ...]}`` (bottom -> top)."""
    return BoardState.from_pairs(size, pairs)


def captured_cells_of(token: str) -> List[str]:
    """Cells jumped by each hop of a capture token (7x7 geometry)."""
    rays = LASCA.ray_service()
    cells = token.split("x")
    return [rays.between(a, b)[0] for a, b in zip(cells, cells[1:])]


# Player 2's officer on c1 sits on a captured player-1 soldier; player 1
# holds b2 (two soldiers) and the top of b4.
FULL_CAPTURE_PAIRS: Pairs = {
    "c1": [(1, 1), (2, 2)],
    "b2": [(1, 1), (1, 1)],
    "b4": [(2, 2), (1, 1)],
}

NO_REVERSAL_PAIRS: Pairs = {
    "c1": [(1, 1), (2, 2)],
    "b2": [(1, 1), (1, 1)],
}

MULTIPLE_CAPTURES_PAIRS: Pairs = {
    "c1": [(1, 1), (2, 2)],
    "b2": [(1, 1), (1, 1)],
    "b4": [(2, 2), (1, 1)],
    "b6": [(1, 1)],
    "d6": [(1, 1)],
    "d4": [(1, 1)],
    "f2": [(1, 1)],
}
