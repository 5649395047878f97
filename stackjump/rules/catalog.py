"""Move catalog builder.

Captures are forced for the whole player, not per piece: if any controlled
stack can capture, every slide is discarded and only complete capture
chains are legal. A player who still holds pieces in hand and has no
capture must enter one instead of sliding (see ``entering``). Output is
sorted by notation so equality checks and UI diffing are stable.
"""

from __future__ import annotations

from typing import List

from ..board_manager import BoardManager
from ..errors import InvalidStateError, PreconditionError
from ..models import BoardState, CaptureChain, MoveToken
from .capture_chain import enumerate_jumps, extend_chains, longest_only
from .entering import pieces_in_hand, placements_for
from .rulesets import RuleSet

__all__ = ["build_catalog", "moves_for"]


def build_catalog(board: BoardState, player: int, ruleset: RuleSet) -> List[MoveToken]:
    """Return every legal move for ``player`` as tagged move tokens.

    Raises:
        PreconditionError: if ``player`` is not 1 or 2.
        InvalidStateError: if the board is malformed or sized for a
            different ruleset.
    """
    if player not in (1, 2):
        raise PreconditionError("Unknown player", context={"player": player})
    if board.size != ruleset.board_size:
        raise InvalidStateError(
            "Board size does not match the ruleset",
            context={"size": board.size, "ruleset": ruleset.name},
        )
    BoardManager.assert_board_invariants(board)
    rays = ruleset.ray_service()

    seeds: List[MoveToken] = []
    slides: List[MoveToken] = []
    for cell in BoardManager.cells_controlled_by(player, board):
        for token in enumerate_jumps(board, cell, rays):
            if isinstance(token, CaptureChain):
                seeds.append(token)
            else:
                slides.append(token)

    if not seeds:
        if pieces_in_hand(board, ruleset)[player - 1] > 0:
            return list(placements_for(board, player, ruleset))
        return sorted(slides, key=str)

    chains = extend_chains(board, seeds, rays, promotion=ruleset.promotion)
    if ruleset.longest_capture:
        chains = longest_only(chains)
    return sorted(chains, key=str)


def moves_for(board: BoardState, player: int, ruleset: RuleSet) -> List[str]:
    """Return every legal move for ``player`` in move-token notation."""
    return [str(token) for token in build_catalog(board, player, ruleset)]
