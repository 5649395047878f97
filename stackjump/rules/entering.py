"""Entering phase for games that start from an empty board (Emergo).

Each side starts with ``RuleSet.hand_size`` pieces off the board. Pieces
never leave the board once entered (captured pieces stay inside stacks),
so the hands are derived from the board instead of being stored.

While a player has pieces in hand and no capture, they must enter one on
an empty dark cell:

- the very first piece (player 1, full hand) may go on any dark cell but
  ``RuleSet.first_entry_ban``;
- later pieces may not be entered where they would give the opponent a
  capture, unless the opponent already has one;
- once the opponent's hand is empty, the whole remaining hand enters as a
  single stack.
"""

from __future__ import annotations

from typing import List, Tuple

from ..board_manager import BoardManager
from ..models import BoardState, CaptureChain, Piece, Placement, other_player
from .capture_chain import enumerate_jumps
from .interfaces import RayService
from .rulesets import RuleSet

__all__ = [
    "can_capture",
    "entry_size",
    "is_first_entry",
    "pieces_in_hand",
    "placements_for",
]


def pieces_in_hand(board: BoardState, ruleset: RuleSet) -> Tuple[int, int]:
    """Pieces each player still holds off the board, as ``(player1, player2)``."""
    if not ruleset.hand_size:
        return (0, 0)
    on_board = {1: 0, 2: 0}
    for stack in board.stacks.values():
        for piece in stack:
            on_board[piece.owner] += 1
    return (
        max(ruleset.hand_size - on_board[1], 0),
        max(ruleset.hand_size - on_board[2], 0),
    )


def entry_size(board: BoardState, player: int, ruleset: RuleSet) -> int:
    """How many pieces ``player``'s next placement enters."""
    hand = pieces_in_hand(board, ruleset)
    if hand[other_player(player) - 1] == 0:
        return hand[player - 1]
    return 1


def is_first_entry(board: BoardState, player: int, ruleset: RuleSet) -> bool:
    return (
        player == 1
        and ruleset.hand_size > 0
        and pieces_in_hand(board, ruleset)[0] == ruleset.hand_size
    )


def can_capture(board: BoardState, player: int, rays: RayService) -> bool:
    """True if any stack ``player`` controls has an immediate capture."""
    for cell in BoardManager.cells_controlled_by(player, board):
        for token in enumerate_jumps(board, cell, rays):
            if isinstance(token, CaptureChain):
                return True
    return False


def placements_for(board: BoardState, player: int, ruleset: RuleSet) -> List[Placement]:
    """Legal placements for ``player``, sorted by cell.

    Callers check first that ``player`` has pieces in hand and no capture.
    """
    rays = ruleset.ray_service()
    empties = [cell for cell in rays.dark_cells() if cell not in board.stacks]

    if is_first_entry(board, player, ruleset):
        cells = [cell for cell in empties if cell != ruleset.first_entry_ban]
    else:
        opponent = other_player(player)
        if can_capture(board, opponent, rays):
            cells = empties
        else:
            cells = [
                cell for cell in empties
                if not _feeds_opponent(board, cell, player, opponent, rays)
            ]
    return sorted((Placement(cell=cell) for cell in cells), key=str)


def _feeds_opponent(
    board: BoardState, cell: str, player: int, opponent: int, rays: RayService
) -> bool:
    cloned = BoardManager.clone_board(board)
    cloned.stacks[cell] = [Piece(owner=player)]
    return can_capture(cloned, opponent, rays)
