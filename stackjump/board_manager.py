"""Board-level helpers for the StackJump rules engines.

Coordinate helpers, top-of-stack queries, board cloning and the board
invariant check live here so that every rules module reads the board the
same way. All helpers are side-effect-free; callers pass in ``BoardState``
instances and receive derived views or new value objects.
"""
from __future__ import annotations

import hashlib
import string

from .errors import InvalidStateError
from .models import BoardState, Piece

__all__ = ["BoardManager"]

_FILES = string.ascii_lowercase


class BoardManager:
    """Helper for board-level operations.

    Cells use algebraic notation: the file letter is the column (``a`` is
    column 0) and the rank number counts from the bottom row, so on a board
    of height ``h`` the cell at ``(x, y)`` (``y`` = 0 is the top row) is
    ``f"{letter(x)}{h - y}"``.
    """

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    @staticmethod
    def coords_to_algebraic(x: int, y: int, height: int) -> str:
        if not 0 <= x < len(_FILES) or not 0 <= y < height:
            raise InvalidStateError(
                "Coordinates are off the board",
                context={"x": x, "y": y, "height": height},
            )
        return f"{_FILES[x]}{height - y}"

    @staticmethod
    def algebraic_to_coords(cell: str, height: int) -> tuple[int, int]:
        """Convert ``cell`` to ``(x, y)``.

        Raises:
            InvalidStateError: if ``cell`` is not a well-formed coordinate
                for a board of this height.
        """
        if (
            len(cell) < 2
            or cell[0] not in _FILES
            or not cell[1:].isdigit()
            or cell[1] == "0"
        ):
            raise InvalidStateError(f"Malformed cell: {cell!r}", context={"cell": cell})
        x = _FILES.index(cell[0])
        y = height - int(cell[1:])
        if not 0 <= y < height:
            raise InvalidStateError(f"Cell off the board: {cell!r}", context={"cell": cell})
        return x, y

    @staticmethod
    def is_valid_cell(cell: str, size: int) -> bool:
        """Return True if ``cell`` lies on a ``size`` x ``size`` board."""
        try:
            x, _ = BoardManager.algebraic_to_coords(cell, size)
        except InvalidStateError:
            return False
        return x < size

    # ------------------------------------------------------------------
    # Stack queries
    # ------------------------------------------------------------------

    @staticmethod
    def top_piece(cell: str, board: BoardState) -> Piece | None:
        stack = board.stacks.get(cell)
        if not stack:
            return None
        return stack[-1]

    @staticmethod
    def controlling_player(cell: str, board: BoardState) -> int | None:
        top = BoardManager.top_piece(cell, board)
        return top.owner if top is not None else None

    @staticmethod
    def cells_controlled_by(player: int, board: BoardState) -> list[str]:
        """Cells whose top piece belongs to ``player``, in sorted order."""
        return sorted(
            cell for cell, stack in board.stacks.items()
            if stack and stack[-1].owner == player
        )

    # ------------------------------------------------------------------
    # Copies and invariants
    # ------------------------------------------------------------------

    @staticmethod
    def clone_board(board: BoardState) -> BoardState:
        """Copy-on-write clone.

        Pieces are frozen, so only the cell map and the per-cell lists are
        copied; the piece objects themselves are shared.
        """
        stacks = {cell: list(stack) for cell, stack in board.stacks.items()}
        return board.model_copy(update={"stacks": stacks})

    @staticmethod
    def assert_board_invariants(board: BoardState) -> None:
        """Raise InvalidStateError if ``board`` violates the data model.

        Every stored cell must be on the board and hold a non-empty stack of
        pieces owned by player 1 or 2.
        """
        for cell, stack in board.stacks.items():
            if not BoardManager.is_valid_cell(cell, board.size):
                raise InvalidStateError(
                    "Stack stored under a cell that is not on the board",
                    context={"cell": cell, "size": board.size},
                )
            if not stack:
                raise InvalidStateError(
                    "Empty stack stored under an occupied cell",
                    context={"cell": cell},
                )
            for piece in stack:
                if piece.owner not in (1, 2):
                    raise InvalidStateError(
                        "Piece has an unknown owner",
                        context={"cell": cell, "owner": piece.owner},
                    )

    @staticmethod
    def hash_board(board: BoardState) -> str:
        """Canonical, order-independent fingerprint of a board."""
        parts = [str(board.size)]
        for cell in sorted(board.stacks):
            pieces = ".".join(
                f"{piece.owner}{int(piece.rank)}" for piece in board.stacks[cell]
            )
            parts.append(f"{cell}:{pieces}")
        return hashlib.sha1("|".join(parts).encode("utf-8")).hexdigest()
