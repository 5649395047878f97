"""Partial-move validator.

Matches a user-supplied move prefix against the move catalog so that
click-to-move UIs can build a move one hop at a time. Every call re-derives
its answer from the board and a fresh catalog; nothing is stored between
calls.

Outcomes:

- ``invalid``: structural checks fail, or the candidate is neither a
  catalog entry nor a prefix of one;
- ``valid_incomplete``: a proper hop-wise prefix of at least one entry
  (``next_cells`` lists the legal next landing cells as a rendering hint);
- ``valid_complete``: exactly a catalog entry.

While the player must enter a piece from the hand, a bare cell is read as
a placement on that cell rather than as the start of a move.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..board_manager import BoardManager
from ..errors import NotationError
from ..models import (
    BoardState,
    CaptureChain,
    MoveToken,
    PartialToken,
    Placement,
    Selection,
    ValidationResult,
    ValidationState,
)
from ..notation import is_hop_prefix, normalize_move, parse_move
from .catalog import build_catalog
from .entering import is_first_entry
from .rulesets import RuleSet

__all__ = ["MESSAGES", "MoveValidator"]

# Plain default texts; hosts translate by ``code``.
MESSAGES: Dict[str, str] = {
    "INITIAL_INSTRUCTIONS": "Select one of your stacks to move.",
    "ENTER_INSTRUCTIONS": "Select an empty dark cell to enter a piece.",
    "MALFORMED": "A move is either one slide or a chain of captures.",
    "INVALID_CELL": "{cell} is not a cell on this board.",
    "NONEXISTENT": "There is no piece at {cell}.",
    "UNCONTROLLED": "The stack at {cell} is not yours.",
    "OCCUPIED": "{cell} is occupied; moves and captures must land on empty cells.",
    "UNREACHABLE": "{cell} cannot be reached from {start} in one hop.",
    "SELF_CAPTURE": "You cannot capture your own piece at {cell}.",
    "UNPLAYABLE_CELL": "Pieces may only enter on dark cells; {cell} is light.",
    "FIRST_ENTRY": "The first piece may not enter on {cell}.",
    "VALID_PARTIAL": "Continue the move by selecting the next landing cell.",
    "INVALID_MOVE": "{move} is not a legal move.",
    "VALID_MOVE": "Valid move.",
    "GAME_OVER": "The game is over.",
}


def _result(
    state: ValidationState,
    code: str,
    move: str,
    next_cells: Optional[Sequence[str]] = None,
    template: Optional[str] = None,
    **params: str,
) -> ValidationResult:
    return ValidationResult(
        state=state,
        code=code,
        message=MESSAGES[template or code].format(move=move, **params),
        move=move,
        next_cells=list(next_cells or []),
    )


def _invalid(code: str, move: str, **params: str) -> ValidationResult:
    return _result(ValidationState.INVALID, code, move, **params)


def next_cells(candidate: PartialToken, catalog: Sequence[MoveToken]) -> List[str]:
    """Distinct landing cells that legally follow ``candidate``."""
    n = len(candidate.cells)
    found = {
        entry.cells[n]
        for entry in catalog
        if len(entry.cells) > n and is_hop_prefix(candidate, entry)
    }
    return sorted(found)


class MoveValidator:
    """Validate (partial) move tokens for one ruleset."""

    def __init__(self, ruleset: RuleSet):
        self.ruleset = ruleset
        self.rays = ruleset.ray_service()

    def validate(
        self,
        board: BoardState,
        player: int,
        text: str,
        catalog: Optional[Sequence[MoveToken]] = None,
    ) -> ValidationResult:
        """Classify ``text`` for ``player`` on ``board``.

        ``catalog`` may be passed when the caller already holds the output
        of ``build_catalog`` for this exact board and player.
        """
        move = normalize_move(text)
        if catalog is None:
            catalog = build_catalog(board, player, self.ruleset)

        entering = bool(catalog) and all(isinstance(entry, Placement) for entry in catalog)

        if not move:
            starts = sorted({entry.cells[0] for entry in catalog})
            return _result(
                ValidationState.VALID_INCOMPLETE,
                "INITIAL_INSTRUCTIONS",
                move,
                starts,
                template="ENTER_INSTRUCTIONS" if entering else None,
            )

        try:
            candidate = parse_move(move)
        except NotationError:
            return _invalid("MALFORMED", move)

        if entering and isinstance(candidate, Selection):
            return self._validate_placement(
                board, player, Placement(cell=candidate.start), move, catalog
            )

        failure = self._structural_failure(board, player, candidate, move)
        if failure is not None:
            return failure

        matches = [entry for entry in catalog if is_hop_prefix(candidate, entry)]
        if not matches:
            return _invalid("INVALID_MOVE", move)
        if any(entry == candidate for entry in matches):
            return _result(ValidationState.VALID_COMPLETE, "VALID_MOVE", move)
        return _result(
            ValidationState.VALID_INCOMPLETE,
            "VALID_PARTIAL",
            move,
            next_cells(candidate, matches),
        )

    def _structural_failure(
        self,
        board: BoardState,
        player: int,
        candidate: PartialToken,
        move: str,
    ) -> Optional[ValidationResult]:
        cells = candidate.cells
        for cell in cells:
            if not self.rays.contains(cell):
                return _invalid("INVALID_CELL", move, cell=cell)

        start = cells[0]
        owner = BoardManager.controlling_player(start, board)
        if owner is None:
            return _invalid("NONEXISTENT", move, cell=start)
        if owner != player:
            return _invalid("UNCONTROLLED", move, cell=start)

        for cell in cells[1:]:
            if cell != start and cell in board.stacks:
                return _invalid("OCCUPIED", move, cell=cell)

        if isinstance(candidate, Selection):
            return None

        hop_length = 2 if isinstance(candidate, CaptureChain) else 1
        for hop_start, hop_end in zip(cells, cells[1:]):
            found = self.rays.direction_between(hop_start, hop_end)
            if found is None or found[1] != hop_length:
                return _invalid("UNREACHABLE", move, cell=hop_end, start=hop_start)
            if hop_length == 2:
                jumped = self.rays.between(hop_start, hop_end)[0]
                if jumped != start and BoardManager.controlling_player(jumped, board) == player:
                    return _invalid("SELF_CAPTURE", move, cell=jumped)
        return None

    def _validate_placement(
        self,
        board: BoardState,
        player: int,
        candidate: Placement,
        move: str,
        catalog: Sequence[MoveToken],
    ) -> ValidationResult:
        cell = candidate.cell
        if not self.rays.contains(cell):
            return _invalid("INVALID_CELL", move, cell=cell)
        if cell in board.stacks:
            return _invalid("OCCUPIED", move, cell=cell)
        if not self.rays.is_dark(cell):
            return _invalid("UNPLAYABLE_CELL", move, cell=cell)
        if cell == self.ruleset.first_entry_ban and is_first_entry(board, player, self.ruleset):
            return _invalid("FIRST_ENTRY", move, cell=cell)
        if candidate not in catalog:
            return _invalid("INVALID_MOVE", move)
        return _result(ValidationState.VALID_COMPLETE, "VALID_MOVE", move)
