"""Board deltas for moves.

Used both by the capture-chain look-ahead (one hop at a time on a private
clone) and by the game layer's state transition (a whole token at once).
Captured cells are always re-derived from hop geometry. Placements (pieces
entering from the hand) have their own delta, ``apply_placement``.

Stacking rule: the captured piece is the top of the jumped stack and is
relocated to the *bottom* of the capturing stack; the rest of the jumped
stack stays where it is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..board_manager import BoardManager
from ..errors import InvalidStateError, PreconditionError
from ..models import BoardState, MoveResult, MoveToken, Piece, Placement, Rank
from .interfaces import RayService


@dataclass
class HopOutcome:
    """What a single hop did to the board it was applied to."""
    captured: Optional[str] = None
    promoted: bool = False
    results: List[MoveResult] = field(default_factory=list)


@dataclass
class MoveOutcome:
    """Result of applying a complete or partial move to a cloned board."""
    board: BoardState
    results: List[MoveResult] = field(default_factory=list)
    captured: List[str] = field(default_factory=list)
    promoted: Optional[str] = None


def apply_hop_in_place(
    board: BoardState,
    start: str,
    end: str,
    rays: RayService,
    *,
    promotion: bool,
    ranked: bool = True,
) -> HopOutcome:
    """Move the stack on ``start`` to ``end``, capturing any enemy jumped over.

    ``board`` is mutated; callers must own it (pass a clone). Capture records
    name the captured rank only when ``ranked``; games without promotion
    have a single kind of piece.
    """
    stack = board.stacks.pop(start, None)
    if not stack:
        raise PreconditionError(
            "Cannot move from an empty cell", context={"cell": start}
        )
    if end in board.stacks:
        raise InvalidStateError(
            "Cannot land on an occupied cell", context={"from": start, "to": end}
        )
    mover = stack[-1]
    board.stacks[end] = stack
    outcome = HopOutcome(results=[MoveResult(type="move", from_cell=start, to=end)])

    for cell in rays.between(start, end):
        jumped = board.stacks.get(cell)
        if jumped and jumped[-1].owner != mover.owner:
            remaining = list(jumped)
            top = remaining.pop()
            board.stacks[end] = [top] + board.stacks[end]
            if remaining:
                board.stacks[cell] = remaining
            else:
                del board.stacks[cell]
            outcome.captured = cell
            outcome.results.append(
                MoveResult(
                    type="capture",
                    where=cell,
                    what=_rank_name(top) if ranked else None,
                )
            )
            break

    if (
        promotion
        and mover.rank == Rank.SOLDIER
        and rays.is_promotion_cell(end, mover.owner)
    ):
        landed = board.stacks[end]
        landed[-1] = mover.promoted()
        outcome.promoted = True
        outcome.results.append(MoveResult(type="promote", where=end, to="officer"))

    return outcome


def _rank_name(piece: Piece) -> str:
    return "soldier" if piece.rank == Rank.SOLDIER else "officer"


def apply_move(
    board: BoardState,
    move: MoveToken,
    rays: RayService,
    *,
    promotion: bool,
) -> MoveOutcome:
    """Apply every hop of ``move`` to a clone of ``board``.

    The input board is never mutated. The mover promotes at most once.
    """
    if isinstance(move, Placement):
        raise PreconditionError(
            "Placements are applied with apply_placement", context={"move": str(move)}
        )
    cloned = BoardManager.clone_board(board)
    outcome = MoveOutcome(board=cloned)
    cells = move.cells
    for start, end in zip(cells, cells[1:]):
        hop = apply_hop_in_place(
            cloned,
            start,
            end,
            rays,
            promotion=promotion and outcome.promoted is None,
            ranked=promotion,
        )
        outcome.results.extend(hop.results)
        if hop.captured is not None:
            outcome.captured.append(hop.captured)
        if hop.promoted:
            outcome.promoted = end
    return outcome


def apply_placement(board: BoardState, cell: str, owner: int, count: int) -> MoveOutcome:
    """Enter ``count`` pieces of ``owner`` as one new stack on ``cell``."""
    if count < 1:
        raise PreconditionError(
            "No pieces left in hand", context={"cell": cell, "owner": owner}
        )
    if cell in board.stacks:
        raise InvalidStateError(
            "Cannot enter onto an occupied cell", context={"cell": cell}
        )
    cloned = BoardManager.clone_board(board)
    cloned.stacks[cell] = [Piece(owner=owner) for _ in range(count)]
    return MoveOutcome(
        board=cloned,
        results=[MoveResult(type="add", where=cell, num=count)],
    )
