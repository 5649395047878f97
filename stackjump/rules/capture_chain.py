"""Capture-chain enumeration for the stacking checkers-family games.

Two layers:

- ``enumerate_jumps``: the single-jump enumerator. For one occupied cell it
  lists every immediate capture (``cell x beyond``) or, when there is none,
  every simple slide (``cell - adjacent``).
- ``extend_chains``: the chain search. Starting from single-hop capture
  seeds it extends each chain breadth-first until the chain is terminal,
  then canonicalises the result so only maximal chains survive.

A chain is terminal when

1. its last hop promoted the mover (promotion ends the turn),
2. the mover has no further capture from its landing cell, or
3. a further capture would jump the cell captured by the immediately
   preceding hop (no 180-degree reversal). The chain is then kept as a
   complete move rather than dropped.

Case 3 and case 1 can leave a chain in the output that is a proper prefix
of a longer chain found through a sibling branch; ``canonicalize_chains``
removes those.

Every step works on a private board clone, and nothing here logs or raises
for bad user input: the only exceptions are internal errors for malformed
boards.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..board_manager import BoardManager
from ..errors import InvalidStateError, PreconditionError
from ..models import BoardState, CaptureCandidate, CaptureChain, MoveToken, Slide
from .interfaces import RayService
from .mutator import apply_hop_in_place

__all__ = [
    "canonicalize_chains",
    "captured_cell",
    "enumerate_jumps",
    "extend_chains",
    "longest_only",
]


def enumerate_jumps(board: BoardState, cell: str, rays: RayService) -> List[MoveToken]:
    """List the immediate captures from ``cell``, or its slides if it has none.

    Raises:
        PreconditionError: if ``cell`` is empty.
        InvalidStateError: if the top piece has an unknown owner.
    """
    stack = board.stacks.get(cell)
    if not stack:
        raise PreconditionError(f"No piece at {cell}.", context={"cell": cell})
    piece = stack[-1]
    if piece.owner not in (1, 2):
        raise InvalidStateError(
            "Piece has an unknown owner", context={"cell": cell, "owner": piece.owner}
        )
    directions = rays.directions_for(piece)

    captures: List[MoveToken] = []
    for direction in directions:
        ray = rays.ray(cell, direction)
        if len(ray) < 2:
            continue
        adjacent, beyond = ray[0], ray[1]
        jumped = board.stacks.get(adjacent)
        if jumped and jumped[-1].owner != piece.owner and beyond not in board.stacks:
            captures.append(CaptureChain(cells=(cell, beyond)))
    if captures:
        return captures

    slides: List[MoveToken] = []
    for direction in directions:
        ray = rays.ray(cell, direction)
        if ray and ray[0] not in board.stacks:
            slides.append(Slide(start=cell, to=ray[0]))
    return slides


def captured_cell(start: str, end: str, rays: RayService) -> str:
    """The cell jumped over by the capture hop ``start x end``."""
    between = rays.between(start, end)
    if len(between) != 1:
        raise InvalidStateError(
            "Capture hop does not jump exactly one cell",
            context={"from": start, "to": end},
        )
    return between[0]


@dataclass
class _Frame:
    """Queued chain together with the board it produced."""
    candidate: CaptureCandidate
    board: BoardState
    promoted: bool


def _advance(
    board: BoardState,
    candidate: CaptureCandidate,
    landing: str,
    rays: RayService,
    promotion: bool,
) -> _Frame:
    cloned = BoardManager.clone_board(board)
    hop = apply_hop_in_place(
        cloned, candidate.chain[-1], landing, rays, promotion=promotion
    )
    if hop.captured is None:
        raise InvalidStateError(
            "Capture hop did not capture anything",
            context={"chain": "x".join(candidate.chain), "to": landing},
        )
    extended = CaptureCandidate(
        chain=candidate.chain + (landing,),
        captured_cells=candidate.captured_cells + (hop.captured,),
    )
    return _Frame(candidate=extended, board=cloned, promoted=hop.promoted)


def extend_chains(
    board: BoardState,
    seeds: Iterable[MoveToken],
    rays: RayService,
    *,
    promotion: bool = True,
) -> List[CaptureChain]:
    """Extend single-hop capture seeds into complete chains.

    Slides among ``seeds`` are ignored. The result is canonical (no chain
    is a proper prefix of another) and sorted by notation.
    """
    queue: deque[_Frame] = deque()
    for seed in seeds:
        if not isinstance(seed, CaptureChain):
            continue
        root = CaptureCandidate(chain=(seed.start,), captured_cells=())
        queue.append(_advance(board, root, seed.landing, rays, promotion))

    complete: List[CaptureCandidate] = []
    while queue:
        frame = queue.popleft()
        if frame.promoted:
            complete.append(frame.candidate)
            continue

        landing = frame.candidate.chain[-1]
        continuations = [
            jump for jump in enumerate_jumps(frame.board, landing, rays)
            if isinstance(jump, CaptureChain)
        ]
        if not continuations:
            complete.append(frame.candidate)
            continue

        reversal_blocked = False
        for jump in continuations:
            if captured_cell(jump.start, jump.landing, rays) == frame.candidate.last_captured:
                reversal_blocked = True
                continue
            queue.append(
                _advance(frame.board, frame.candidate, jump.landing, rays, promotion)
            )
        if reversal_blocked:
            complete.append(frame.candidate)

    return canonicalize_chains(candidate.to_token() for candidate in complete)


def canonicalize_chains(chains: Iterable[CaptureChain]) -> List[CaptureChain]:
    """Drop duplicates and any chain that is a proper prefix of another."""
    unique = {chain.cells: chain for chain in chains}
    proper_prefixes = set()
    for cells in unique:
        for n in range(2, len(cells)):
            proper_prefixes.add(cells[:n])
    survivors = [
        chain for cells, chain in unique.items() if cells not in proper_prefixes
    ]
    return sorted(survivors, key=str)


def longest_only(chains: Sequence[CaptureChain]) -> List[CaptureChain]:
    """Keep only the chains with the maximum number of hops."""
    if not chains:
        return []
    longest = max(chain.hop_count for chain in chains)
    return [chain for chain in chains if chain.hop_count == longest]
