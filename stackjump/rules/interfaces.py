"""Narrow contracts the capture-chain core depends on."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from ..models import Piece
from .geometry import Direction


class RayService(Protocol):
    """Adjacency/ray queries for one game's grid and orientation rules.

    The capture-chain search only needs these queries; any grid that can
    answer them (square-diagonal here) can host the algorithm.
    """

    def contains(self, cell: str) -> bool:
        """True if ``cell`` is on the board."""

    def ray(self, cell: str, direction: Direction) -> Sequence[str]:
        """Cells along ``direction`` from ``cell`` (exclusive), nearest first."""

    def between(self, start: str, end: str) -> Sequence[str]:
        """Cells strictly between two cells on a shared line, else empty."""

    def direction_between(self, start: str, end: str) -> Optional[Tuple[Direction, int]]:
        """``(direction, distance)`` from ``start`` to ``end``, or None."""

    def directions_for(self, piece: Piece) -> Sequence[Direction]:
        """Directions ``piece`` may move and capture in."""

    def is_promotion_cell(self, cell: str, owner: int) -> bool:
        """True if a base-rank piece of ``owner`` promotes on ``cell``."""
