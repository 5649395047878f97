"""Square-diagonal board geometry.

``SquareDiagGraph`` answers pure grid questions (steps, rays, cells between
two points). ``DiagonalRayService`` binds a graph to the orientation rules of
a game: which directions a piece may use and which cells promote it.
"""

from __future__ import annotations

from enum import Enum

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..models import Piece, Rank

__all__ = [
    "DiagonalRayService",
    "Direction",
    "SquareDiagGraph",
]


class Direction(str, Enum):
    """Diagonal directions; north is towards row 0 (the top edge)."""
    NE = "NE"
    NW = "NW"
    SE = "SE"
    SW = "SW"

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]


_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NE: (1, -1),
    Direction.SE: (1, 1),
    Direction.SW: (-1, 1),
    Direction.NW: (-1, -1),
}

ALL_DIRECTIONS: tuple[Direction, ...] = (
    Direction.NE,
    Direction.NW,
    Direction.SE,
    Direction.SW,
)


class SquareDiagGraph:
    """Diagonal adjacency on a ``width`` x ``height`` square grid."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    def coords_to_algebraic(self, x: int, y: int) -> str:
        return BoardManager.coords_to_algebraic(x, y, self.height)

    def algebraic_to_coords(self, cell: str) -> tuple[int, int]:
        return BoardManager.algebraic_to_coords(cell, self.height)

    def contains(self, cell: str) -> bool:
        try:
            x, _ = self.algebraic_to_coords(cell)
        except InvalidStateError:
            return False
        return 0 <= x < self.width

    def move(
        self, x: int, y: int, direction: Direction, dist: int = 1
    ) -> tuple[int, int] | None:
        """Step ``dist`` cells from ``(x, y)``; None if that leaves the board."""
        dx, dy = direction.delta
        nx, ny = x + dx * dist, y + dy * dist
        if not (0 <= nx < self.width and 0 <= ny < self.height):
            return None
        return nx, ny

    def ray(self, cell: str, direction: Direction) -> list[str]:
        """Cells from ``cell`` (exclusive) to the board edge, nearest first."""
        x, y = self.algebraic_to_coords(cell)
        cells: list[str] = []
        nxt = self.move(x, y, direction)
        while nxt is not None:
            cells.append(self.coords_to_algebraic(*nxt))
            nxt = self.move(*nxt, direction)
        return cells

    def neighbours(self, cell: str) -> list[str]:
        x, y = self.algebraic_to_coords(cell)
        result = []
        for direction in ALL_DIRECTIONS:
            nxt = self.move(x, y, direction)
            if nxt is not None:
                result.append(self.coords_to_algebraic(*nxt))
        return result

    def list_cells(self, ordered: bool = False) -> list[str] | list[list[str]]:
        """All cells; ``ordered`` groups them by row, top row first."""
        rows = [
            [self.coords_to_algebraic(x, y) for x in range(self.width)]
            for y in range(self.height)
        ]
        if ordered:
            return rows
        return [cell for row in rows for cell in row]

    def is_dark(self, cell: str) -> bool:
        """Dark cells have column and row (counted from the top) of equal parity."""
        x, y = self.algebraic_to_coords(cell)
        return (x + y) % 2 == 0

    def dark_cells(self) -> list[str]:
        return [cell for cell in self.list_cells() if self.is_dark(cell)]

    def direction_between(
        self, start: str, end: str
    ) -> tuple[Direction, int] | None:
        """Return ``(direction, distance)`` if ``end`` is on a diagonal from ``start``."""
        sx, sy = self.algebraic_to_coords(start)
        ex, ey = self.algebraic_to_coords(end)
        dx, dy = ex - sx, ey - sy
        if dx == 0 or abs(dx) != abs(dy):
            return None
        step = (dx // abs(dx), dy // abs(dy))
        for direction, delta in _DELTAS.items():
            if delta == step:
                return direction, abs(dx)
        return None

    def between(self, start: str, end: str) -> list[str]:
        """Cells strictly between two cells on a shared diagonal, else []."""
        found = self.direction_between(start, end)
        if found is None:
            return []
        direction, dist = found
        x, y = self.algebraic_to_coords(start)
        cells = []
        for i in range(1, dist):
            pt = self.move(x, y, direction, i)
            if pt is not None:
                cells.append(self.coords_to_algebraic(*pt))
        return cells


class DiagonalRayService:
    """Adjacency/ray queries bound to a game's orientation and promotion rules.

    Player 1 starts on the bottom rows and advances north (towards row 0);
    player 2 advances south. Officers always use all four directions;
    soldiers use only their two forward directions unless
    ``soldiers_backward`` is set.
    """

    def __init__(self, graph: SquareDiagGraph, soldiers_backward: bool = False):
        self.graph = graph
        self.soldiers_backward = soldiers_backward

    def contains(self, cell: str) -> bool:
        return self.graph.contains(cell)

    def ray(self, cell: str, direction: Direction) -> list[str]:
        return self.graph.ray(cell, direction)

    def between(self, start: str, end: str) -> list[str]:
        return self.graph.between(start, end)

    def direction_between(self, start: str, end: str) -> tuple[Direction, int] | None:
        return self.graph.direction_between(start, end)

    def is_dark(self, cell: str) -> bool:
        return self.graph.is_dark(cell)

    def dark_cells(self) -> list[str]:
        return self.graph.dark_cells()

    def directions_for(self, piece: Piece) -> tuple[Direction, ...]:
        if piece.rank == Rank.OFFICER or self.soldiers_backward:
            return ALL_DIRECTIONS
        if piece.owner == 1:
            return (Direction.NE, Direction.NW)
        return (Direction.SE, Direction.SW)

    def promotion_row(self, owner: int) -> int:
        """Row index on which ``owner``'s soldiers promote."""
        return 0 if owner == 1 else self.graph.height - 1

    def is_promotion_cell(self, cell: str, owner: int) -> bool:
        _, y = self.graph.algebraic_to_coords(cell)
        return y == self.promotion_row(owner)
