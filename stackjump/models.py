"""
Pydantic models for stacking checkers-family game state.

Cells are algebraic coordinates ("a1" is the bottom-left corner). Stacks are
stored bottom -> top, so the piece that moves, is captured and controls the
cell is always the last element.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field, model_validator


class Rank(int, Enum):
    """Promotion tier of a piece"""
    SOLDIER = 1
    OFFICER = 2


class Piece(BaseModel):
    """A single piece: owner plus rank. Replaced, never mutated, on promotion."""
    owner: int = Field(ge=1, le=2)
    rank: Rank = Rank.SOLDIER

    class Config:
        frozen = True

    def promoted(self) -> "Piece":
        return Piece(owner=self.owner, rank=Rank.OFFICER)

    def to_pair(self) -> List[int]:
        """Compact wire form: ``[owner, rank]``."""
        return [self.owner, int(self.rank)]


class BoardState(BaseModel):
    """Board snapshot: cell -> stack of pieces (bottom -> top).

    A cell is either absent (empty) or holds a non-empty stack.
    """
    size: int = Field(ge=2, le=26)
    stacks: Dict[str, List[Piece]] = Field(default_factory=dict)

    @classmethod
    def from_pairs(
        cls,
        size: int,
        pairs: Mapping[str, Sequence[Sequence[int]]],
    ) -> "BoardState":
        """Build a board from ``{cell: [(owner, rank), ...]}``."""
        stacks = {
            cell: [Piece(owner=owner, rank=Rank(rank)) for owner, rank in stack]
            for cell, stack in pairs.items()
        }
        return cls(size=size, stacks=stacks)

    def to_pairs(self) -> Dict[str, List[List[int]]]:
        return {
            cell: [piece.to_pair() for piece in stack]
            for cell, stack in self.stacks.items()
        }


class MoveKind(str, Enum):
    """Move token variant"""
    SELECTION = "selection"
    SLIDE = "slide"
    CAPTURE = "capture"
    PLACEMENT = "placement"


class Selection(BaseModel):
    """A bare start cell. Only ever a partial move."""
    start: str

    class Config:
        frozen = True

    @property
    def kind(self) -> MoveKind:
        return MoveKind.SELECTION

    @property
    def cells(self) -> Tuple[str, ...]:
        return (self.start,)

    @property
    def landing(self) -> str:
        return self.start

    def __str__(self) -> str:
        return self.start


class Slide(BaseModel):
    """A single non-capturing step: ``start-to``."""
    start: str
    to: str

    class Config:
        frozen = True

    @property
    def kind(self) -> MoveKind:
        return MoveKind.SLIDE

    @property
    def cells(self) -> Tuple[str, ...]:
        return (self.start, self.to)

    @property
    def landing(self) -> str:
        return self.to

    def __str__(self) -> str:
        return f"{self.start}-{self.to}"


class CaptureChain(BaseModel):
    """One or more consecutive capture hops: ``start x c1 x c2 ...``."""
    cells: Tuple[str, ...] = Field(min_length=2)

    class Config:
        frozen = True

    @property
    def kind(self) -> MoveKind:
        return MoveKind.CAPTURE

    @property
    def start(self) -> str:
        return self.cells[0]

    @property
    def landing(self) -> str:
        return self.cells[-1]

    @property
    def hop_count(self) -> int:
        return len(self.cells) - 1

    def extend(self, cell: str) -> "CaptureChain":
        return CaptureChain(cells=self.cells + (cell,))

    def __str__(self) -> str:
        return "x".join(self.cells)


class Placement(BaseModel):
    """A piece (or the rest of the hand) entering on an empty cell.

    Written as the bare cell, like a ``Selection``; the catalog decides
    which of the two a bare cell means.
    """
    cell: str

    class Config:
        frozen = True

    @property
    def kind(self) -> MoveKind:
        return MoveKind.PLACEMENT

    @property
    def start(self) -> str:
        return self.cell

    @property
    def cells(self) -> Tuple[str, ...]:
        return (self.cell,)

    @property
    def landing(self) -> str:
        return self.cell

    def __str__(self) -> str:
        return self.cell


# Complete moves; Selection only appears in partial input.
MoveToken = Union[Slide, CaptureChain, Placement]
PartialToken = Union[Selection, Slide, CaptureChain, Placement]


class CaptureCandidate(BaseModel):
    """In-progress capture chain plus the cells it has captured so far."""
    chain: Tuple[str, ...]
    captured_cells: Tuple[str, ...] = Field(alias="capturedCells")

    class Config:
        frozen = True
        populate_by_name = True

    @model_validator(mode="after")
    def _check_lengths(self) -> "CaptureCandidate":
        if len(self.captured_cells) != len(self.chain) - 1:
            raise ValueError(
                "capturedCells must have exactly one entry per hop "
                f"(chain={self.chain}, captured={self.captured_cells})"
            )
        return self

    @property
    def last_captured(self) -> Optional[str]:
        return self.captured_cells[-1] if self.captured_cells else None

    def to_token(self) -> CaptureChain:
        return CaptureChain(cells=self.chain)


class ValidationState(str, Enum):
    """Tri-state outcome of partial-move validation"""
    INVALID = "invalid"
    VALID_INCOMPLETE = "valid_incomplete"
    VALID_COMPLETE = "valid_complete"


class ValidationResult(BaseModel):
    """Result of validating a (possibly partial) move token."""
    state: ValidationState
    code: str
    message: str
    move: str = ""
    next_cells: List[str] = Field(default_factory=list, alias="nextCells")

    class Config:
        populate_by_name = True

    @property
    def valid(self) -> bool:
        return self.state != ValidationState.INVALID

    @property
    def complete(self) -> bool:
        return self.state == ValidationState.VALID_COMPLETE


class MoveResult(BaseModel):
    """Annotation record appended by the state transition.

    ``type`` is one of 'move', 'capture', 'promote', 'add', 'eog', 'winners'.
    """
    type: str
    from_cell: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None
    where: Optional[str] = None
    what: Optional[str] = None
    num: Optional[int] = None
    players: Optional[List[int]] = None

    class Config:
        populate_by_name = True


class GameStatus(str, Enum):
    """Game status enumeration"""
    ACTIVE = "active"
    FINISHED = "finished"


class MoveState(BaseModel):
    """One entry of the position stack"""
    version: str = Field(alias="_version")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="_timestamp"
    )
    current_player: int = Field(alias="currentPlayer", ge=1, le=2)
    board: BoardState
    last_move: Optional[str] = Field(None, alias="lastMove")
    results: List[MoveResult] = Field(default_factory=list, alias="_results")

    class Config:
        populate_by_name = True


class GameState(BaseModel):
    """Complete game record: ruleset, outcome and the position stack."""
    game: str
    variants: List[str] = Field(default_factory=list)
    num_players: int = Field(2, alias="numPlayers")
    game_status: GameStatus = Field(GameStatus.ACTIVE, alias="gameStatus")
    winner: List[int] = Field(default_factory=list)
    stack: List[MoveState] = Field(min_length=1)

    class Config:
        populate_by_name = True

    @property
    def current(self) -> MoveState:
        return self.stack[-1]

    @property
    def board(self) -> BoardState:
        return self.stack[-1].board

    @property
    def current_player(self) -> int:
        return self.stack[-1].current_player

    @property
    def last_move(self) -> Optional[str]:
        return self.stack[-1].last_move

    @property
    def gameover(self) -> bool:
        return self.game_status == GameStatus.FINISHED


def other_player(player: int) -> int:
    return 2 if player == 1 else 1
