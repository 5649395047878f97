"""Per-game rule parameters.

The capture-chain algorithm is shared; what differs between the stacking
games is the board size, which directions soldiers may use, whether
soldiers promote, and whether only the longest capture chains are legal.
Games that start from an empty board (Emergo) also carry a hand size and
the cell the first piece may not enter on.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..errors import ConfigurationError
from ..models import BoardState
from .geometry import DiagonalRayService, SquareDiagGraph

__all__ = [
    "EMERGO",
    "LASCA",
    "RULESETS",
    "RuleSet",
    "get_ruleset",
]


class RuleSet(BaseModel):
    """Rule parameters for one game of the family."""
    name: str
    version: str
    board_size: int = Field(alias="boardSize", ge=3, le=26)
    promotion: bool = True
    soldiers_backward: bool = Field(False, alias="soldiersBackward")
    longest_capture: bool = Field(False, alias="longestCapture")
    opening: Optional[Dict[str, List[Tuple[int, int]]]] = None
    hand_size: int = Field(0, alias="handSize", ge=0)
    first_entry_ban: Optional[str] = Field(None, alias="firstEntryBan")
    immobilised_draws: bool = Field(False, alias="immobilisedDraws")

    class Config:
        frozen = True
        populate_by_name = True

    def ray_service(self) -> DiagonalRayService:
        return _ray_service(self.board_size, self.soldiers_backward)

    def cache_key(self) -> str:
        """Everything about the ruleset that move generation reads."""
        flags = "".join(
            "1" if flag else "0"
            for flag in (self.promotion, self.soldiers_backward, self.longest_capture)
        )
        return (
            f"{self.name}:{self.version}:{flags}:{self.hand_size}:"
            f"{self.first_entry_ban or '-'}"
        )

    def opening_board(self) -> BoardState:
        if self.opening is None:
            raise ConfigurationError(
                f"Ruleset '{self.name}' has no opening layout; load a position instead",
                context={"ruleset": self.name},
            )
        return BoardState.from_pairs(self.board_size, self.opening)


@lru_cache(maxsize=None)
def _ray_service(size: int, soldiers_backward: bool) -> DiagonalRayService:
    return DiagonalRayService(SquareDiagGraph(size, size), soldiers_backward)


def _lasca_opening() -> Dict[str, List[Tuple[int, int]]]:
    player2 = ["a7", "c7", "e7", "g7", "b6", "d6", "f6", "a5", "c5", "e5", "g5"]
    player1 = ["a1", "c1", "e1", "g1", "b2", "d2", "f2", "a3", "c3", "e3", "g3"]
    opening = {cell: [(2, 1)] for cell in player2}
    opening.update({cell: [(1, 1)] for cell in player1})
    return opening


LASCA = RuleSet(
    name="lasca",
    version="20251123",
    board_size=7,
    promotion=True,
    soldiers_backward=False,
    longest_capture=False,
    opening=_lasca_opening(),
)

# Emergo pieces all move and capture in every diagonal direction and the
# majority-capture rule applies. The board starts empty: each side holds 12
# pieces in hand and enters them one at a time onto the dark cells, the
# first one anywhere but the centre.
EMERGO = RuleSet(
    name="emergo",
    version="20251125",
    board_size=9,
    promotion=False,
    soldiers_backward=True,
    longest_capture=True,
    opening={},
    hand_size=12,
    first_entry_ban="e5",
    immobilised_draws=True,
)

RULESETS: Dict[str, RuleSet] = {
    LASCA.name: LASCA,
    EMERGO.name: EMERGO,
}


def get_ruleset(name: str) -> RuleSet:
    try:
        return RULESETS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown ruleset: {name}",
            context={"available": ",".join(sorted(RULESETS))},
        ) from None
