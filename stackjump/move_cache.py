"""
Move catalog caching for faster repeated lookups.

Caches move catalogs keyed by the canonical board hash, the player and the
ruleset. The key covers everything move generation reads, so a hit returns
exactly what a fresh computation would. Uses LRU eviction to bound memory.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING

from .board_manager import BoardManager
from .metrics import MOVE_CACHE_LOOKUPS

if TYPE_CHECKING:
    from .models import BoardState, MoveToken
    from .rules.rulesets import RuleSet


class MoveCache:
    """LRU cache of move catalogs."""

    def __init__(self, max_size: int = 1000, enabled: bool = True):
        self.max_size = max_size
        self.enabled = enabled
        self._cache: OrderedDict[str, tuple] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(
        self, board: BoardState, player: int, ruleset: RuleSet
    ) -> list[MoveToken] | None:
        """Return the cached catalog, or None if not cached."""
        if not self.enabled:
            return None

        key = self._compute_key(board, player, ruleset)
        if key in self._cache:
            self._hits += 1
            MOVE_CACHE_LOOKUPS.labels(outcome="hit").inc()
            # Move to end (most recently used)
            self._cache.move_to_end(key)
            return list(self._cache[key])

        self._misses += 1
        MOVE_CACHE_LOOKUPS.labels(outcome="miss").inc()
        return None

    def put(
        self,
        board: BoardState,
        player: int,
        ruleset: RuleSet,
        moves: list[MoveToken],
    ) -> None:
        if not self.enabled:
            return

        key = self._compute_key(board, player, ruleset)

        # Evict oldest if at capacity
        while len(self._cache) >= self.max_size:
            self._cache.popitem(last=False)

        # Tokens are frozen; storing a tuple keeps callers from editing
        # the cached list.
        self._cache[key] = tuple(moves)

    def clear(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict[str, float]:
        total = self._hits + self._misses
        hit_rate = self._hits / total if total > 0 else 0
        return {
            'hits': self._hits,
            'misses': self._misses,
            'size': len(self._cache),
            'hit_rate': hit_rate,
        }

    @staticmethod
    def _compute_key(board: BoardState, player: int, ruleset: RuleSet) -> str:
        return f"{ruleset.cache_key()}:{player}:{BoardManager.hash_board(board)}"
