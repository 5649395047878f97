"""Prometheus metrics for the StackJump engine and service.

This module centralises counters and histograms so that the game layer and
the HTTP handlers can record lightweight telemetry without each caller
having to manage its own metric instances. The pure rules package never
touches these.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Histogram


MOVE_GENERATION_LATENCY: Final[Histogram] = Histogram(
    "stackjump_move_generation_seconds",
    "Time spent building a player's move catalog, labeled by ruleset.",
    labelnames=("ruleset",),
    # Boards are small; most catalogs build in well under a millisecond.
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
)

MOVE_VALIDATIONS: Final[Counter] = Counter(
    "stackjump_move_validations_total",
    "Total move validations, labeled by resulting state.",
    labelnames=("state",),
)

MOVES_APPLIED: Final[Counter] = Counter(
    "stackjump_moves_applied_total",
    "Total moves applied, labeled by ruleset and move kind.",
    labelnames=("ruleset", "kind"),
)

GAMES_COMPLETED: Final[Counter] = Counter(
    "stackjump_games_completed_total",
    "Total finished games, labeled by ruleset and outcome.",
    labelnames=("ruleset", "outcome"),
)

MOVE_CACHE_LOOKUPS: Final[Counter] = Counter(
    "stackjump_move_cache_lookups_total",
    "Total move cache lookups, labeled by outcome (hit/miss).",
    labelnames=("outcome",),
)
