"""
Shared pytest fixtures for stackjump tests.

Board fixtures are function-scoped so tests can never leak board edits into
each other; the move cache and settings are reset around every test.
"""

from pathlib import Path
import sys

import pytest

# Ensure the repository root is on sys.path so `import stackjump` works when
# pytest is run without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stackjump.config import get_settings  # noqa: E402
from stackjump.game_engine import GameEngine  # noqa: E402
from stackjump.models import BoardState  # noqa: E402
from stackjump.rules.rulesets import LASCA  # noqa: E402
from tests.helpers import (  # noqa: E402
    FULL_CAPTURE_PAIRS,
    MULTIPLE_CAPTURES_PAIRS,
    NO_REVERSAL_PAIRS,
    make_board,
)


@pytest.fixture(autouse=True)
def _reset_engine_state():
    """Rebuild settings and the move cache for every test."""
    get_settings.cache_clear()
    GameEngine.clear_cache()
    yield
    get_settings.cache_clear()
    GameEngine.clear_cache()


@pytest.fixture
def full_capture_board() -> BoardState:
    return make_board(FULL_CAPTURE_PAIRS)


@pytest.fixture
def no_reversal_board() -> BoardState:
    return make_board(NO_REVERSAL_PAIRS)


@pytest.fixture
def multiple_captures_board() -> BoardState:
    return make_board(MULTIPLE_CAPTURES_PAIRS)


@pytest.fixture
def opening_board() -> BoardState:
    return LASCA.opening_board()
