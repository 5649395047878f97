"""Game layer for the StackJump rules engines.

``GameEngine`` wraps the pure rules package with everything a host needs to
run a game: new games and loaded positions, the legal-move surface,
validation of partial input, previews for interactive move building, the
state transition with its result annotations, end-of-game detection, and
the serialisable position stack.

States are values: every operation returns a new ``GameState`` and never
mutates the one it was given.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .board_manager import BoardManager
from .config import get_settings
from .errors import (
    ConfigurationError,
    GameOverError,
    InvalidMoveError,
    InvalidStateError,
    SerializationError,
)
from .metrics import GAMES_COMPLETED, MOVE_GENERATION_LATENCY, MOVE_VALIDATIONS, MOVES_APPLIED
from .models import (
    BoardState,
    GameState,
    GameStatus,
    MoveResult,
    MoveState,
    MoveToken,
    Placement,
    Selection,
    Slide,
    ValidationResult,
    ValidationState,
    other_player,
)
from .move_cache import MoveCache
from .notation import normalize_move, parse_move
from .rules import mutator
from .rules.catalog import build_catalog
from .rules.entering import entry_size, pieces_in_hand
from .rules.rulesets import LASCA, RuleSet, get_ruleset
from .rules.validator import MESSAGES, MoveValidator

logger = logging.getLogger(__name__)

__all__ = ["GameEngine", "MovePreview"]


class MovePreview(BaseModel):
    """A partially applied move, for interactive rendering."""
    move: str
    board: BoardState
    results: List[MoveResult] = Field(default_factory=list)
    next_cells: List[str] = Field(default_factory=list, alias="nextCells")
    validation: ValidationResult

    class Config:
        populate_by_name = True


def _resolve_ruleset(ruleset: Union[RuleSet, str]) -> RuleSet:
    if isinstance(ruleset, RuleSet):
        return ruleset
    return get_ruleset(ruleset)


def _mark_promotion(token: MoveToken, promoted: Optional[str]) -> str:
    """Notation with ``*`` after the promotion cell, e.g. ``c5-d6*``."""
    if promoted is None:
        return str(token)
    cells = list(token.cells)
    for idx in range(len(cells) - 1, -1, -1):
        if cells[idx] == promoted:
            cells[idx] = f"{promoted}*"
            break
    sep = "-" if isinstance(token, Slide) else "x"
    return sep.join(cells)


class GameEngine:
    """Static entry points for running a game.

    The legal-move catalog is cached per (ruleset, player, board hash) in an
    LRU ``MoveCache`` sized from settings; the cache key covers everything
    move generation reads, so cached and fresh catalogs are identical.
    """

    _move_cache: Optional[MoveCache] = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @staticmethod
    def new_game(
        ruleset: Union[RuleSet, str] = LASCA,
        variants: Optional[List[str]] = None,
    ) -> GameState:
        """Start a game from the ruleset's opening layout.

        Raises:
            ConfigurationError: for unknown rulesets or rulesets without an
                opening layout.
        """
        rules = _resolve_ruleset(ruleset)
        board = rules.opening_board()
        return GameEngine.from_board(board, rules, current_player=1, variants=variants)

    @staticmethod
    def from_board(
        board: BoardState,
        ruleset: Union[RuleSet, str],
        current_player: int = 1,
        variants: Optional[List[str]] = None,
    ) -> GameState:
        """Start a game from an arbitrary position."""
        rules = _resolve_ruleset(ruleset)
        if board.size != rules.board_size:
            raise ConfigurationError(
                "Board size does not match the ruleset",
                context={"size": board.size, "ruleset": rules.name},
            )
        fresh = MoveState(
            version=rules.version,
            current_player=current_player,
            board=board,
        )
        return GameState(game=rules.name, variants=list(variants or []), stack=[fresh])

    @staticmethod
    def ruleset_for(state: GameState) -> RuleSet:
        return get_ruleset(state.game)

    # ------------------------------------------------------------------
    # Move surface
    # ------------------------------------------------------------------

    @staticmethod
    def _cache() -> MoveCache:
        if GameEngine._move_cache is None:
            settings = get_settings()
            GameEngine._move_cache = MoveCache(
                max_size=settings.move_cache_size,
                enabled=settings.use_move_cache,
            )
        return GameEngine._move_cache

    @staticmethod
    def clear_cache() -> None:
        """Drop the move cache; it is rebuilt from settings on next use."""
        GameEngine._move_cache = None

    @staticmethod
    def get_catalog(board: BoardState, player: int, ruleset: RuleSet) -> List[MoveToken]:
        """Legal moves as tagged tokens, served from the cache when possible."""
        cache = GameEngine._cache()
        cached = cache.get(board, player, ruleset)
        if cached is not None:
            logger.debug("Move cache hit for player %d (%s)", player, ruleset.name)
            return cached

        started = time.perf_counter()
        catalog = build_catalog(board, player, ruleset)
        MOVE_GENERATION_LATENCY.labels(ruleset=ruleset.name).observe(
            time.perf_counter() - started
        )
        cache.put(board, player, ruleset, catalog)
        return catalog

    @staticmethod
    def get_valid_moves(state: GameState, player: Optional[int] = None) -> List[str]:
        """Sorted legal move tokens for ``player`` (default: player to move)."""
        if state.gameover:
            return []
        if player is None:
            player = state.current_player
        rules = GameEngine.ruleset_for(state)
        return [str(token) for token in GameEngine.get_catalog(state.board, player, rules)]

    # ------------------------------------------------------------------
    # Validation and previews
    # ------------------------------------------------------------------

    @staticmethod
    def validate_move(state: GameState, move: str) -> ValidationResult:
        """Classify a (partial) move for the player to move."""
        if state.gameover:
            result = ValidationResult(
                state=ValidationState.INVALID,
                code="GAME_OVER",
                message=MESSAGES["GAME_OVER"],
                move=normalize_move(move),
            )
        else:
            rules = GameEngine.ruleset_for(state)
            player = state.current_player
            catalog = GameEngine.get_catalog(state.board, player, rules)
            result = MoveValidator(rules).validate(state.board, player, move, catalog)
        MOVE_VALIDATIONS.labels(state=result.state.value).inc()
        return result

    @staticmethod
    def preview_move(state: GameState, move: str) -> MovePreview:
        """Apply a valid, possibly incomplete, move to a copy of the board.

        Raises:
            GameOverError: if the game has finished.
            InvalidMoveError: if the move is invalid.
        """
        if state.gameover:
            raise GameOverError(MESSAGES["GAME_OVER"])
        validation = GameEngine.validate_move(state, move)
        if not validation.valid:
            raise InvalidMoveError(validation.message, reason=validation.code)

        board = state.board
        results: List[MoveResult] = []
        if validation.move:
            token = parse_move(validation.move)
            rules = GameEngine.ruleset_for(state)
            if isinstance(token, Selection) and validation.complete:
                # A complete bare cell can only be a placement.
                outcome = GameEngine._place(
                    board, Placement(cell=token.start), state.current_player, rules
                )
                board, results = outcome.board, outcome.results
            elif not isinstance(token, Selection):
                outcome = mutator.apply_move(
                    board, token, rules.ray_service(), promotion=rules.promotion
                )
                board, results = outcome.board, outcome.results
        return MovePreview(
            move=validation.move,
            board=board,
            results=results,
            next_cells=validation.next_cells,
            validation=validation,
        )

    # ------------------------------------------------------------------
    # State transition
    # ------------------------------------------------------------------

    @staticmethod
    def apply_move(state: GameState, move: str, *, trusted: bool = False) -> GameState:
        """Apply a complete move and return the new state.

        Untrusted moves must validate as complete. Trusted moves skip
        validation (replays of recorded games).

        Raises:
            GameOverError: if the game has finished.
            InvalidMoveError: if an untrusted move is invalid or incomplete,
                or a trusted move is only a start cell while no placement is due.
        """
        if state.gameover:
            raise GameOverError(MESSAGES["GAME_OVER"], context={"move": move})

        rules = GameEngine.ruleset_for(state)
        player = state.current_player
        normalized = normalize_move(move)

        if not trusted:
            validation = GameEngine.validate_move(state, normalized)
            if not validation.valid:
                raise InvalidMoveError(validation.message, reason=validation.code)
            if not validation.complete:
                raise InvalidMoveError(
                    f"{normalized} is not a complete move",
                    reason="INCOMPLETE_MOVE",
                    context={"next": ",".join(validation.next_cells)},
                )

        token = parse_move(normalized)
        if isinstance(token, Selection):
            catalog = GameEngine.get_catalog(state.board, player, rules)
            if not any(isinstance(entry, Placement) for entry in catalog):
                raise InvalidMoveError(
                    f"{normalized} is not a complete move", reason="INCOMPLETE_MOVE"
                )
            token = Placement(cell=token.start)

        if isinstance(token, Placement):
            outcome = GameEngine._place(state.board, token, player, rules)
        else:
            outcome = mutator.apply_move(
                state.board, token, rules.ray_service(), promotion=rules.promotion
            )
        next_player = other_player(player)
        results = list(outcome.results)

        game_status = GameStatus.ACTIVE
        winner: List[int] = []
        if not GameEngine.get_catalog(outcome.board, next_player, rules):
            game_status = GameStatus.FINISHED
            winner = GameEngine._winners_on_block(outcome.board, player, rules)
            results.append(MoveResult(type="eog"))
            results.append(MoveResult(type="winners", players=list(winner)))

        entry = MoveState(
            version=rules.version,
            current_player=next_player,
            board=outcome.board,
            last_move=_mark_promotion(token, outcome.promoted),
            results=results,
        )
        MOVES_APPLIED.labels(ruleset=rules.name, kind=token.kind.value).inc()
        logger.info("Player %d played %s (%s)", player, entry.last_move, rules.name)
        if game_status == GameStatus.FINISHED:
            if len(winner) > 1:
                GAMES_COMPLETED.labels(ruleset=rules.name, outcome="draw").inc()
                logger.info("Game over: draw (%s)", rules.name)
            else:
                GAMES_COMPLETED.labels(ruleset=rules.name, outcome=f"player{player}").inc()
                logger.info("Game over: player %d wins (%s)", player, rules.name)

        return state.model_copy(
            update={
                "stack": state.stack + [entry],
                "game_status": game_status,
                "winner": winner,
            }
        )

    @staticmethod
    def _place(
        board: BoardState, token: Placement, player: int, rules: RuleSet
    ) -> mutator.MoveOutcome:
        count = entry_size(board, player, rules)
        return mutator.apply_placement(board, token.cell, player, count)

    @staticmethod
    def _winners_on_block(board: BoardState, mover: int, rules: RuleSet) -> List[int]:
        """Winners once the player to move has no legal move.

        A side with nothing left to play with (no stacks, empty hand) loses.
        A side that is only blocked loses too, except under rulesets where
        being immobilised is a draw.
        """
        blocked = other_player(mover)
        eliminated = (
            not BoardManager.cells_controlled_by(blocked, board)
            and pieces_in_hand(board, rules)[blocked - 1] == 0
        )
        if eliminated or not rules.immobilised_draws:
            return [mover]
        return [1, 2]

    # ------------------------------------------------------------------
    # Position stack
    # ------------------------------------------------------------------

    @staticmethod
    def position_at(state: GameState, idx: int = -1) -> MoveState:
        """Return a stack entry; negative indexes count from the end."""
        if idx < 0:
            idx += len(state.stack)
        if idx < 0 or idx >= len(state.stack):
            raise InvalidStateError(
                "Could not load the requested state from the stack.",
                context={"index": idx, "length": len(state.stack)},
            )
        return state.stack[idx]

    @staticmethod
    def undo(state: GameState) -> GameState:
        """Drop the last move. The initial position is never removed."""
        if len(state.stack) <= 1:
            raise InvalidStateError("There is no move to undo.")
        return state.model_copy(
            update={
                "stack": state.stack[:-1],
                "game_status": GameStatus.ACTIVE,
                "winner": [],
            }
        )

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    @staticmethod
    def serialize(state: GameState) -> str:
        return state.model_dump_json(by_alias=True)

    @staticmethod
    def deserialize(text: str, ruleset: Union[RuleSet, str, None] = None) -> GameState:
        """Read a game record back.

        Raises:
            SerializationError: for unreadable JSON, unknown games, or a
                record for a different game than ``ruleset``.
        """
        try:
            state = GameState.model_validate_json(text)
        except PydanticValidationError as e:
            raise SerializationError(
                "Could not parse game record", context={"errors": e.error_count()}
            ) from e

        try:
            stored = get_ruleset(state.game)
        except ConfigurationError as e:
            raise SerializationError(e.message, context=e.context) from e

        if ruleset is not None:
            expected = _resolve_ruleset(ruleset)
            if expected.name != stored.name:
                raise SerializationError(
                    f"The {expected.name} engine cannot process a game of '{state.game}'.",
                    context={"game": state.game},
                )
        return state
