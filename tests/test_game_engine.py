"""Tests for GameEngine: the game layer over the rules package."""

import json

import pytest

from stackjump.errors import (
    ConfigurationError,
    GameOverError,
    InvalidMoveError,
    InvalidStateError,
    SerializationError,
)
from stackjump.game_engine import GameEngine
from stackjump.models import GameStatus, ValidationState
from stackjump.rules.catalog import build_catalog
from stackjump.rules.rulesets import LASCA
from stackjump.rules.validator import MESSAGES

from tests.helpers import MULTIPLE_CAPTURES_PAIRS, make_board


def _result_types(entry):
    return [result.type for result in entry.results]


@pytest.fixture
def opening_state():
    return GameEngine.new_game()


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestNewGame:
    """Tests for new_game and from_board."""

    def test_lasca_opening(self, opening_state):
        assert opening_state.game == "lasca"
        assert opening_state.current_player == 1
        assert opening_state.game_status == GameStatus.ACTIVE
        assert len(opening_state.stack) == 1
        assert len(opening_state.board.stacks) == 22
        assert opening_state.current.version == LASCA.version

    def test_variants_are_recorded(self):
        state = GameEngine.new_game("lasca", variants=["quick"])
        assert state.variants == ["quick"]

    def test_emergo_starts_empty(self):
        state = GameEngine.new_game("emergo")
        assert state.board.size == 9
        assert state.board.stacks == {}
        moves = GameEngine.get_valid_moves(state)
        assert len(moves) == 40
        assert "e5" not in moves

    def test_unknown_ruleset(self):
        with pytest.raises(ConfigurationError):
            GameEngine.new_game("chess")

    def test_from_board_size_mismatch(self):
        board = make_board({"e5": [(1, 1)]}, size=9)
        with pytest.raises(ConfigurationError):
            GameEngine.from_board(board, "lasca")

    def test_from_board_emergo(self):
        board = make_board({"e5": [(1, 1)], "a1": [(2, 1)]}, size=9)
        state = GameEngine.from_board(board, "emergo", current_player=2)
        assert state.current_player == 2
        moves = GameEngine.get_valid_moves(state)
        # Pieces are still in hand, and none may land next to e5.
        assert "a1-b2" not in moves
        assert "b2" in moves
        assert "d4" not in moves
        assert len(moves) == 35


# =============================================================================
# MOVES
# =============================================================================


class TestApplyMove:
    """State transitions, capture relocation and promotion."""

    def test_opening_moves(self, opening_state):
        assert GameEngine.get_valid_moves(opening_state) == [
            "a3-b4", "c3-b4", "c3-d4", "e3-d4", "e3-f4", "g3-f4",
        ]

    def test_moves_for_other_player(self, opening_state):
        assert GameEngine.get_valid_moves(opening_state, player=2)[0] == "a5-b4"

    def test_slide(self, opening_state):
        state = GameEngine.apply_move(opening_state, "c3-d4")

        assert state.current_player == 2
        assert "d4" in state.board.stacks
        assert "c3" not in state.board.stacks
        assert state.last_move == "c3-d4"
        assert _result_types(state.current) == ["move"]
        assert state.current.results[0].from_cell == "c3"
        assert state.current.results[0].to == "d4"

    def test_original_state_is_untouched(self, opening_state):
        before = opening_state.model_dump()
        GameEngine.apply_move(opening_state, "c3-d4")
        assert opening_state.model_dump() == before

    def test_capture_moves_top_piece_to_bottom(self, opening_state):
        state = GameEngine.apply_move(opening_state, "c3-d4")
        assert GameEngine.get_valid_moves(state) == ["e5xc3"]

        state = GameEngine.apply_move(state, "e5xc3")

        assert state.board.to_pairs()["c3"] == [[1, 1], [2, 1]]
        assert "d4" not in state.board.stacks
        assert "e5" not in state.board.stacks
        assert _result_types(state.current) == ["move", "capture"]
        capture = state.current.results[1]
        assert capture.where == "d4"
        assert capture.what == "soldier"

    def test_capture_leaves_rest_of_stack(self):
        board = make_board({"c3": [(1, 1)], "d4": [(1, 2), (2, 1)]})
        state = GameEngine.from_board(board, "lasca")
        state = GameEngine.apply_move(state, "c3xe5")

        pairs = state.board.to_pairs()
        assert pairs["d4"] == [[1, 2]]
        assert pairs["e5"] == [[2, 1], [1, 1]]

    def test_capture_promotion_is_marked(self):
        board = make_board({"b5": [(1, 1)], "c6": [(2, 1)], "e6": [(2, 1)]})
        state = GameEngine.from_board(board, "lasca")
        state = GameEngine.apply_move(state, "b5xd7*")

        assert state.last_move == "b5xd7*"
        assert state.board.to_pairs()["d7"] == [[2, 1], [1, 2]]
        assert _result_types(state.current) == ["move", "capture", "promote"]
        assert state.game_status == GameStatus.ACTIVE

    def test_slide_promotion_is_marked(self):
        board = make_board({"c6": [(1, 1)], "g5": [(2, 1)]})
        state = GameEngine.from_board(board, "lasca")
        state = GameEngine.apply_move(state, "c6-d7")

        assert state.last_move == "c6-d7*"
        assert state.board.to_pairs()["d7"] == [[1, 2]]

    def test_reference_chain(self):
        board = make_board(MULTIPLE_CAPTURES_PAIRS)
        state = GameEngine.from_board(board, "lasca", current_player=2)
        state = GameEngine.apply_move(state, "c1xa3xc5xe3xg1")

        pairs = state.board.to_pairs()
        # Four captured tops, oldest at the bottom, under the original stack.
        assert pairs["g1"] == [[1, 1], [1, 1], [1, 1], [1, 1], [1, 1], [2, 2]]
        assert pairs["b4"] == [[2, 2]]
        assert "d4" not in pairs
        assert _result_types(state.current).count("capture") == 4

    def test_invalid_move(self, opening_state):
        with pytest.raises(InvalidMoveError) as excinfo:
            GameEngine.apply_move(opening_state, "c3-c4")
        assert excinfo.value.reason == "UNREACHABLE"

    def test_opponent_piece(self, opening_state):
        with pytest.raises(InvalidMoveError) as excinfo:
            GameEngine.apply_move(opening_state, "a5-b4")
        assert excinfo.value.reason == "UNCONTROLLED"

    def test_incomplete_move(self, opening_state):
        with pytest.raises(InvalidMoveError) as excinfo:
            GameEngine.apply_move(opening_state, "c3")
        assert excinfo.value.reason == "INCOMPLETE_MOVE"

    def test_incomplete_chain(self):
        board = make_board(MULTIPLE_CAPTURES_PAIRS)
        state = GameEngine.from_board(board, "lasca", current_player=2)
        with pytest.raises(InvalidMoveError) as excinfo:
            GameEngine.apply_move(state, "c1xa3xc5")
        assert excinfo.value.reason == "INCOMPLETE_MOVE"
        assert excinfo.value.context["next"] == "a7,e3,e7"

    def test_trusted_move_skips_validation(self, opening_state):
        state = GameEngine.apply_move(opening_state, "c3-d4", trusted=True)
        assert state.last_move == "c3-d4"

    def test_trusted_selection_is_rejected(self, opening_state):
        with pytest.raises(InvalidMoveError):
            GameEngine.apply_move(opening_state, "c3", trusted=True)


# =============================================================================
# END OF GAME
# =============================================================================


class TestGameOver:
    """A player with no legal move loses (Emergo: a blocked player draws)."""

    @pytest.fixture
    def finished_state(self):
        board = make_board({"c3": [(1, 1)], "d4": [(2, 1)]})
        state = GameEngine.from_board(board, "lasca")
        return GameEngine.apply_move(state, "c3xe5")

    def test_last_piece_captured(self, finished_state):
        assert finished_state.gameover
        assert finished_state.winner == [1]
        assert _result_types(finished_state.current)[-2:] == ["eog", "winners"]
        assert finished_state.current.results[-1].players == [1]

    def test_immobilised_player_loses(self):
        board = make_board({"a1": [(2, 1)], "c3": [(1, 1)]})
        state = GameEngine.from_board(board, "lasca")
        state = GameEngine.apply_move(state, "c3-d4")
        assert state.gameover
        assert state.winner == [1]

    def test_emergo_blocked_player_draws(self):
        # Both hands are empty; a9 is hemmed in by b8 and c7.
        board = make_board(
            {
                "a9": [(2, 1)] * 12,
                "b8": [(1, 1)],
                "c7": [(1, 1)],
                "g3": [(1, 1)] * 10,
            },
            size=9,
        )
        state = GameEngine.from_board(board, "emergo")
        state = GameEngine.apply_move(state, "g3-f4")

        assert state.gameover
        assert state.winner == [1, 2]
        assert _result_types(state.current)[-2:] == ["eog", "winners"]
        assert state.current.results[-1].players == [1, 2]

    def test_emergo_player_without_stacks_loses(self):
        # Every piece of player 2 is already on the board; d4 is the last
        # stack they control.
        board = make_board(
            {
                "c3": [(1, 1)] * 11,
                "d4": [(2, 1)],
                "h8": [(2, 1)] * 11 + [(1, 1)],
            },
            size=9,
        )
        state = GameEngine.from_board(board, "emergo")
        state = GameEngine.apply_move(state, "c3xe5")

        assert state.gameover
        assert state.winner == [1]
        capture = state.current.results[1]
        assert capture.type == "capture"
        assert capture.what is None

    def test_no_moves_after_game_over(self, finished_state):
        assert GameEngine.get_valid_moves(finished_state) == []

    def test_validate_after_game_over(self, finished_state):
        result = GameEngine.validate_move(finished_state, "e5-f6")
        assert result.state == ValidationState.INVALID
        assert result.code == "GAME_OVER"

    def test_apply_after_game_over(self, finished_state):
        with pytest.raises(GameOverError):
            GameEngine.apply_move(finished_state, "e5-f6")

    def test_preview_after_game_over(self, finished_state):
        with pytest.raises(GameOverError):
            GameEngine.preview_move(finished_state, "e5")

    def test_undo_reopens_game(self, finished_state):
        state = GameEngine.undo(finished_state)
        assert state.game_status == GameStatus.ACTIVE
        assert state.winner == []
        assert state.current_player == 1


# =============================================================================
# ENTERING (EMERGO)
# =============================================================================


class TestEntering:
    """Placing pieces from the hand through the game layer."""

    @pytest.fixture
    def emergo_state(self):
        return GameEngine.new_game("emergo")

    def test_entering_instructions(self, emergo_state):
        result = GameEngine.validate_move(emergo_state, "")
        assert result.code == "INITIAL_INSTRUCTIONS"
        assert result.message == MESSAGES["ENTER_INSTRUCTIONS"]
        assert len(result.next_cells) == 40

    def test_first_piece_may_not_enter_centre(self, emergo_state):
        result = GameEngine.validate_move(emergo_state, "e5")
        assert result.code == "FIRST_ENTRY"
        with pytest.raises(InvalidMoveError) as excinfo:
            GameEngine.apply_move(emergo_state, "e5")
        assert excinfo.value.reason == "FIRST_ENTRY"

    def test_light_cell(self, emergo_state):
        assert GameEngine.validate_move(emergo_state, "a2").code == "UNPLAYABLE_CELL"

    def test_place_one_piece(self, emergo_state):
        state = GameEngine.apply_move(emergo_state, "a1")

        assert state.board.to_pairs() == {"a1": [[1, 1]]}
        assert state.current_player == 2
        assert state.last_move == "a1"
        add = state.current.results[0]
        assert (add.type, add.where, add.num) == ("add", "a1", 1)

    def test_occupied_cell(self, emergo_state):
        state = GameEngine.apply_move(emergo_state, "a1")
        assert GameEngine.validate_move(state, "a1").code == "OCCUPIED"

    def test_placement_that_feeds_opponent(self, emergo_state):
        state = GameEngine.apply_move(emergo_state, "a1")
        assert GameEngine.validate_move(state, "b2").code == "INVALID_MOVE"
        assert GameEngine.validate_move(state, "e5").complete

    def test_stack_may_not_move_while_entering(self):
        board = make_board({"e5": [(1, 1)], "a1": [(2, 1)]}, size=9)
        state = GameEngine.from_board(board, "emergo")
        assert GameEngine.validate_move(state, "e5-d4").code == "INVALID_MOVE"

    def test_rest_of_hand_enters_at_once(self):
        # Player 1 has nothing left in hand, so player 2's last nine pieces
        # enter as one stack.
        board = make_board({"a1": [(1, 1)] * 12, "i9": [(2, 1)] * 3}, size=9)
        state = GameEngine.from_board(board, "emergo", current_player=2)
        state = GameEngine.apply_move(state, "e5")

        assert state.board.to_pairs()["e5"] == [[2, 1]] * 9
        assert state.current.results[0].num == 9
        assert not state.gameover
        assert GameEngine.get_valid_moves(state) == ["a1-b2"]

    def test_preview_placement(self, emergo_state):
        preview = GameEngine.preview_move(emergo_state, "c3")
        assert preview.board.to_pairs() == {"c3": [[1, 1]]}
        assert [r.type for r in preview.results] == ["add"]
        assert emergo_state.board.stacks == {}

    def test_trusted_placement(self, emergo_state):
        state = GameEngine.apply_move(emergo_state, "g7", trusted=True)
        assert "g7" in state.board.stacks


# =============================================================================
# VALIDATION AND PREVIEW
# =============================================================================


class TestValidateAndPreview:
    """Interactive move building through the game layer."""

    @pytest.fixture
    def chain_state(self):
        board = make_board(MULTIPLE_CAPTURES_PAIRS)
        return GameEngine.from_board(board, "lasca", current_player=2)

    def test_validate_partial(self, chain_state):
        result = GameEngine.validate_move(chain_state, "c1xa3xc5")
        assert result.state == ValidationState.VALID_INCOMPLETE
        assert result.next_cells == ["a7", "e3", "e7"]

    def test_preview_partial_chain(self, chain_state):
        preview = GameEngine.preview_move(chain_state, "c1xa3")

        pairs = preview.board.to_pairs()
        assert pairs["a3"] == [[1, 1], [1, 1], [2, 2]]
        assert pairs["b2"] == [[1, 1]]
        assert "c1" not in pairs
        assert preview.next_cells == ["c5"]
        assert [r.type for r in preview.results] == ["move", "capture"]
        # The game itself is unchanged.
        assert "c1" in chain_state.board.stacks

    def test_preview_selection(self, chain_state):
        preview = GameEngine.preview_move(chain_state, "c1")
        assert preview.board == chain_state.board
        assert preview.results == []
        assert preview.next_cells == ["a3"]

    def test_preview_empty_input(self, chain_state):
        preview = GameEngine.preview_move(chain_state, "")
        assert preview.move == ""
        assert preview.next_cells == ["c1"]

    def test_preview_invalid(self, chain_state):
        with pytest.raises(InvalidMoveError) as excinfo:
            GameEngine.preview_move(chain_state, "c1xe3")
        assert excinfo.value.reason == "INVALID_MOVE"


# =============================================================================
# POSITION STACK
# =============================================================================


class TestPositionStack:
    """position_at and undo."""

    def test_position_at(self, opening_state):
        state = GameEngine.apply_move(opening_state, "c3-d4")
        assert GameEngine.position_at(state, 0).board == opening_state.board
        assert GameEngine.position_at(state).last_move == "c3-d4"
        assert GameEngine.position_at(state, -2).current_player == 1

    @pytest.mark.parametrize("idx", [2, -3])
    def test_position_out_of_range(self, opening_state, idx):
        state = GameEngine.apply_move(opening_state, "c3-d4")
        with pytest.raises(InvalidStateError):
            GameEngine.position_at(state, idx)

    def test_undo(self, opening_state):
        state = GameEngine.apply_move(opening_state, "c3-d4")
        state = GameEngine.undo(state)
        assert len(state.stack) == 1
        assert state.board == opening_state.board
        assert state.current_player == 1

    def test_undo_initial_position(self, opening_state):
        with pytest.raises(InvalidStateError):
            GameEngine.undo(opening_state)


# =============================================================================
# SERIALISATION
# =============================================================================


class TestSerialization:
    """Game records survive a JSON round trip."""

    @pytest.fixture
    def played_state(self, opening_state):
        return GameEngine.apply_move(opening_state, "c3-d4")

    def test_round_trip(self, played_state):
        text = GameEngine.serialize(played_state)
        restored = GameEngine.deserialize(text, "lasca")
        assert restored.model_dump() == played_state.model_dump()

    def test_wire_field_names(self, played_state):
        record = json.loads(GameEngine.serialize(played_state))
        entry = record["stack"][-1]
        assert record["gameStatus"] == "active"
        assert record["numPlayers"] == 2
        assert entry["_version"] == LASCA.version
        assert entry["currentPlayer"] == 2
        assert entry["lastMove"] == "c3-d4"
        assert entry["_results"][0]["from"] == "c3"
        assert entry["board"]["stacks"]["d4"] == [{"owner": 1, "rank": 1}]

    def test_restored_game_continues(self, played_state):
        restored = GameEngine.deserialize(GameEngine.serialize(played_state))
        assert GameEngine.get_valid_moves(restored) == ["e5xc3"]

    def test_wrong_engine(self, played_state):
        with pytest.raises(SerializationError):
            GameEngine.deserialize(GameEngine.serialize(played_state), "emergo")

    def test_unknown_game(self, played_state):
        record = json.loads(GameEngine.serialize(played_state))
        record["game"] = "chess"
        with pytest.raises(SerializationError):
            GameEngine.deserialize(json.dumps(record))

    def test_garbage(self):
        with pytest.raises(SerializationError):
            GameEngine.deserialize("not a game record")


# =============================================================================
# MOVE CACHE
# =============================================================================


class TestMoveCache:
    """The engine's catalog cache."""

    def test_cache_hit_matches_fresh_catalog(self, opening_board):
        first = GameEngine.get_catalog(opening_board, 1, LASCA)
        second = GameEngine.get_catalog(opening_board, 1, LASCA)

        assert first == second == build_catalog(opening_board, 1, LASCA)
        assert GameEngine._cache().stats()["hits"] == 1

    def test_players_are_cached_separately(self, opening_board):
        GameEngine.get_catalog(opening_board, 1, LASCA)
        moves = GameEngine.get_catalog(opening_board, 2, LASCA)
        assert str(moves[0]) == "a5-b4"

    def test_cache_can_be_disabled(self, monkeypatch, opening_board):
        monkeypatch.setenv("STACKJUMP_USE_MOVE_CACHE", "false")
        GameEngine.get_catalog(opening_board, 1, LASCA)
        GameEngine.get_catalog(opening_board, 1, LASCA)
        assert GameEngine._cache().stats()["size"] == 0

    def test_lru_eviction(self, monkeypatch, opening_board):
        monkeypatch.setenv("STACKJUMP_MOVE_CACHE_SIZE", "1")
        GameEngine.get_catalog(opening_board, 1, LASCA)
        GameEngine.get_catalog(opening_board, 2, LASCA)
        assert GameEngine._cache().stats()["size"] == 1
