import logging
import random

import pytest

from chattris.board import Board, GarbageFill, LineClear, render_grid
from chattris.config import Control, GameConfig
from chattris.game import Game, GameStatus
from chattris.scoring import level_for_score
from chattris.tetromino import Tetromino, TetrominoType

from conftest import i_piece_wall


def _start_with(game, shape):
    """Begin ``game`` and replace its first piece with ``shape`` at spawn."""

    game.begin()
    game.active = None
    assert game._spawn(shape)
    return game.active


def test_begin_opens_session_and_spawns(make_game, presenter):
    game = make_game()
    assert game.status is GameStatus.NOT_STARTED
    game.begin()
    assert game.running
    assert game.active is not None
    assert presenter.sessions == [f"session-{game.game_id}"]
    session_id, state = presenter.snapshots[-1]
    assert session_id == presenter.sessions[0]
    assert state.next_piece == game.queue.peek().value
    assert not state.game_over


def test_o_piece_spawns_centred_and_stops_at_left_wall(make_game):
    game = make_game()
    piece = _start_with(game, TetrominoType.O)
    # ceil(10 / 2) - 2, top aligned on a 16 row board
    assert piece.position == (14, 3)
    assert [game.move("left") for _ in range(3)] == [True, True, True]
    assert game.move("left") is False
    assert game.active.position == (14, 0)


def test_unknown_direction_is_a_programming_error(make_game):
    game = make_game()
    game.begin()
    with pytest.raises(ValueError):
        game.move("up")


def test_rotation_rejected_against_wall(make_game):
    game = make_game()
    game.begin()
    game.active = Tetromino(TetrominoType.I, rotation=0, position=(8, -2))
    assert game.rotate() is False
    assert game.active.rotation == 0
    game.active = Tetromino(TetrominoType.I, rotation=0, position=(8, 2))
    assert game.rotate() is True
    assert game.active.rotation == 1


def test_gravity_moves_piece_down(make_game):
    game = make_game()
    piece = _start_with(game, TetrominoType.T)
    row = piece.position[0]
    game.tick()
    assert game.active is piece
    assert piece.position[0] == row - 1


def test_four_lines_at_level_one_score_1200(make_game):
    game = make_game()
    game.begin()
    game.history.extend(i_piece_wall(4))
    game.active = Tetromino(TetrominoType.I, rotation=0, position=(0, -2))
    assert game.level == 1

    game.tick()

    assert game.score == 1200
    assert [p for p in game.history if isinstance(p, LineClear)] == [LineClear(0)] * 4
    assert not game.board().grid.any()
    # Level is recomputed from the new score but the clear used the old one.
    assert game.level == level_for_score(1200)
    assert game.active is not None


def test_hard_drop_bonus_and_clear_share_the_captured_level(make_game):
    game = make_game()
    game.begin()
    game.history.extend(i_piece_wall(4))
    game.active = Tetromino(TetrominoType.I, rotation=0, position=(10, -2))

    assert game.drop() is True

    assert game.score == 10 + 1200
    assert game.active is None


def test_drop_without_active_piece_is_a_noop(make_game, presenter):
    game = make_game()
    game.begin()
    assert game.drop() is True
    history = list(game.history)
    score = game.score
    frames = len(presenter.snapshots)
    assert game.drop() is False
    assert game.drop() is False
    assert game.history == history
    assert game.score == score
    assert len(presenter.snapshots) == frames
    game.tick()
    assert game.active is not None


def test_hold_only_once_per_piece(make_game):
    game = make_game()
    first = _start_with(game, TetrominoType.T).shape
    upcoming = game.queue.peek()

    assert game.hold() is True
    assert game.held is first
    assert game.active.shape is upcoming
    assert game.active.position[0] == game.config.height - len(game.active.matrix)

    second = game.active.shape
    assert game.hold() is False
    assert game.held is first
    assert game.active.shape is second


def test_hold_swaps_with_held_piece_after_lock(make_game):
    game = make_game()
    _start_with(game, TetrominoType.T)
    game.hold()
    dropped = game.active.shape
    game.drop()
    assert game.history[-1].shape is dropped
    game.tick()
    spawned = game.active.shape
    assert game.hold_used is False
    assert game.hold() is True
    assert game.active.shape is TetrominoType.T
    assert game.held is spawned


def test_spawn_top_out_ends_game_once(make_game, lifecycle, presenter):
    game = make_game()
    for col in range(1, 5):
        game.history.append(Tetromino(TetrominoType.I, rotation=0, position=(12, col)))
    game.begin()

    assert game.game_over
    assert game.active is None
    assert lifecycle.ended == [(game.game_id, 0, "U1")]
    assert presenter.snapshots[-1][1].game_over
    assert game.stop() is False
    assert len(lifecycle.ended) == 1


def test_stop_freezes_game(make_game, lifecycle, presenter, clock):
    game = make_game()
    game.begin()
    clock.advance(5)
    assert game.stop() is True
    assert game.status is GameStatus.ENDED
    assert lifecycle.ended == [(game.game_id, game.score, "U1")]
    frames = len(presenter.snapshots)
    state = presenter.snapshots[-1][1]
    assert state.game_over
    assert state.duration_ms == 5000

    game.tick()
    game.receive_garbage(2)
    assert game.move("left") is False
    assert len(presenter.snapshots) == frames
    assert not any(isinstance(p, GarbageFill) for p in game.history)


def test_lock_out_above_the_top_ends_game(make_game, lifecycle):
    game = make_game()
    game.begin()
    height = game.config.height
    game.history.append(Tetromino(TetrominoType.O, position=(height - 3, 3)))
    game.active = Tetromino(TetrominoType.O, position=(height - 1, 3))
    game.tick()
    assert game.game_over
    assert len(lifecycle.ended) == 1


def test_untouched_garbage_never_scores(make_game):
    game = make_game()
    game.begin()
    game.receive_garbage(2)
    gap = game.gap_column
    col = 0 if gap >= 2 else gap + 1
    game.active = Tetromino(TetrominoType.O, position=(2, col))
    game.tick()
    assert game.score == 0
    assert not any(isinstance(p, LineClear) for p in game.history)


def test_filling_the_garbage_gap_scores(make_game):
    game = make_game()
    game.begin()
    game.receive_garbage(1)
    # A vertical I fills matrix column 2.
    game.active = Tetromino(TetrominoType.I, rotation=0, position=(0, game.gap_column - 2))
    game.tick()
    assert game.score == 40
    assert game.history[-1] == LineClear(0)


def test_structurally_full_garbage_row_is_skipped(make_game, monkeypatch):
    game = make_game()
    game.begin()
    board = Board()
    board.insert_garbage(0)
    board.set_cell(0, 0, board.get_cell(0, 1))
    monkeypatch.setattr(game, "board", lambda: board)
    assert game._clear_lines() == 0


def test_garbage_lifts_active_piece(make_game):
    game = make_game()
    piece = _start_with(game, TetrominoType.T)
    for _ in range(5):
        game.tick()
    row = piece.position[0]
    game.receive_garbage(3)
    assert piece.position[0] == row + 3
    assert game.history[-3:] == [GarbageFill(game.gap_column)] * 3


def test_render_is_idempotent(make_game):
    game = make_game()
    game.begin()
    for _ in range(30):
        game.tick()
    first = game.render_state()
    second = game.render_state()
    assert first.grid == second.grid
    assert render_grid(Board.replay(game.history), game.active) == first.grid


def test_score_monotonic_and_level_derived():
    rng = random.Random(11)
    game = Game(GameConfig(seed=11))
    game.begin()
    controls = [Control.LEFT, Control.RIGHT, Control.ROTATE, Control.DOWN, Control.HOLD, Control.TICK]
    last = 0
    for _ in range(2000):
        if game.game_over:
            break
        game.apply(rng.choice(controls))
        assert game.score >= last
        assert game.level == level_for_score(game.score)
        last = game.score


def test_presenter_failures_do_not_touch_state(caplog):
    class Broken:
        def create_session(self, config):
            raise RuntimeError("no chat")

        def snapshot(self, session_id, state):
            raise RuntimeError("boom")

    game = Game(GameConfig(seed=1), presenter=Broken())
    with caplog.at_level(logging.ERROR, logger="chattris.game"):
        game.begin()
        column = game.active.position[1]
        assert game.move("right") is True
    assert game.session_id == game.game_id
    assert game.active.position[1] == column + 1
    assert "boom" in caplog.text


def test_lifecycle_failure_is_logged(caplog):
    class Broken:
        def on_ended(self, game_id, final_score, user):
            raise RuntimeError("db down")

    game = Game(GameConfig(seed=1), lifecycle=Broken())
    game.begin()
    with caplog.at_level(logging.ERROR, logger="chattris.game"):
        assert game.stop() is True
    assert game.game_over
    assert "db down" in caplog.text


def test_end_listeners_run_once_even_if_one_fails(caplog):
    calls = []

    def broken():
        raise RuntimeError("listener down")

    game = Game(GameConfig(seed=1))
    game.add_end_listener(broken)
    game.add_end_listener(lambda: calls.append(game.status))
    game.begin()
    with caplog.at_level(logging.ERROR, logger="chattris.game"):
        game.stop()
        game.stop()
    assert calls == [GameStatus.ENDED]
    assert "listener down" in caplog.text


def test_start_delay_countdown_blocks_input(make_game, clock):
    game = make_game(start_delay_ms=3000)
    game.begin()
    assert game.render_state().starting_in_ms == 3000
    assert game.duration_ms == 0
    assert game.move("left") is False
    clock.advance(3)
    assert game.render_state().starting_in_ms is None
    assert game.move("left") is True


def test_level_changed_reports_once(make_game):
    game = make_game()
    assert game.level_changed() is False
    game.score = 40
    assert game.level_changed() is True
    assert game.level_changed() is False


def test_malformed_config_fails_fast():
    with pytest.raises(ValueError):
        GameConfig(width=2)
    with pytest.raises(ValueError):
        GameConfig(start_delay_ms=-1)
