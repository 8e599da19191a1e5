"""Pytest tests for the PracticeSession state machine.

Uses the host/session fixtures from conftest.py: a real InProcessHost
wrapped in a MagicMock so host calls take effect and are recorded.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from checkmate_practice.catalogue import InvalidCheckmateError
from checkmate_practice.ledger import CompletionLedger, LedgerNotLoadedError
from checkmate_practice.pieces import short_to_long_position
from checkmate_practice.session import PracticeSession, SequencingError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _call_names(host: MagicMock) -> list[str]:
    """Names of the host methods called so far, in order."""
    return [c[0] for c in host.mock_calls]


def _play(real_host, session: PracticeSession, by_player: bool, conclusion: str | None = None):
    """Move some piece of the side to move and notify the session."""
    game = real_host.gamefile
    suffix = "W" if by_player else "B"
    start = next(k for k, v in game.current_position().items() if v.endswith(suffix))
    end = f"{100 + len(game.moves)},100"
    game.make_move(start, end, conclusion=conclusion)
    if by_player:
        session.register_human_move()
    else:
        session.register_engine_move()


# ---------------------------------------------------------------------------
# Start and unload
# ---------------------------------------------------------------------------


class TestStart:

    def test_initially_idle(self, session):
        assert session.in_practice is False
        assert session.undo_legal is False
        assert session.listening is False
        assert session.checkmate_id is None

    def test_start_enters_practice(self, session, host, real_host):
        options = session.start("2Q-1k")

        assert session.in_practice is True
        assert session.undo_legal is False
        assert session.listening is True
        assert session.checkmate_id == "2Q-1k"
        host.start_engine_game.assert_called_once_with(options)
        assert real_host.gamefile.player_color == "white"

    def test_engine_game_options(self, session):
        options = session.start("2Q-1k")

        assert options.you_are_color == "white"
        assert options.current_engine == "engineCheckmatePractice"
        assert options.engine_config == {
            "checkmateSelectedID": "2Q-1k",
            "engineTimeLimitPerMoveMillis": 500,
        }
        variant = options.variant_options
        assert variant.full_move == 1
        assert variant.special_rights == {}
        assert variant.game_rules["turnOrder"] == ["white", "black"]
        pieces = sorted(variant.starting_position.values())
        assert pieces == ["kingsB", "queensW", "queensW"]
        assert short_to_long_position(variant.position_string)[0] == variant.starting_position

    def test_invalid_id_leaves_session_idle(self, session, host):
        with pytest.raises(InvalidCheckmateError):
            session.start("7Q-1k")
        assert session.in_practice is False
        host.start_engine_game.assert_not_called()

    def test_start_logs(self, session, capsys):
        session.start("3R-1k")
        assert "Loading practice checkmate game." in capsys.readouterr().err


class TestUnload:

    def test_unload_returns_to_idle(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        assert session.undo_legal is True

        real_host.unload_game()

        assert session.in_practice is False
        assert session.undo_legal is False
        assert session.listening is False

    def test_unload_when_idle(self, session):
        session.on_game_unload()
        assert session.state.in_practice is False
        assert session.state.undo_legal is False

    def test_state_is_a_copy(self, session):
        session.start("2Q-1k")
        state = session.state
        state.in_practice = False
        assert session.in_practice is True


# ---------------------------------------------------------------------------
# Undo legality
# ---------------------------------------------------------------------------


class TestUndoLegality:

    def test_no_undo_while_engine_thinks(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        assert session.undo_legal is False

    def test_engine_reply_allows_undo(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        assert session.undo_legal is True

    def test_next_player_move_revokes_undo(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        _play(real_host, session, by_player=True)
        assert session.undo_legal is False

    def test_game_ending_move_allows_undo(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True, conclusion="white checkmate")
        assert session.undo_legal is True

    def test_notifications_ignored_when_idle(self, session, host):
        session.register_human_move()
        session.register_engine_move()
        assert session.undo_legal is False
        host.get_gamefile.assert_not_called()

    def test_callback_receives_changes(self, host, real_host, ledger):
        changes = MagicMock()
        practice = PracticeSession(host, ledger, on_undo_legal_change=changes)
        practice.start("2Q-1k")
        _play(real_host, practice, by_player=True)
        _play(real_host, practice, by_player=False)
        assert [c.args[0] for c in changes.call_args_list] == [False, True]


# ---------------------------------------------------------------------------
# Undo
# ---------------------------------------------------------------------------


class TestUndo:

    def test_undo_rewinds_player_and_engine_moves(self, session, host, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        host.reset_mock()

        assert session.undo_move() is True

        assert real_host.gamefile.moves == []
        assert session.undo_legal is False
        names = [n for n in _call_names(host) if n not in ("get_gamefile", "is_our_turn")]
        assert names == [
            "clear_animations", "view_front", "rewind_move", "rewind_move", "reselect_piece",
        ]

    def test_undo_game_ending_move(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        _play(real_host, session, by_player=True, conclusion="white checkmate")
        assert session.undo_legal is True

        assert session.undo_move() is True

        game = real_host.gamefile
        assert len(game.moves) == 2
        assert game.is_game_over() is False
        assert game.whose_turn() == "white"

    def test_undo_single_move_stalemate(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True, conclusion="draw stalemate")

        assert session.undo_move() is True
        assert real_host.gamefile.moves == []

    def test_undo_illegal_is_noop(self, session, host, real_host, capsys):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        host.reset_mock()

        assert session.undo_move() is False

        assert len(real_host.gamefile.moves) == 1
        host.rewind_move.assert_not_called()
        assert "Undo ignored" in capsys.readouterr().err

    def test_undo_when_idle(self, session, host, capsys):
        assert session.undo_move() is False
        host.get_gamefile.assert_not_called()
        assert "not allowed for non-practice" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Restart and commands
# ---------------------------------------------------------------------------


class TestRestart:

    def test_restart_same_checkmate(self, session, host, real_host):
        session.start("1K2R-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        host.reset_mock()

        session.restart()

        assert _call_names(host)[:2] == ["unload_game", "start_engine_game"]
        assert session.in_practice is True
        assert session.undo_legal is False
        assert session.checkmate_id == "1K2R-1k"
        assert real_host.gamefile.moves == []

    def test_restart_with_explicit_id(self, session):
        session.start("2Q-1k")
        options = session.restart("3R-1k")
        assert session.checkmate_id == "3R-1k"
        assert sorted(options.variant_options.starting_position.values()) == [
            "kingsB", "rooksW", "rooksW", "rooksW",
        ]

    def test_restart_when_idle(self, session, host, capsys):
        assert session.restart() is None
        host.unload_game.assert_not_called()
        assert "not supported for non-practice" in capsys.readouterr().err


class TestCommands:

    def test_undo_command(self, session, real_host):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False)
        assert session.handle_command("undo") is True
        assert real_host.gamefile.moves == []

    def test_restart_command(self, session, host):
        session.start("2Q-1k")
        session.handle_command("restart")
        host.unload_game.assert_called_once_with()
        assert host.start_engine_game.call_count == 2

    def test_commands_ignored_after_unload(self, session, host, real_host, capsys):
        session.start("2Q-1k")
        real_host.unload_game()
        host.reset_mock()

        assert session.handle_command("restart") is None
        host.unload_game.assert_not_called()
        assert "no practice game is loaded" in capsys.readouterr().err

    def test_unknown_command(self, session):
        session.start("2Q-1k")
        with pytest.raises(ValueError, match="Unknown practice command"):
            session.handle_command("resign")


# ---------------------------------------------------------------------------
# Conclusion
# ---------------------------------------------------------------------------


class TestConclude:

    def test_win_marks_beaten(self, session, real_host, ledger):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True, conclusion="white checkmate")
        assert session.on_engine_game_conclude() is True
        assert ledger.get() == ["2Q-1k"]

    def test_victor_checked_against_host_color(self, session, host, real_host, ledger):
        session.start("2Q-1k")
        real_host.gamefile.player_color = "black"
        _play(real_host, session, by_player=True, conclusion="black checkmate")
        host.reset_mock()

        assert session.on_engine_game_conclude() is True
        host.is_our_color.assert_called_once_with("black")
        assert ledger.get() == ["2Q-1k"]

    def test_loss_not_recorded(self, session, real_host, ledger):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True)
        _play(real_host, session, by_player=False, conclusion="black checkmate")
        assert session.on_engine_game_conclude() is False
        assert ledger.get() == []

    def test_draw_not_recorded(self, session, real_host, ledger):
        session.start("2Q-1k")
        _play(real_host, session, by_player=True, conclusion="draw stalemate")
        assert session.on_engine_game_conclude() is False
        assert ledger.get() == []

    def test_no_conclusion_is_sequencing_fault(self, session, ledger):
        session.start("2Q-1k")
        with pytest.raises(SequencingError, match="Game conclusion is false"):
            session.on_engine_game_conclude()
        assert ledger.get() == []

    def test_no_victor_is_sequencing_fault(self, session, real_host, ledger):
        session.start("2Q-1k")
        real_host.gamefile.game_conclusion = "aborted"
        with pytest.raises(SequencingError, match="Victor"):
            session.on_engine_game_conclude()
        assert ledger.get() == []

    def test_ignored_when_idle(self, session, host):
        assert session.on_engine_game_conclude() is False
        host.get_gamefile.assert_not_called()

    def test_requires_loaded_ledger(self, host, real_host, storage):
        practice = PracticeSession(host, CompletionLedger(storage))
        practice.start("2Q-1k")
        _play(real_host, practice, by_player=True, conclusion="white checkmate")
        with pytest.raises(LedgerNotLoadedError):
            practice.on_engine_game_conclude()
