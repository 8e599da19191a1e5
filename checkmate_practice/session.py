"""Checkmate practice session state machine.

A session is Idle until start() launches a practice game against the
built-in engine, and Active until the game is unloaded. While Active it
decides when the player may undo, rewinds moves through the game host,
restarts the same checkmate on request and records wins in the
completion ledger.
"""

from __future__ import annotations

import random
import sys
from dataclasses import replace
from typing import Callable, Protocol

from checkmate_practice.game import get_bare_minimum_game_rules, get_victor_and_condition
from checkmate_practice.generator import generate_checkmate_starting_position
from checkmate_practice.ledger import CompletionLedger
from checkmate_practice.models import EngineGameOptions, SessionState, VariantOptions
from checkmate_practice.pieces import long_to_short_position

_EVENT_NAME = "Infinite chess checkmate practice"
_ENGINE_NAME = "engineCheckmatePractice"
_ENGINE_TIME_LIMIT_PER_MOVE_MILLIS = 500
_PLAYER_COLOR = "white"

COMMAND_UNDO = "undo"
COMMAND_RESTART = "restart"


class SequencingError(RuntimeError):
    """Raised when a session callback fires in a state that forbids it."""


class GameHost(Protocol):
    """Game lifecycle and view operations a session drives."""

    def start_engine_game(self, options: EngineGameOptions): ...

    def unload_game(self) -> None: ...

    def get_gamefile(self): ...

    def is_our_turn(self) -> bool: ...

    def is_our_color(self, color: str) -> bool: ...

    def clear_animations(self) -> None: ...

    def view_front(self, gamefile) -> None: ...

    def rewind_move(self, gamefile) -> None: ...

    def reselect_piece(self) -> None: ...


def _log(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


class PracticeSession:
    """Owns SessionState for checkmate practice games."""

    def __init__(
        self,
        host: GameHost,
        ledger: CompletionLedger,
        on_undo_legal_change: Callable[[bool], None] | None = None,
        rng: random.Random | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """
        Args:
            host: Game host that starts, unloads and rewinds games.
            ledger: Where won checkmates are recorded.
            on_undo_legal_change: Called with every new undo legality,
                e.g. to enable or disable an undo button.
            rng: Random source for position generation.
            max_attempts: Retry cap passed to the position generator.
        """
        self._host = host
        self._ledger = ledger
        self._on_undo_legal_change = on_undo_legal_change
        self._rng = rng
        self._max_attempts = max_attempts
        self._state = SessionState()
        self._checkmate_id: str | None = None
        self._listening = False

    @property
    def state(self) -> SessionState:
        return replace(self._state)

    @property
    def in_practice(self) -> bool:
        return self._state.in_practice

    @property
    def undo_legal(self) -> bool:
        return self._state.undo_legal

    @property
    def checkmate_id(self) -> str | None:
        return self._checkmate_id

    @property
    def listening(self) -> bool:
        """Whether undo/restart commands are currently accepted."""
        return self._listening

    def _set_undo_legal(self, value: bool) -> None:
        self._state.undo_legal = value
        if self._on_undo_legal_change is not None:
            self._on_undo_legal_change(value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, checkmate_id: str) -> EngineGameOptions:
        """Start a checkmate practice game.

        The position is generated first, so an invalid ID leaves the
        session untouched.

        Returns:
            The options the engine game was started with.

        Raises:
            InvalidCheckmateError: If the ID is not in the catalogue.
        """
        starting_position = generate_checkmate_starting_position(
            checkmate_id, rng=self._rng, max_attempts=self._max_attempts
        )
        _log("Loading practice checkmate game.")
        self._checkmate_id = checkmate_id
        self._state.in_practice = True
        self._set_undo_legal(False)
        self._listening = True

        special_rights: dict[str, bool] = {}
        options = EngineGameOptions(
            event=_EVENT_NAME,
            you_are_color=_PLAYER_COLOR,
            current_engine=_ENGINE_NAME,
            engine_config={
                "checkmateSelectedID": checkmate_id,
                "engineTimeLimitPerMoveMillis": _ENGINE_TIME_LIMIT_PER_MOVE_MILLIS,
            },
            variant_options=VariantOptions(
                starting_position=starting_position,
                position_string=long_to_short_position(starting_position, special_rights),
                special_rights=special_rights,
                game_rules=get_bare_minimum_game_rules(),
                full_move=1,
            ),
        )
        self._host.start_engine_game(options)
        return options

    def on_game_unload(self) -> None:
        """Leave practice. Pending undo legality and commands are dropped."""
        self._listening = False
        self._state.in_practice = False
        self._set_undo_legal(False)

    # ------------------------------------------------------------------
    # Move notifications
    # ------------------------------------------------------------------

    def register_human_move(self) -> None:
        """Called after the player submitted a move."""
        if not self._state.in_practice:
            return

        gamefile = self._host.get_gamefile()
        game_over = gamefile.is_game_over()
        if not self._state.undo_legal and game_over and len(gamefile.moves) > 0:
            # The move ended the game, let the player take it back
            self._set_undo_legal(True)
        elif self._state.undo_legal and not game_over:
            # No undo while the engine thinks
            self._set_undo_legal(False)

    def register_engine_move(self) -> None:
        """Called after the engine submitted a move."""
        if not self._state.in_practice:
            return

        gamefile = self._host.get_gamefile()
        if not self._state.undo_legal and len(gamefile.moves) > 1:
            self._set_undo_legal(True)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def undo_move(self) -> bool:
        """Take back the player's last move (and the engine's reply).

        Returns:
            True if moves were rewound.
        """
        if not self._state.in_practice:
            _log("Undoing moves is currently not allowed for non-practice mode games")
            return False

        gamefile = self._host.get_gamefile()
        our_turn = self._host.is_our_turn()
        ply_count = len(gamefile.moves)
        # ply_count > 0 catches a stalemate on the very first move
        if not (self._state.undo_legal and (our_turn or gamefile.is_game_over()) and ply_count > 0):
            _log("Undo ignored: undoing is not legal in the current position")
            return False

        self._set_undo_legal(False)
        # Finish animations first, they may reference rewound moves
        self._host.clear_animations()
        self._host.view_front(gamefile)

        # On our turn the engine has replied, so rewind its move too
        if our_turn and ply_count > 1:
            self._host.rewind_move(gamefile)
        self._host.rewind_move(gamefile)
        self._host.reselect_piece()
        return True

    def restart(self, checkmate_id: str | None = None) -> EngineGameOptions | None:
        """Unload the current game and start a fresh one.

        Args:
            checkmate_id: Checkmate to start. Defaults to the one being played.

        Returns:
            The new game's options, or None when not in practice.
        """
        if not self._state.in_practice:
            _log("Restarting games is currently not supported for non-practice mode games")
            return None

        checkmate_id = checkmate_id or self._checkmate_id
        self._host.unload_game()
        return self.start(checkmate_id)

    def handle_command(self, command: str):
        """Dispatch a UI command ("undo" or "restart")."""
        if not self._listening:
            _log(f"Ignoring '{command}' command: no practice game is loaded")
            return None
        if command == COMMAND_UNDO:
            return self.undo_move()
        if command == COMMAND_RESTART:
            return self.restart()
        raise ValueError(f"Unknown practice command: {command}")

    # ------------------------------------------------------------------
    # Conclusion
    # ------------------------------------------------------------------

    def on_engine_game_conclude(self) -> bool:
        """Called when an engine game ends. Records a win in the ledger.

        Returns:
            True if the player won a practice game.

        Raises:
            SequencingError: If the game has no conclusion or no victor.
        """
        if not self._state.in_practice:
            return False

        game_conclusion = self._host.get_gamefile().game_conclusion
        if game_conclusion is False:
            raise SequencingError(
                "Game conclusion is false, should not have called on_engine_game_conclude()"
            )

        victor, _condition = get_victor_and_condition(game_conclusion)
        if victor is None:
            raise SequencingError(
                "Victor should never be undefined when concluding an engine game."
            )
        if not self._host.is_our_color(victor):
            return False

        self._ledger.mark_beaten(self._checkmate_id)
        return True
