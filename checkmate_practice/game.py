"""In-process game record and host for practice games.

PracticeGame is a minimal gamefile: a starting position, the moves
played so far and the game conclusion. It does not check legality;
moves and conclusions are trusted from whoever reports them (the
client's rules engine). InProcessHost starts and unloads PracticeGames
and implements the view hooks PracticeSession calls when undoing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from checkmate_practice.models import EngineGameOptions

TURN_ORDER = ("white", "black")


def get_bare_minimum_game_rules() -> dict:
    """Rules for a practice game: alternate turns, win by checkmate."""
    return {
        "turnOrder": list(TURN_ORDER),
        "winConditions": {"white": ["checkmate"], "black": ["checkmate"]},
    }


def get_victor_and_condition(game_conclusion: str) -> tuple[str | None, str]:
    """Split a conclusion like "white checkmate" into (victor, condition).

    Single-word conclusions such as "aborted" have no victor.
    """
    parts = game_conclusion.split()
    if len(parts) == 1:
        return None, parts[0]
    return parts[0], parts[1]


@dataclass
class PracticeGame:
    """Moves and result of one practice game."""

    starting_position: dict[str, str]
    player_color: str = "white"
    moves: list[tuple[str, str]] = field(default_factory=list)
    game_conclusion: str | bool = False
    viewed_ply: int = 0

    def is_game_over(self) -> bool:
        return self.game_conclusion is not False

    def whose_turn(self) -> str:
        return TURN_ORDER[len(self.moves) % len(TURN_ORDER)]

    def make_move(self, start: str, end: str, conclusion: str | None = None) -> None:
        """Append a move, optionally concluding the game with it.

        Raises:
            ValueError: If the game is already over.
        """
        if self.is_game_over():
            raise ValueError(f"Game is already over: {self.game_conclusion}")
        self.moves.append((start, end))
        self.viewed_ply = len(self.moves)
        if conclusion:
            self.game_conclusion = conclusion

    def current_position(self) -> dict[str, str]:
        """Replay the moves over the starting position. Captures overwrite."""
        position = dict(self.starting_position)
        for start, end in self.moves:
            piece = position.pop(start, None)
            if piece is not None:
                position[end] = piece
        return position

    def rewind_move(self) -> tuple[str, str]:
        """Remove the last move. A rewound game is no longer concluded."""
        if not self.moves:
            raise ValueError("No moves to rewind")
        move = self.moves.pop()
        self.game_conclusion = False
        self.viewed_ply = len(self.moves)
        return move


class InProcessHost:
    """Game host keeping a single PracticeGame in memory.

    ``selected_square`` mirrors the piece the UI client has selected.
    The client sets it; the host only clears it when an undo leaves the
    square empty (reselect_piece) or the game is unloaded.
    """

    def __init__(self, on_unload: Callable[[], None] | None = None) -> None:
        self.on_unload = on_unload
        self.gamefile: PracticeGame | None = None
        self.options: EngineGameOptions | None = None
        self.selected_square: str | None = None

    def start_engine_game(self, options: EngineGameOptions) -> PracticeGame:
        self.options = options
        self.gamefile = PracticeGame(
            starting_position=dict(options.variant_options.starting_position),
            player_color=options.you_are_color,
        )
        return self.gamefile

    def unload_game(self) -> None:
        self.gamefile = None
        self.options = None
        self.selected_square = None
        if self.on_unload is not None:
            self.on_unload()

    def get_gamefile(self) -> PracticeGame | None:
        return self.gamefile

    def is_our_turn(self) -> bool:
        game = self.gamefile
        return game is not None and game.whose_turn() == game.player_color

    def is_our_color(self, color: str) -> bool:
        return self.gamefile is not None and self.gamefile.player_color == color

    def clear_animations(self) -> None:
        # Nothing animates in-process
        pass

    def view_front(self, gamefile: PracticeGame) -> None:
        gamefile.viewed_ply = len(gamefile.moves)

    def rewind_move(self, gamefile: PracticeGame) -> None:
        gamefile.rewind_move()

    def reselect_piece(self) -> None:
        """Drop the selection if its piece was rewound off its square."""
        if self.selected_square is None or self.gamefile is None:
            return
        if self.selected_square not in self.gamefile.current_position():
            self.selected_square = None
