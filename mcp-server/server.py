"""MCP server for checkmate practice.

Exposes the practice catalogue, the position generator and a single
practice session via FastMCP. The client reports its own moves and the
engine's replies (with the game conclusion when a move ends the game);
the server tracks undo legality, rewinds on undo and records wins in
data/local_storage.json.
"""

from __future__ import annotations

import random
import sys
from pathlib import Path

# Add project root and mcp-server dir to path for imports
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_MCP_SERVER_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(_PROJECT_ROOT))
sys.path.insert(0, str(_MCP_SERVER_DIR))

from mcp.server.fastmcp import FastMCP

from checkmate_practice.catalogue import (
    VALID_CHECKMATES,
    InvalidCheckmateError,
    difficulty_of,
)
from checkmate_practice.game import InProcessHost, get_victor_and_condition
from checkmate_practice.generator import (
    InfeasiblePlacementError,
    generate_checkmate_starting_position,
)
from checkmate_practice.ledger import CompletionLedger
from checkmate_practice.pieces import get_coords_from_key, long_to_short_position
from checkmate_practice.session import COMMAND_RESTART, COMMAND_UNDO, PracticeSession
from checkmate_practice.storage import LocalStorage

from response_schemas import minify_practice_state  # noqa: E402

mcp = FastMCP("checkmate-practice")

_storage = LocalStorage()
_ledger = CompletionLedger.open(_storage)
_host = InProcessHost()
_session = PracticeSession(_host, _ledger)
_host.on_unload = _session.on_game_unload


def _build_practice_state() -> dict:
    """Build the full practice state dict from the session and host."""
    game = _host.get_gamefile()
    state = {
        "checkmate_id": _session.checkmate_id if _session.in_practice else None,
        "in_practice": _session.in_practice,
        "undo_legal": _session.undo_legal,
        "whose_turn": None,
        "is_game_over": False,
        "game_conclusion": False,
        "ply_count": 0,
        "position": None,
        "position_string": None,
        "moves": [],
    }
    if game is not None:
        position = game.current_position()
        state.update({
            "whose_turn": game.whose_turn(),
            "is_game_over": game.is_game_over(),
            "game_conclusion": game.game_conclusion,
            "ply_count": len(game.moves),
            "position": position,
            "position_string": long_to_short_position(position),
            "moves": list(game.moves),
        })
    return state


def _check_square(key: str) -> str | None:
    """Return an error message if ``key`` is not an "x,y" square key."""
    try:
        get_coords_from_key(key)
    except ValueError as exc:
        return str(exc)
    return None


def _submit_move(start: str, end: str, conclusion: str | None, by_player: bool) -> dict:
    """Apply a reported move and notify the session."""
    game = _host.get_gamefile()
    if game is None or not _session.in_practice:
        return {"error": "No practice game in progress. Call start_practice first."}

    if game.is_game_over():
        return {"error": f"Game is already over: {game.game_conclusion}"}

    if _host.is_our_turn() != by_player:
        side = "player" if by_player else "engine"
        return {"error": f"It is not the {side}'s turn ({game.whose_turn()} to move)"}

    for key in (start, end):
        problem = _check_square(key)
        if problem is not None:
            return {"error": problem}

    if start not in game.current_position():
        return {"error": f"No piece on {start}"}

    if conclusion and get_victor_and_condition(conclusion)[0] is None:
        return {"error": f"Conclusion must name a victor, got: {conclusion}"}

    game.make_move(start, end, conclusion=conclusion)
    if by_player:
        _session.register_human_move()
    else:
        _session.register_engine_move()

    if game.is_game_over():
        _session.on_engine_game_conclude()

    return minify_practice_state(_build_practice_state())


# ---------------------------------------------------------------------------
# Catalogue and generation tools
# ---------------------------------------------------------------------------


@mcp.tool()
def list_checkmates() -> dict:
    """List practice checkmates by difficulty and which are beaten.

    Returns:
        Dict with checkmates (difficulty -> IDs) and completed IDs.
    """
    return {
        "checkmates": {k: list(v) for k, v in VALID_CHECKMATES.items()},
        "completed": list(_ledger.get()),
    }


@mcp.tool()
def generate_position(checkmate_id: str, seed: int | None = None) -> dict:
    """Generate a random starting position without starting a game.

    Args:
        checkmate_id: Practice ID, e.g. '1K1Q1N-1k'.
        seed: Optional random seed for reproducible positions.

    Returns:
        Dict with checkmate_id, difficulty, position and position_string.
    """
    rng = random.Random(seed) if seed is not None else None
    try:
        position = generate_checkmate_starting_position(checkmate_id, rng=rng)
    except (InvalidCheckmateError, InfeasiblePlacementError) as exc:
        return {"error": str(exc)}

    return {
        "checkmate_id": checkmate_id,
        "difficulty": difficulty_of(checkmate_id),
        "position": position,
        "position_string": long_to_short_position(position),
    }


# ---------------------------------------------------------------------------
# Session tools
# ---------------------------------------------------------------------------


@mcp.tool()
def start_practice(checkmate_id: str) -> dict:
    """Start a checkmate practice game. The player is white.

    Any game already loaded is unloaded first.

    Args:
        checkmate_id: Practice ID from list_checkmates.

    Returns:
        Practice state with the generated starting position.
    """
    try:
        difficulty_of(checkmate_id)
    except InvalidCheckmateError as exc:
        return {"error": str(exc)}

    if _host.get_gamefile() is not None:
        _host.unload_game()

    try:
        _session.start(checkmate_id)
    except InfeasiblePlacementError as exc:
        return {"error": str(exc)}

    return minify_practice_state(_build_practice_state())


@mcp.tool()
def play_move(start: str, end: str, conclusion: str | None = None) -> dict:
    """Report a move played by the player.

    Args:
        start: Square key the piece moved from, e.g. '0,0'.
        end: Square key the piece moved to.
        conclusion: Game conclusion if this move ended the game,
            e.g. 'white checkmate' or 'draw stalemate'.

    Returns:
        Updated practice state.
    """
    return _submit_move(start, end, conclusion, by_player=True)


@mcp.tool()
def engine_move(start: str, end: str, conclusion: str | None = None) -> dict:
    """Report the engine's reply.

    Args:
        start: Square key the piece moved from.
        end: Square key the piece moved to.
        conclusion: Game conclusion if this move ended the game.

    Returns:
        Updated practice state.
    """
    return _submit_move(start, end, conclusion, by_player=False)


@mcp.tool()
def undo_move() -> dict:
    """Take back the player's last move and the engine's reply.

    Returns:
        Practice state with 'undone' telling whether anything was rewound.
    """
    undone = _session.handle_command(COMMAND_UNDO)
    state = minify_practice_state(_build_practice_state())
    state["undone"] = bool(undone)
    return state


@mcp.tool()
def restart_practice() -> dict:
    """Restart the current checkmate with a freshly generated position.

    Returns:
        Practice state of the new game, or an error when not practising.
    """
    if not _session.in_practice:
        return {"error": "No practice game in progress to restart."}
    _session.handle_command(COMMAND_RESTART)
    return minify_practice_state(_build_practice_state())


@mcp.tool()
def get_practice_state() -> dict:
    """Get the current practice state."""
    return minify_practice_state(_build_practice_state())


@mcp.tool()
def get_completed_checkmates() -> dict:
    """List the beaten practice checkmates."""
    return {"completed": list(_ledger.get())}


@mcp.tool()
def erase_progress() -> dict:
    """Delete all checkmate practice progress."""
    _ledger.erase()
    return {"message": "Deleted all checkmate practice progress.", "completed": []}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run()
