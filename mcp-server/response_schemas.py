"""Response schemas and minification for MCP tool responses.

Practice state responses carry the move list as a compact numbered
string ("1.0,0>3,3 12,4>12,5 2.…") instead of a list of pairs, and the
position as a compact position string instead of a dict.
"""

from __future__ import annotations

import os


# ---------------------------------------------------------------------------
# Minification functions
# ---------------------------------------------------------------------------


def minify_practice_state(state: dict) -> dict:
    """Minify a full practice state dict for MCP response.

    Args:
        state: Full state as produced by the server's _build_practice_state.

    Returns:
        Dict with the move list compacted to a string and the position
        dict dropped in favour of position_string.
    """
    result = {}

    for key in (
        "checkmate_id", "in_practice", "undo_legal", "whose_turn",
        "is_game_over", "game_conclusion", "ply_count", "position_string",
    ):
        if key in state:
            result[key] = state[key]

    moves = state.get("moves", [])
    if isinstance(moves, list):
        result["move_list"] = _moves_to_string(moves)
    else:
        result["move_list"] = moves

    # Removed fields: position, moves

    return result


# ---------------------------------------------------------------------------
# Helper: move list to string
# ---------------------------------------------------------------------------


def _moves_to_string(moves: list) -> str:
    """Convert [(start, end), ...] to '1.0,0>3,3 12,4>12,5 2.…'."""
    if not moves:
        return ""

    parts = []
    for i, (start, end) in enumerate(moves):
        move = f"{start}>{end}"
        if i % 2 == 0:
            parts.append(f"{i // 2 + 1}.{move}")
        else:
            parts.append(move)

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Validation schemas (dict-based)
# ---------------------------------------------------------------------------

PRACTICE_STATE_SCHEMA = {
    "checkmate_id": (str, type(None)),
    "in_practice": bool,
    "undo_legal": bool,
    "whose_turn": (str, type(None)),
    "is_game_over": bool,
    "game_conclusion": (str, bool),
    "ply_count": int,
    "position_string": (str, type(None)),
    "move_list": str,
}

POSITION_SCHEMA = {
    "checkmate_id": str,
    "difficulty": str,
    "position": dict,
    "position_string": str,
}

CATALOGUE_SCHEMA = {
    "checkmates": dict,
    "completed": list,
}

ERROR_SCHEMA = {
    "error": str,
}


def validate_response(response: dict, schema: dict) -> list[str]:
    """Validate a response dict against a schema.

    Only runs when CHECKMATE_PRACTICE_VALIDATE=1 env var is set.

    Args:
        response: Response dict to validate.
        schema: Dict mapping key names to expected types (or tuple of types).

    Returns:
        List of validation error strings (empty = valid).
    """
    if os.environ.get("CHECKMATE_PRACTICE_VALIDATE") != "1":
        return []

    errors = []

    if not isinstance(response, dict):
        errors.append(f"Response is not a dict: {type(response).__name__}")
        return errors

    for key, expected_types in schema.items():
        if key not in response:
            errors.append(f"Missing key: {key}")
            continue

        value = response[key]
        if isinstance(expected_types, tuple):
            if not isinstance(value, expected_types):
                type_names = ", ".join(t.__name__ for t in expected_types)
                errors.append(
                    f"Key '{key}': expected ({type_names}), "
                    f"got {type(value).__name__}"
                )
        else:
            if not isinstance(value, expected_types):
                errors.append(
                    f"Key '{key}': expected {expected_types.__name__}, "
                    f"got {type(value).__name__}"
                )

    return errors
