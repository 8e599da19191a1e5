"""Piece-name, coordinate and position-string conversions.

Positions on the infinite board are dicts mapping a coordinate key
("x,y") to a long piece name such as "queensW" or "kingsB". The compact
position string lists pieces as "<short><x>,<y>" separated by "|",
e.g. "K0,0|Q3,-2|k12,5". Uppercase short names are white pieces,
lowercase short names are black.
"""

from __future__ import annotations

import re

import chess

# Orthodox pieces come straight from python-chess's tables:
# "K" -> "kings", "N" -> "knights", ...
_ORTHODOX_PIECES: dict[str, str] = {
    chess.piece_symbol(piece_type).upper(): chess.piece_name(piece_type) + "s"
    for piece_type in chess.PIECE_TYPES
}

_FAIRY_PIECES: dict[str, str] = {
    "AR": "archbishops",
    "CH": "chancellors",
    "AM": "amazons",
    "HA": "hawks",
    "HU": "huygens",
    "NR": "knightriders",
    "GU": "guards",
    "CE": "centaurs",
    "RC": "royalCentaurs",
    "RQ": "royalQueens",
    "CA": "camels",
    "GI": "giraffes",
    "ZE": "zebras",
    "RO": "roses",
}

_SHORT_TO_TYPE: dict[str, str] = {**_ORTHODOX_PIECES, **_FAIRY_PIECES}
_TYPE_TO_SHORT: dict[str, str] = {v: k for k, v in _SHORT_TO_TYPE.items()}

_COLOR_SUFFIX = {"white": "W", "black": "B"}
_SUFFIX_COLOR = {v: k for k, v in _COLOR_SUFFIX.items()}

_SHORT_PIECE_RE = re.compile(r"^([A-Za-z]+)(-?\d+),(-?\d+)(\+?)$")


def short_to_long_piece(short: str) -> str:
    """Translate a short piece name to its long name.

    Args:
        short: Short name, uppercase for white ("Q", "NR"), lowercase
            for black ("k", "rc").

    Returns:
        Long name with colour suffix, e.g. "queensW" or "royalCentaursB".

    Raises:
        ValueError: If the abbreviation is unknown or mixes case.
    """
    if short.isupper():
        color = "white"
    elif short.islower():
        color = "black"
    else:
        raise ValueError(f"Piece abbreviation must be single-case: {short}")

    piece_type = _SHORT_TO_TYPE.get(short.upper())
    if piece_type is None:
        raise ValueError(f"Unknown piece abbreviation: {short}")
    return piece_type + _COLOR_SUFFIX[color]


def long_to_short_piece(piece: str) -> str:
    """Translate a long piece name back to its short name."""
    color = get_piece_color_from_type(piece)
    short = _TYPE_TO_SHORT.get(piece[:-1])
    if short is None:
        raise ValueError(f"Unknown piece type: {piece}")
    return short if color == "white" else short.lower()


def get_piece_color_from_type(piece: str) -> str:
    """Return "white" or "black" for a long piece name."""
    color = _SUFFIX_COLOR.get(piece[-1:])
    if color is None:
        raise ValueError(f"Piece type has no colour suffix: {piece}")
    return color


def get_key_from_coords(coords: tuple[int, int] | list[int]) -> str:
    """Return the square key "x,y" for integer coordinates."""
    x, y = coords
    return f"{x},{y}"


def get_coords_from_key(key: str) -> tuple[int, int]:
    """Return integer coordinates for a square key "x,y"."""
    try:
        x_str, y_str = key.split(",")
        return int(x_str), int(y_str)
    except ValueError:
        raise ValueError(f"Invalid square key: {key}") from None


def long_to_short_position(
    position: dict[str, str], special_rights: dict[str, bool] | None = None
) -> str:
    """Serialize a position dict into the compact position string.

    Squares holding special rights (castling, pawn double push) get a
    trailing "+".
    """
    special_rights = special_rights or {}
    parts = []
    for key, piece in position.items():
        suffix = "+" if special_rights.get(key) else ""
        parts.append(f"{long_to_short_piece(piece)}{key}{suffix}")
    return "|".join(parts)


def short_to_long_position(
    position_string: str,
) -> tuple[dict[str, str], dict[str, bool]]:
    """Parse a compact position string.

    Returns:
        Tuple of (position dict, special rights dict).

    Raises:
        ValueError: If an entry is malformed or a square repeats.
    """
    position: dict[str, str] = {}
    special_rights: dict[str, bool] = {}
    if not position_string:
        return position, special_rights

    for entry in position_string.split("|"):
        match = _SHORT_PIECE_RE.match(entry)
        if match is None:
            raise ValueError(f"Malformed position entry: {entry}")
        short, x, y, plus = match.groups()
        key = get_key_from_coords((int(x), int(y)))
        if key in position:
            raise ValueError(f"Square {key} occupied twice")
        position[key] = short_to_long_piece(short)
        if plus:
            special_rights[key] = True
    return position, special_rights
