#!/usr/bin/env python3
"""Random starting positions for checkmate practice.

White material is scattered in a small square around the origin; the
black royal is dropped in a far band to the right, on a square no white
piece can see. Every draw is reject-and-retry until it satisfies the
placement rules.

Usage:
    python -m checkmate_practice.generator generate 1K1Q1N-1k
    python -m checkmate_practice.generator generate 2Q-1k --seed 42 --short
    python -m checkmate_practice.generator list
    python -m checkmate_practice.generator erase
"""

from __future__ import annotations

import argparse
import json
import os
import random
import re
import sys

from checkmate_practice.catalogue import (
    VALID_CHECKMATES,
    InvalidCheckmateError,
    is_black_royal_nearer,
    is_valid_checkmate,
)
from checkmate_practice.models import PlacementInstruction
from checkmate_practice.pieces import (
    get_coords_from_key,
    get_key_from_coords,
    get_piece_color_from_type,
    long_to_short_position,
    short_to_long_piece,
)

_CHECKMATE_ID_RE = re.compile(r"^(?:[0-9]+[a-zA-Z]+)+-1[a-zA-Z]+$")
_GROUP_RE = re.compile(r"([0-9]+)([a-zA-Z]+)")

# White pieces: each axis uniform over [-half, half]
_WHITE_HALF_WIDTH = 5
_WHITE_HALF_WIDTH_NEARER = 3

# Black pieces: x in a 3-wide band to the right, y in a wide band
_BLACK_X_WIDTH = 3
_BLACK_X_OFFSET = 12
_BLACK_X_OFFSET_NEARER = 8
_BLACK_Y_RANGE = (-17, 17)
_BLACK_Y_RANGE_NEARER = (-9, 7)

_PARITY_PIECE = "bishopsW"
_KNIGHTRIDER = "knightridersW"

_MAX_ATTEMPTS_ENV = "CHECKMATE_PRACTICE_MAX_ATTEMPTS"


class PlacementOrderError(RuntimeError):
    """Raised when a white piece is placed after a black piece."""


class InfeasiblePlacementError(RuntimeError):
    """Raised when a piece finds no legal square within the retry cap."""


def _max_attempts_from_env() -> int | None:
    """Read the optional retry cap from the environment.

    Returns:
        Positive cap, or None for unbounded retries.
    """
    raw = os.environ.get(_MAX_ATTEMPTS_ENV)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{_MAX_ATTEMPTS_ENV} must be an integer, got {raw!r}") from None
    return value if value > 0 else None


def parse_checkmate_id(checkmate_id: str) -> list[PlacementInstruction]:
    """Parse a checkmate ID into ordered placement instructions.

    "1K2N-1k" becomes [1 kingsW, 2 knightsW, 1 kingsB]. White groups
    always precede the trailing black royal.

    Args:
        checkmate_id: Compact ID such as "1K1Q1N-1k".

    Returns:
        List of PlacementInstruction in placement order.

    Raises:
        InvalidCheckmateError: If the ID does not follow the grammar or
            names an unknown piece.
    """
    if not _CHECKMATE_ID_RE.match(checkmate_id):
        raise InvalidCheckmateError(f"Malformed checkmate ID: {checkmate_id}")

    instructions = []
    for amount, short in _GROUP_RE.findall(checkmate_id):
        count = int(amount)
        if count == 0:
            raise InvalidCheckmateError(f"Zero piece count in checkmate ID: {checkmate_id}")
        try:
            piece = short_to_long_piece(short)
        except ValueError as exc:
            raise InvalidCheckmateError(f"{exc} (in {checkmate_id})") from None
        instructions.append(
            PlacementInstruction(
                count=count,
                piece_type=piece,
                color=get_piece_color_from_type(piece),
            )
        )
    return instructions


def square_not_in_sight(square: str, position: dict[str, str]) -> bool:
    """Check that no piece in ``position`` can see ``square``.

    A square is in sight when it shares a row, column or diagonal with
    any placed piece, or lies on a knightrider line (slope 2 or 1/2)
    from a placed knightrider.

    Args:
        square: Key of the candidate black square.
        position: Position holding the white pieces placed so far.

    Returns:
        True if the square is safe, False if some piece sees it.
    """
    sx, sy = get_coords_from_key(square)
    for key, piece in position.items():
        x, y = get_coords_from_key(key)
        dx = abs(sx - x)
        dy = abs(sy - y)
        if x == sx or y == sy or dx == dy:
            return False
        if piece == _KNIGHTRIDER and (dx == 2 * dy or 2 * dx == dy):
            return False
    return True


def _place_piece(position, piece, draw, accept, max_attempts) -> str:
    """Draw squares until one is empty and accepted, then place ``piece``."""
    attempts = 0
    while True:
        x, y = draw()
        key = get_key_from_coords((x, y))
        if key not in position and accept(x, y, key):
            position[key] = piece
            return key
        attempts += 1
        if max_attempts is not None and attempts >= max_attempts:
            raise InfeasiblePlacementError(
                f"Could not place {piece} after {attempts} attempts"
            )


def generate_checkmate_starting_position(
    checkmate_id: str,
    rng: random.Random | None = None,
    max_attempts: int | None = None,
) -> dict[str, str]:
    """Generate a random starting position for a checkmate practice ID.

    Args:
        checkmate_id: ID from the practice catalogue.
        rng: Random source. Defaults to the ``random`` module.
        max_attempts: Retry cap per piece. None reads
            CHECKMATE_PRACTICE_MAX_ATTEMPTS, unbounded if unset. Zero or
            negative means unbounded, as it does in the env var.

    Returns:
        Position dict mapping "x,y" keys to long piece names.

    Raises:
        InvalidCheckmateError: If the ID is not in the catalogue.
        PlacementOrderError: If the instructions put white after black.
        InfeasiblePlacementError: If the retry cap is exceeded.
    """
    if not is_valid_checkmate(checkmate_id):
        raise InvalidCheckmateError(
            f"User tried to play invalid checkmate practice: {checkmate_id}"
        )

    rng = rng or random
    if max_attempts is None:
        max_attempts = _max_attempts_from_env()
    elif max_attempts <= 0:
        max_attempts = None

    nearer = is_black_royal_nearer(checkmate_id)
    half = _WHITE_HALF_WIDTH_NEARER if nearer else _WHITE_HALF_WIDTH
    x_offset = _BLACK_X_OFFSET_NEARER if nearer else _BLACK_X_OFFSET
    y_low, y_high = _BLACK_Y_RANGE_NEARER if nearer else _BLACK_Y_RANGE

    def draw_white():
        return rng.randint(-half, half), rng.randint(-half, half)

    def draw_black():
        return rng.randint(x_offset, x_offset + _BLACK_X_WIDTH - 1), rng.randint(y_low, y_high)

    position: dict[str, str] = {}
    black_piece_placed = False
    # Square colour of the first white bishop batch
    bishop_parity = rng.randrange(2)

    for instruction in parse_checkmate_id(checkmate_id):
        piece = instruction.piece_type
        for _ in range(instruction.count):
            if instruction.color == "white":
                if black_piece_placed:
                    raise PlacementOrderError(
                        "Must place all white pieces before placing black pieces."
                    )
                parity = bishop_parity
                _place_piece(
                    position,
                    piece,
                    draw_white,
                    lambda x, y, key: piece != _PARITY_PIECE or (x + y) % 2 == parity,
                    max_attempts,
                )
            else:
                _place_piece(
                    position,
                    piece,
                    draw_black,
                    lambda x, y, key: square_not_in_sight(key, position),
                    max_attempts,
                )
                black_piece_placed = True

        bishop_parity = 1 - bishop_parity

    return position


# ---------------------------------------------------------------------------
# CLI interface
# ---------------------------------------------------------------------------


def _cli_generate(checkmate_id: str, seed: int | None, short: bool) -> None:
    """Print a generated position as JSON."""
    if seed is not None:
        random.seed(seed)
    position = generate_checkmate_starting_position(checkmate_id)
    if short:
        result: dict = {"checkmate_id": checkmate_id, "position_string": long_to_short_position(position)}
    else:
        result = {"checkmate_id": checkmate_id, "position": position}
    print(json.dumps(result, indent=2, ensure_ascii=False))


def _cli_list() -> None:
    """Render the catalogue with beaten markers."""
    from rich.console import Console
    from rich.table import Table

    from checkmate_practice.ledger import CompletionLedger
    from checkmate_practice.storage import LocalStorage

    completed = set(CompletionLedger(LocalStorage()).get())
    table = Table(title="Checkmate Practice")
    table.add_column("Difficulty", style="bold")
    table.add_column("Checkmate")
    table.add_column("Royal nearer", justify="center")
    table.add_column("Beaten", justify="center")
    for difficulty, bucket in VALID_CHECKMATES.items():
        for checkmate_id in bucket:
            table.add_row(
                difficulty,
                checkmate_id,
                "yes" if is_black_royal_nearer(checkmate_id) else "",
                "[green]✓[/green]" if checkmate_id in completed else "",
            )
    Console().print(table)


def _cli_erase() -> None:
    from checkmate_practice.ledger import CompletionLedger
    from checkmate_practice.storage import LocalStorage

    CompletionLedger(LocalStorage()).erase()


def main() -> None:
    """CLI entry point for the position generator."""
    parser = argparse.ArgumentParser(
        description="Checkmate practice position generator"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    generate_parser = subparsers.add_parser("generate", help="Generate a starting position")
    generate_parser.add_argument("checkmate_id", type=str, help="Checkmate ID, e.g. 1K1Q1N-1k")
    generate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    generate_parser.add_argument(
        "--short", action="store_true", help="Print the compact position string"
    )

    subparsers.add_parser("list", help="List the checkmate catalogue")
    subparsers.add_parser("erase", help="Erase all practice progress")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate":
        try:
            _cli_generate(args.checkmate_id, args.seed, args.short)
        except InvalidCheckmateError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(2)
    elif args.command == "list":
        _cli_list()
    elif args.command == "erase":
        _cli_erase()


if __name__ == "__main__":
    main()
