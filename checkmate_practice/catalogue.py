"""Checkmate practice catalogue.

Each checkmate ID encodes the white material and the lone black royal,
e.g. "1K1Q1N-1k" is king, queen and knight against a king. IDs are
grouped into fixed difficulty buckets.
"""

from __future__ import annotations

VALID_CHECKMATES: dict[str, list[str]] = {
    "easy": [
        "2Q-1k",
        "3R-1k",
        "1Q1R1B-1k",
        "1Q1R1N-1k",
        "1K2R-1k",
        "1Q1CH-1k",
        "2CH-1k",
        "3B3B-1k",
        "1K2B2B-1k",
        "3AR-1k",
        "1K1AM-1k",
    ],
    "medium": [
        "1K1Q1B-1k",
        "1K1Q1N-1k",
        "1Q1B1B-1k",
        "1Q1B1N-1k",
        "1Q2N-1k",
        "1K1N2B1B-1k",
        "1K2N1B1B-1k",
        "1K1R1B1B-1k",
        "1K1R1N1B-1k",
        "1K1AR1R-1k",
        "1K2AR-1k",
        "2AM-1rc",
    ],
    "hard": [
        "2R1N1P-1k",
        "1K1R2N-1k",
        "2K1R-1k",
        "1K2N6B-1k",
        "1K1B2HA-1k",
        "1K1CH1N-1k",
        "5HU-1k",
    ],
    "insane": [
        "1K1Q1P-1k",
        "1K3HA-1k",
        "1K3NR-1k",
    ],
}

# The black royal may start nearer to the white pieces in these.
CHECKMATES_WITH_BLACK_ROYAL_NEARER: frozenset[str] = frozenset({
    "1K1Q1N-1k",
    "1Q1R1N-1k",
    "1Q2N-1k",
    "1Q1B1N-1k",
    "1K1N2B1B-1k",
    "1K2N1B1B-1k",
    "1K1R1N1B-1k",
    "1K1AR1R-1k",
    "1K1CH1N-1k",
    "1K1R2N-1k",
    "2K1R-1k",
    "1K2N6B-1k",
    "1K1B2HA-1k",
    "1K3HA-1k",
})


class InvalidCheckmateError(ValueError):
    """Raised for a checkmate ID outside the practice catalogue."""


def all_checkmate_ids() -> list[str]:
    """Return every catalogue ID, easiest bucket first."""
    return [cid for bucket in VALID_CHECKMATES.values() for cid in bucket]


def is_valid_checkmate(checkmate_id: str) -> bool:
    return checkmate_id in all_checkmate_ids()


def difficulty_of(checkmate_id: str) -> str:
    """Return the difficulty bucket of a checkmate ID.

    Raises:
        InvalidCheckmateError: If the ID is not in the catalogue.
    """
    for difficulty, bucket in VALID_CHECKMATES.items():
        if checkmate_id in bucket:
            return difficulty
    raise InvalidCheckmateError(
        f"User tried to play invalid checkmate practice: {checkmate_id}"
    )


def is_black_royal_nearer(checkmate_id: str) -> bool:
    return checkmate_id in CHECKMATES_WITH_BLACK_ROYAL_NEARER
