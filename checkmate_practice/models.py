"""Shared data models for checkmate practice.

PlacementInstruction is the parser's output consumed by the position
sampler; EngineGameOptions is the contract handed to the game host when
a practice game starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlacementInstruction:
    """Place ``count`` pieces of ``piece_type`` (a long piece name)."""

    count: int
    piece_type: str
    color: str


@dataclass
class SessionState:
    """Practice state owned by PracticeSession."""

    in_practice: bool = False
    undo_legal: bool = False


@dataclass
class VariantOptions:
    """Starting position package for an engine game."""

    starting_position: dict[str, str]
    position_string: str
    special_rights: dict[str, bool] = field(default_factory=dict)
    game_rules: dict = field(default_factory=dict)
    full_move: int = 1


@dataclass
class EngineGameOptions:
    """Everything the host needs to start a game against the built-in engine."""

    event: str
    you_are_color: str
    current_engine: str
    engine_config: dict
    variant_options: VariantOptions
