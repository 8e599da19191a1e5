"""Checkmate practice: random starting positions and practice sessions for infinite chess."""
