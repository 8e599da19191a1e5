"""Shared test fixtures.

Fixtures:
    storage          - LocalStorage backed by a file in tmp_path.
    ledger           - CompletionLedger on that storage, already loaded.
    host             - MagicMock wrapping a real InProcessHost, so calls
                       both take effect and are recorded in mock_calls.
    session          - PracticeSession on host and ledger with a seeded rng.
    enable_validation - Sets CHECKMATE_PRACTICE_VALIDATE=1 so the tests'
                        validate_response calls check tool responses.
"""

from __future__ import annotations

import os
import random
from unittest.mock import MagicMock

import pytest

from checkmate_practice.game import InProcessHost
from checkmate_practice.ledger import CompletionLedger
from checkmate_practice.session import PracticeSession
from checkmate_practice.storage import LocalStorage


# ---------------------------------------------------------------------------
# Persistence fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture()
def ledger(storage) -> CompletionLedger:
    return CompletionLedger.open(storage)


# ---------------------------------------------------------------------------
# Session fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def real_host() -> InProcessHost:
    return InProcessHost()


@pytest.fixture()
def host(real_host) -> MagicMock:
    """Recording wrapper around the in-process host."""
    return MagicMock(wraps=real_host)


@pytest.fixture()
def session(host, real_host, ledger) -> PracticeSession:
    practice = PracticeSession(host, ledger, rng=random.Random(1234))
    real_host.on_unload = practice.on_game_unload
    return practice


# ---------------------------------------------------------------------------
# Schema validation fixture
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def enable_validation():
    """Set CHECKMATE_PRACTICE_VALIDATE=1 for the test session.

    Restores the original env var value after the test.
    """
    original = os.environ.get("CHECKMATE_PRACTICE_VALIDATE")
    os.environ["CHECKMATE_PRACTICE_VALIDATE"] = "1"
    yield
    if original is None:
        os.environ.pop("CHECKMATE_PRACTICE_VALIDATE", None)
    else:
        os.environ["CHECKMATE_PRACTICE_VALIDATE"] = original
