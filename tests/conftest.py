"""
Pytest configuration and fixtures for rhocontracts tests.
"""

from __future__ import annotations

import os
from typing import Generator

import pytest

from rhocontracts.config import reset_config


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test against the default configuration."""
    for key in list(os.environ):
        if key.startswith("RHOCONTRACTS_"):
            monkeypatch.delenv(key)
    reset_config()

    yield

    reset_config()
