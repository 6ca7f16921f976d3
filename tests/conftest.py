"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def log():
    """Stand-in for a structlog bound logger."""
    return MagicMock()
