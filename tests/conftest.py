"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _propagate_perfmail_logs() -> None:
    """Keep perfmail loggers propagating so caplog sees structured events."""
    logging.getLogger("perfmail").propagate = True
