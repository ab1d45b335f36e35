"""Pytest configuration helpers for the UFL Records project."""

from __future__ import annotations

import pytest

from tests import _ensure_repo_on_path


def pytest_configure(config: pytest.Config) -> None:
    """Make the repository importable before any test module loads."""

    _ensure_repo_on_path()
