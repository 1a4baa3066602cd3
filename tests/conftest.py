"""Shared fixtures."""

# pylint: disable=redefined-outer-name

from pathlib import Path

import pytest

from ordermanager.config import Config


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config pointing at three not-yet-created directories."""
    return Config(
        source_dir=tmp_path / "source",
        target_dir=tmp_path / "target",
        archive_dir=tmp_path / "archive",
    )
