"""Shared test fixtures."""

from pathlib import Path

import pytest
from mdview.config import Config, LiveReloadConfig, ServerConfig
from mdview.session import Session


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """Create the directory holding the served document."""
    docs = tmp_path / "docs"
    docs.mkdir()
    return docs


@pytest.fixture
def root_file(docs_dir: Path) -> Path:
    """Create the root markdown document."""
    path = docs_dir / "a.md"
    path.write_text("# Title\n\n[b](b.md)\n\n![x](img/pic.png)\n")
    return path


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration with default live reload settings."""
    return Config(
        server=ServerConfig(),
        live_reload=LiveReloadConfig(ping_interval=30.0),
    )


@pytest.fixture
def session(root_file: Path) -> Session:
    """Create a push-mode session for the root document."""
    return Session.create(root_file)
