"""
tests/conftest.py
"""
from __future__ import annotations

import shutil
from pathlib import Path
from typing import Generator

import pytest
from flask.testing import FlaskClient

# The single-file app lives here:
from berozgaar.blog import SITE_DIR_DEFAULT, NotFound, app, reset_site


class FakeSource:
    """In-memory content source: path → text, counting every fetch."""

    def __init__(self, files: dict[str, str] | None = None):
        self.files = dict(files or {})
        self.calls: list[str] = []

    def fetch_text(self, path: str) -> str:
        self.calls.append(path)
        if path not in self.files:
            raise NotFound(f"{path} not found", status=404)
        return self.files[path]


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A private copy of the bundled site, safe to edit per test."""
    target = tmp_path / "site"
    shutil.copytree(SITE_DIR_DEFAULT, target)
    return target


@pytest.fixture(autouse=True)
def _configure_app(site_dir: Path) -> Generator[None, None, None]:
    """
    Point the app at the per-test site copy and rebuild the wired
    objects, so no template cache leaks between tests.
    """
    old = dict(app.config)
    app.config.update(
        TESTING=True,
        CONTENT_URL="",
        CONTENT_DIR=str(site_dir),
        SITE_NAME="BerozgaarCoder",
        POSTS_LIMIT=5,
    )
    reset_site()
    yield
    app.config.clear()
    app.config.update(old)
    reset_site()


@pytest.fixture
def client() -> Generator[FlaskClient, None, None]:
    with app.test_client() as client:
        yield client
