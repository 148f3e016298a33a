"""
Shared fixtures

Component fixtures live in tests/components; site fixtures build a small
pages/components/themes tree under tmp_path.
"""

from pathlib import Path

import pytest

from htmlua.config.settings import AppSettings, PathSettings

COMPONENTS_DIR = Path(__file__).parent / "components"


@pytest.fixture
def components_dir() -> Path:
    return COMPONENTS_DIR


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's HTMLUA_* environment out of the tests"""
    import os
    for key in list(os.environ):
        if key.startswith("HTMLUA_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def site(tmp_path) -> Path:
    """Empty pages/components/themes directories"""
    for name in ("pages", "components", "themes"):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def settings(site) -> AppSettings:
    return AppSettings(
        paths=PathSettings(
            pages=site / "pages",
            components=site / "components",
            themes=site / "themes",
        )
    )
