"""Shared pytest fixtures for notarize-app tests."""
from __future__ import annotations

import plistlib
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from notarize_app.config import Credentials, NotarizeConfig
from tests.doubles import CREDENTIALS, RecordingUI


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CI and developer settings out of the tests."""
    for name in (
        "GITHUB_ACTIONS",
        "GITHUB_OUTPUT",
        "APPLE_ID",
        "APPLE_APP_SPECIFIC_PASSWORD",
        "APPLE_TEAM_ID",
        "NOTARIZE_PRODUCT_PATH",
        "NOTARIZE_ARTIFACT_PATH",
        "NOTARIZE_PRIMARY_BUNDLE_ID",
        "NOTARIZE_TIMEOUT",
        "NOTARIZE_STAPLE",
        "NOTARIZE_VERBOSE",
        "NOTARIZE_TOOL",
        "NOTARIZE_TEMP_DIR",
    ):
        # Recorded even when unset, so values loaded from a .env are undone
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def credentials() -> Credentials:
    return CREDENTIALS


@pytest.fixture
def make_product(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating an .app bundle, optionally with an Info.plist."""

    def _make(name: str = "MyApp.app", bundle_id: str | None = "com.example.myapp") -> Path:
        product = tmp_path / name
        contents = product / "Contents"
        contents.mkdir(parents=True)
        if bundle_id is not None:
            with open(contents / "Info.plist", "wb") as f:
                plistlib.dump({"CFBundleIdentifier": bundle_id, "CFBundleName": "MyApp"}, f)
        return product

    return _make


@pytest.fixture
def product(make_product: Callable[..., Path]) -> Path:
    return make_product()


@pytest.fixture
def make_config(tmp_path: Path, product: Path) -> Callable[..., NotarizeConfig]:
    """Factory for NotarizeConfig pointing at the default product."""

    def _make(**overrides: Any) -> NotarizeConfig:
        values: dict[str, Any] = {
            "product_path": product,
            "credentials": CREDENTIALS,
            "temp_dir": tmp_path / "tmp",
            "timeout_minutes": 5,
            "log_dir": tmp_path / "log",
        }
        values.update(overrides)
        return NotarizeConfig(**values)

    return _make


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()
