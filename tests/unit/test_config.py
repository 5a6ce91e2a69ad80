"""Tests for configuration loading and validation."""
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from notarize_app.cli import parse_args
from notarize_app.config import (
    Credentials,
    NotarizeConfig,
    ProjectSettings,
    load_config,
    parse_bool,
    parse_float,
    parse_int,
)
from notarize_app.exceptions import ConfigurationError

PYPROJECT = """
[project]
name = "my-app"

[tool.notarize-app]
primary_bundle_id = "com.example.fromtoml"
timeout = 30
staple = false
tool = "altool"
initial_wait = 5
poll_interval = [10, 20]
log_dir = "build/logs"
max_log_files = 3
"""


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


def write_pyproject(project_dir: Path, content: str = PYPROJECT) -> None:
    (project_dir / "pyproject.toml").write_text(content)


class TestParsers:
    """Test scalar parsing helpers."""

    @pytest.mark.parametrize("value", [True, "true", "1", "YES", " on "])
    def test_parse_bool_true(self, value: object) -> None:
        assert parse_bool(value, "staple") is True

    @pytest.mark.parametrize("value", [False, "false", "0", "No", "off"])
    def test_parse_bool_false(self, value: object) -> None:
        assert parse_bool(value, "staple") is False

    def test_parse_bool_invalid(self) -> None:
        with pytest.raises(ConfigurationError, match="staple must be a boolean"):
            parse_bool("maybe", "staple")

    def test_parse_int(self) -> None:
        assert parse_int(" 42 ", "timeout") == 42
        assert parse_int(7, "timeout") == 7

    @pytest.mark.parametrize("value", ["soon", "1.5", True])
    def test_parse_int_invalid(self, value: object) -> None:
        with pytest.raises(ConfigurationError, match="timeout must be an integer"):
            parse_int(value, "timeout")

    def test_parse_float(self) -> None:
        assert parse_float(" 2.5 ", "initial_wait") == 2.5
        assert parse_float(30, "initial_wait") == 30.0

    @pytest.mark.parametrize("value", ["soon", "", False])
    def test_parse_float_invalid(self, value: object) -> None:
        with pytest.raises(ConfigurationError, match="initial_wait must be a number"):
            parse_float(value, "initial_wait")


class TestCredentials:
    """Test credential loading."""

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPLE_ID", "dev@example.com")
        monkeypatch.setenv("APPLE_APP_SPECIFIC_PASSWORD", "abcd-efgh")
        monkeypatch.setenv("APPLE_TEAM_ID", "TEAM123")

        creds = Credentials.from_env()
        assert creds == Credentials("dev@example.com", "abcd-efgh", "TEAM123")

    def test_notarytool_requires_team(self) -> None:
        creds = Credentials(apple_id="dev@example.com", password="secret")
        assert creds.validate("notarytool") == ["APPLE_TEAM_ID"]
        assert creds.validate("altool") == []

    def test_all_missing(self) -> None:
        assert Credentials().validate("notarytool") == [
            "APPLE_ID",
            "APPLE_APP_SPECIFIC_PASSWORD",
            "APPLE_TEAM_ID",
        ]


class TestProjectSettings:
    """Test the [tool.notarize-app] table."""

    def test_defaults_without_pyproject(self, project_dir: Path) -> None:
        assert ProjectSettings.from_pyproject(project_dir) == ProjectSettings()

    def test_defaults_without_table(self, project_dir: Path) -> None:
        write_pyproject(project_dir, '[project]\nname = "x"\n')
        assert ProjectSettings.from_pyproject(project_dir) == ProjectSettings()

    def test_reads_table(self, project_dir: Path) -> None:
        write_pyproject(project_dir)
        settings = ProjectSettings.from_pyproject(project_dir)

        assert settings.primary_bundle_id == "com.example.fromtoml"
        assert settings.timeout == 30
        assert settings.staple is False
        assert settings.tool == "altool"
        assert settings.initial_wait == 5.0
        assert settings.poll_interval == (10.0, 20.0)
        assert settings.log_dir == Path("build/logs")
        assert settings.max_log_files == 3

    def test_invalid_toml(self, project_dir: Path) -> None:
        write_pyproject(project_dir, "[tool.notarize-app\n")
        with pytest.raises(ConfigurationError, match="Invalid"):
            ProjectSettings.from_pyproject(project_dir)

    def test_invalid_interval(self, project_dir: Path) -> None:
        write_pyproject(project_dir, "[tool.notarize-app]\npoll_interval = 60\n")
        with pytest.raises(ConfigurationError, match="poll_interval"):
            ProjectSettings.from_pyproject(project_dir)

    def test_non_numeric_interval(self, project_dir: Path) -> None:
        write_pyproject(project_dir, '[tool.notarize-app]\npoll_interval = ["a", "b"]\n')
        with pytest.raises(ConfigurationError, match="poll_interval must be a number"):
            ProjectSettings.from_pyproject(project_dir)

    def test_non_numeric_initial_wait(self, project_dir: Path) -> None:
        write_pyproject(project_dir, '[tool.notarize-app]\ninitial_wait = "soon"\n')
        with pytest.raises(ConfigurationError, match="initial_wait must be a number"):
            ProjectSettings.from_pyproject(project_dir)


class TestLoadConfig:
    """Test precedence: CLI > environment > pyproject > defaults."""

    def test_defaults(self, project_dir: Path, product: Path) -> None:
        config = load_config(parse_args([str(product)]), project_dir, "notarize")

        assert config.product_path == product
        assert config.timeout_minutes == 60
        assert config.staple is True
        assert config.verbose is False
        assert config.tool == "notarytool"
        assert config.temp_dir == Path(tempfile.gettempdir())
        assert config.initial_wait_seconds == 30.0
        assert config.poll_interval == (45.0, 90.0)
        assert config.log_dir == project_dir / "log"
        assert config.artifact_path is None
        assert config.primary_bundle_id is None

    def test_pyproject_values(self, project_dir: Path, product: Path) -> None:
        write_pyproject(project_dir)
        config = load_config(parse_args([str(product)]), project_dir, "notarize")

        assert config.timeout_minutes == 30
        assert config.staple is False
        assert config.tool == "altool"
        assert config.primary_bundle_id == "com.example.fromtoml"
        assert config.log_dir == project_dir / "build" / "logs"
        assert config.max_log_files == 3

    def test_environment_overrides_pyproject(
        self, project_dir: Path, product: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        write_pyproject(project_dir)
        monkeypatch.setenv("NOTARIZE_TIMEOUT", "20")
        monkeypatch.setenv("NOTARIZE_STAPLE", "true")
        monkeypatch.setenv("NOTARIZE_PRIMARY_BUNDLE_ID", "com.example.fromenv")
        config = load_config(parse_args([str(product)]), project_dir, "notarize")

        assert config.timeout_minutes == 20
        assert config.staple is True
        assert config.primary_bundle_id == "com.example.fromenv"

    def test_cli_overrides_environment(
        self, project_dir: Path, product: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        write_pyproject(project_dir)
        monkeypatch.setenv("NOTARIZE_TIMEOUT", "20")
        monkeypatch.setenv("NOTARIZE_TOOL", "altool")
        args = parse_args(
            [str(product), "--timeout", "10", "--no-staple", "--tool", "notarytool", "--verbose"]
        )
        config = load_config(args, project_dir, "notarize")

        assert config.timeout_minutes == 10
        assert config.staple is False
        assert config.tool == "notarytool"
        assert config.verbose is True

    def test_product_path_from_environment(
        self, project_dir: Path, product: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NOTARIZE_PRODUCT_PATH", str(product))
        monkeypatch.setenv("NOTARIZE_ARTIFACT_PATH", "dist/MyApp.zip")
        config = load_config(parse_args([]), project_dir, "notarize")

        assert config.product_path == product
        assert config.artifact_path == Path("dist/MyApp.zip")

    def test_missing_product_path(self, project_dir: Path) -> None:
        with pytest.raises(ConfigurationError, match="Missing product path"):
            load_config(parse_args([]), project_dir, "notarize")

    def test_invalid_environment_value(
        self, project_dir: Path, product: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NOTARIZE_STAPLE", "perhaps")
        with pytest.raises(ConfigurationError):
            load_config(parse_args([str(product)]), project_dir, "notarize")

    def test_loads_dotenv(self, project_dir: Path, product: Path) -> None:
        (project_dir / ".env").write_text(
            "APPLE_ID=dotenv@example.com\n"
            "APPLE_APP_SPECIFIC_PASSWORD=from-dotenv\n"
            "APPLE_TEAM_ID=DOTENV1\n"
        )
        config = load_config(parse_args([str(product)]), project_dir, "notarize")

        assert config.credentials == Credentials("dotenv@example.com", "from-dotenv", "DOTENV1")

    def test_resume_request_id(self, project_dir: Path, product: Path) -> None:
        args = parse_args([str(product), "--resume", "abc-123"])
        config = load_config(args, project_dir, "resume")

        assert config.mode == "resume"
        assert config.request_id == "abc-123"
        assert config.description == "Resume abc-123"


class TestNotarizeConfig:
    """Test derived properties and validation."""

    def test_archive_path_in_temp_dir(self, make_config: Callable[..., NotarizeConfig], tmp_path: Path) -> None:
        config = make_config()
        assert config.archive_path == tmp_path / "tmp" / "MyApp.zip"
        assert config.output_path == config.product_path

    @pytest.mark.parametrize(
        "overrides, description",
        [
            ({}, "Notarize + Staple"),
            ({"staple": False}, "Notarize (no staple)"),
            ({"mode": "staple-only"}, "Staple only"),
        ],
    )
    def test_description(
        self, make_config: Callable[..., NotarizeConfig], overrides: dict, description: str
    ) -> None:
        assert make_config(**overrides).description == description

    def test_valid(self, make_config: Callable[..., NotarizeConfig]) -> None:
        assert make_config().validate() == []

    def test_missing_product(self, make_config: Callable[..., NotarizeConfig], tmp_path: Path) -> None:
        errors = make_config(product_path=tmp_path / "Gone.app").validate()
        assert any("does not exist" in error for error in errors)

    def test_missing_credentials(self, make_config: Callable[..., NotarizeConfig]) -> None:
        errors = make_config(credentials=Credentials()).validate()
        assert any("APPLE_ID" in error for error in errors)

    def test_staple_only_needs_no_credentials(self, make_config: Callable[..., NotarizeConfig]) -> None:
        assert make_config(credentials=Credentials(), mode="staple-only").validate() == []

    @pytest.mark.parametrize(
        "overrides, fragment",
        [
            ({"timeout_minutes": 0}, "Timeout"),
            ({"tool": "gon"}, "Unknown notary tool"),
            ({"poll_interval": (90.0, 45.0)}, "poll interval"),
            ({"initial_wait_seconds": -1.0}, "Initial wait"),
            ({"mode": "resume"}, "request id"),
            ({"mode": "staple-only", "staple": False}, "--no-staple"),
            ({"max_log_files": 0}, "max_log_files"),
        ],
    )
    def test_invalid(
        self, make_config: Callable[..., NotarizeConfig], overrides: dict, fragment: str
    ) -> None:
        errors = make_config(**overrides).validate()
        assert any(fragment in error for error in errors)
