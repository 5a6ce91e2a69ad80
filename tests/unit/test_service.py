"""Tests for the xcrun notary service clients."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from notarize_app.exceptions import ConfigurationError, NotaryServiceError, ToolInvocationError
from notarize_app.notary.models import NotarizationState, ProductError
from notarize_app.notary.service import AltoolService, NotarytoolService, create_service
from notarize_app.utils.process import MASK, ProcessResult
from tests.doubles import CREDENTIALS, RecordingUI, ScriptedRunner


def json_result(payload: Any, exit_code: int = 0, stderr: str = "") -> ProcessResult:
    return ProcessResult(exit_code=exit_code, stdout=json.dumps(payload), stderr=stderr)


class TestNotarytoolService:
    """Test the notarytool client."""

    @pytest.mark.asyncio
    async def test_submit_returns_tracking_id(self) -> None:
        runner = ScriptedRunner(
            captures=[json_result({"id": "abc-123", "message": "Successfully uploaded file"})]
        )
        record = await NotarytoolService(runner).submit(
            Path("/tmp/MyApp.zip"), "com.example.myapp", CREDENTIALS
        )

        assert record.tracking_id == "abc-123"
        cmd = runner.commands[0]
        assert cmd[:4] == ["xcrun", "notarytool", "submit", "/tmp/MyApp.zip"]
        assert cmd[cmd.index("--apple-id") + 1] == "dev@example.com"
        assert cmd[cmd.index("--password") + 1] == "hunter2"
        assert cmd[cmd.index("--team-id") + 1] == "TEAM123"
        assert cmd[-2:] == ["--output-format", "json"]

    @pytest.mark.asyncio
    async def test_submit_without_id_is_malformed(self) -> None:
        runner = ScriptedRunner(captures=[json_result({"message": "odd"})])

        with pytest.raises(NotaryServiceError) as exc_info:
            await NotarytoolService(runner).submit(Path("a.zip"), "id", CREDENTIALS)
        assert exc_info.value.errors[0].code == "malformed-response"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, state",
        [
            ("In Progress", NotarizationState.PENDING),
            ("Accepted", NotarizationState.VERIFIED),
            ("Invalid", NotarizationState.REJECTED),
            ("Rejected", NotarizationState.REJECTED),
            ("Something New", NotarizationState.UNKNOWN),
        ],
    )
    async def test_query_normalizes_status(self, status: str, state: NotarizationState) -> None:
        runner = ScriptedRunner(
            captures=[json_result({"id": "abc-123", "status": status, "message": "msg"})]
        )
        report = await NotarytoolService(runner).query("abc-123", CREDENTIALS)

        assert report.state is state
        assert report.status == status
        assert report.message == "msg"
        assert runner.commands[0][:4] == ["xcrun", "notarytool", "info", "abc-123"]

    @pytest.mark.asyncio
    async def test_failed_exit_raises_issues(self) -> None:
        runner = ScriptedRunner(
            captures=[
                json_result(
                    {"issues": [{"code": 401, "message": "Unauthorized"}]}, exit_code=69
                )
            ]
        )

        with pytest.raises(NotaryServiceError) as exc_info:
            await NotarytoolService(runner).query("abc-123", CREDENTIALS)
        assert exc_info.value.errors == [ProductError("401", "Unauthorized")]

    @pytest.mark.asyncio
    async def test_failed_exit_falls_back_to_message(self) -> None:
        runner = ScriptedRunner(captures=[json_result({"message": "Invalid credentials"}, exit_code=1)])

        with pytest.raises(NotaryServiceError) as exc_info:
            await NotarytoolService(runner).query("abc-123", CREDENTIALS)
        assert exc_info.value.errors == [ProductError("error", "Invalid credentials")]

    @pytest.mark.asyncio
    async def test_failed_exit_without_details(self) -> None:
        runner = ScriptedRunner(captures=[json_result({}, exit_code=3)])

        with pytest.raises(NotaryServiceError) as exc_info:
            await NotarytoolService(runner).query("abc-123", CREDENTIALS)
        assert exc_info.value.errors[0].code == "3"

    @pytest.mark.asyncio
    async def test_unreadable_output(self) -> None:
        runner = ScriptedRunner(captures=[ProcessResult(0, "not json", "")])

        with pytest.raises(NotaryServiceError) as exc_info:
            await NotarytoolService(runner).query("abc-123", CREDENTIALS)
        assert exc_info.value.errors[0].code == "malformed-response"
        assert "not json" in exc_info.value.errors[0].message

    @pytest.mark.asyncio
    async def test_tool_invocation_error_masks_password(self) -> None:
        runner = ScriptedRunner(captures=[ToolInvocationError(["xcrun"], "No such file or directory")])

        with pytest.raises(ToolInvocationError) as exc_info:
            await NotarytoolService(runner).query("abc-123", CREDENTIALS)
        assert "hunter2" not in exc_info.value.command
        assert MASK in exc_info.value.command
        assert exc_info.value.reason == "No such file or directory"

    @pytest.mark.asyncio
    async def test_verbose_output_masks_password(self) -> None:
        ui = RecordingUI()
        runner = ScriptedRunner(captures=[json_result({"status": "Accepted"})])
        service = NotarytoolService(runner, verbose=True, on_output=ui.log_output)
        await service.query("abc-123", CREDENTIALS)

        assert "--verbose" in runner.commands[0]
        assert "hunter2" not in ui.text
        assert MASK in ui.text
        assert '"status": "Accepted"' in ui.text


class TestAltoolService:
    """Test the legacy altool client."""

    @pytest.mark.asyncio
    async def test_submit_sends_bundle_id(self) -> None:
        runner = ScriptedRunner(
            captures=[json_result({"notarization-upload": {"RequestUUID": "2efe2717-52ef"}})]
        )
        record = await AltoolService(runner).submit(
            Path("/tmp/MyApp.zip"), "com.example.myapp", CREDENTIALS
        )

        assert record.tracking_id == "2efe2717-52ef"
        cmd = runner.commands[0]
        assert cmd[:3] == ["xcrun", "altool", "--notarize-app"]
        assert cmd[cmd.index("-f") + 1] == "/tmp/MyApp.zip"
        assert cmd[cmd.index("--primary-bundle-id") + 1] == "com.example.myapp"
        assert cmd[cmd.index("-u") + 1] == "dev@example.com"
        assert cmd[cmd.index("--asc-provider") + 1] == "TEAM123"

    @pytest.mark.asyncio
    async def test_submit_product_errors(self) -> None:
        runner = ScriptedRunner(
            captures=[
                json_result(
                    {
                        "product-errors": [
                            {"code": 1048, "message": "Unable to upload your app."},
                        ]
                    },
                    exit_code=1,
                )
            ]
        )

        with pytest.raises(NotaryServiceError) as exc_info:
            await AltoolService(runner).submit(Path("a.zip"), "com.example.myapp", CREDENTIALS)
        assert exc_info.value.errors == [ProductError("1048", "Unable to upload your app.")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, state",
        [
            ("in progress", NotarizationState.PENDING),
            ("success", NotarizationState.VERIFIED),
            ("invalid", NotarizationState.REJECTED),
        ],
    )
    async def test_query(self, status: str, state: NotarizationState) -> None:
        runner = ScriptedRunner(
            captures=[
                json_result(
                    {"notarization-info": {"Status": status, "Status Message": "Package Approved"}}
                )
            ]
        )
        report = await AltoolService(runner).query("2efe2717-52ef", CREDENTIALS)

        assert report.state is state
        assert report.message == "Package Approved"
        assert runner.commands[0][:4] == ["xcrun", "altool", "--notarization-info", "2efe2717-52ef"]

    @pytest.mark.asyncio
    async def test_query_without_info(self) -> None:
        runner = ScriptedRunner(captures=[json_result({"success-message": "ok"})])

        with pytest.raises(NotaryServiceError):
            await AltoolService(runner).query("2efe2717-52ef", CREDENTIALS)


class TestCreateService:
    """Test tool selection."""

    def test_known_tools(self) -> None:
        runner = ScriptedRunner()
        assert isinstance(create_service("notarytool", runner), NotarytoolService)
        assert isinstance(create_service("altool", runner), AltoolService)

    def test_unknown_tool(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown notary tool"):
            create_service("gon", ScriptedRunner())
