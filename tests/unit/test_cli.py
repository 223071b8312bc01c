"""Tests for the command-line interface."""

from unittest.mock import AsyncMock, patch

import pytest
import typer
from typer.testing import CliRunner

from okta_connector.cli import app, parse_arguments, read_body
from okta_connector.clients.dispatch import DispatchClient
from okta_connector.clients.exceptions import ApiError

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "okta-connector.yaml"
    path.write_text(
        "okta:\n"
        "  host: example.okta.com\n"
        "  api_token: 00Tok3nSecret\n"
        "  rate_limit_per_minute: null\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("okta_connector.cli.setup_logging"):
        yield


def test_parse_arguments():
    assert parse_arguments(["id=abc", "limit=25", "send_email=false"]) == {
        "id": "abc",
        "limit": 25,
        "send_email": False,
    }


def test_parse_arguments_keeps_non_canonical_digits():
    assert parse_arguments(["after=00123", "q=\u00b2", "limit=0"]) == {
        "after": "00123",
        "q": "\u00b2",
        "limit": 0,
    }


def test_parse_arguments_rejects_bare_value():
    with pytest.raises(typer.BadParameter):
        parse_arguments(["abc"])


def test_read_body_from_file(tmp_path):
    path = tmp_path / "profile.json"
    path.write_text('{"profile": {}}', encoding="utf-8")

    assert read_body(f"@{path}") == '{"profile": {}}'
    assert read_body('{"inline": true}') == '{"inline": true}'
    assert read_body(None) is None


def test_operations_lists_catalogue():
    result = runner.invoke(app, ["operations"])

    assert result.exit_code == 0
    assert "getUser" in result.output
    assert "closeSession" in result.output


def test_validate_masks_token(config_file):
    result = runner.invoke(app, ["validate", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "example.okta.com" in result.output
    assert "00Tok3nSecret" not in result.output
    assert "Configuration is valid" in result.output


def test_validate_bad_config(tmp_path):
    path = tmp_path / "okta-connector.yaml"
    path.write_text("okta:\n  host: example.okta.com\n", encoding="utf-8")

    result = runner.invoke(app, ["validate", "--config", str(path)])
    assert result.exit_code == 1


def test_invoke_dry_run(config_file):
    result = runner.invoke(
        app, ["invoke", "getUser", "-a", "id=00ub0oNGTSWTBKOLGLNR", "--config", str(config_file), "--dry-run"]
    )

    assert result.exit_code == 0
    assert "GET https://example.okta.com/api/v1/users/00ub0oNGTSWTBKOLGLNR" in result.output


def test_invoke_prints_body(config_file):
    with patch.object(DispatchClient, "invoke", AsyncMock(return_value='{"id": "00ub0"}')) as mock_invoke:
        result = runner.invoke(app, ["invoke", "getUser", "-a", "id=00ub0", "--config", str(config_file)])

    assert result.exit_code == 0
    assert '{"id": "00ub0"}' in result.output
    mock_invoke.assert_awaited_once_with("getUser", {"id": "00ub0"}, payload=None)


def test_invoke_api_error(config_file):
    body = '{"errorCode":"E0000007","errorSummary":"Not found: Resource not found: nope (User)"}'
    error = ApiError("getUser failed", status_code=404, response_text=body)
    with patch.object(DispatchClient, "invoke", AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["invoke", "getUser", "-a", "id=nope", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "404" in result.output
    assert "Not found: Resource not found" in result.output
    assert '"errorCode":"E0000007"' in result.output


def test_invoke_missing_argument(config_file):
    result = runner.invoke(app, ["invoke", "getUser", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "id" in result.output
