"""Tests for the operator CLI."""

from unittest.mock import Mock, patch

import httpx
from typer.testing import CliRunner

from cli.cli import app, build_results_table, format_ms

runner = CliRunner()


def _response(status_code: int, payload=None, method: str = "GET", path: str = "/") -> httpx.Response:
    request = httpx.Request(method, f"http://race.test{path}")
    return httpx.Response(status_code, json=payload, request=request)


class TestFormatting:
    def test_format_ms(self):
        assert format_ms(None) == "--"
        assert format_ms(0) == "0:00.000"
        assert format_ms(61_234) == "1:01.234"

    def test_results_table_numbers_only_active_racers(self):
        racers = [
            {"name": "Fast", "laps": 3, "checkpoints": 0, "totalTime": 90_000, "bestLap": 29_000, "gap": 0, "finished": True},
            {"name": "Slow", "laps": 2, "checkpoints": 4, "totalTime": 91_000, "bestLap": None, "gap": 1500},
            {"name": "Cheater", "laps": 3, "disqualified": True, "totalTime": 80_000},
        ]
        table = build_results_table(racers)
        assert table.row_count == 3
        positions = list(table.columns[0].cells)
        assert positions == ["1", "2", "-"]


class TestRegisterCommand:
    @patch("cli.cli.httpx.post")
    def test_register_success(self, mock_post: Mock):
        mock_post.return_value = _response(200, {"id": "r1", "name": "Alice"}, "POST", "/api/register")
        result = runner.invoke(app, ["register", "Alice", "--url", "http://race.test"])
        assert result.exit_code == 0
        assert "Registered Alice" in result.output
        mock_post.assert_called_once_with(
            "http://race.test/api/register", json={"name": "Alice", "avatar": ""}, timeout=5.0
        )

    @patch("cli.cli.httpx.post")
    def test_register_conflict(self, mock_post: Mock):
        mock_post.return_value = _response(409, {"detail": "exists"}, "POST", "/api/register")
        result = runner.invoke(app, ["register", "Alice"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    @patch("cli.cli.httpx.post")
    def test_register_unreachable(self, mock_post: Mock):
        mock_post.side_effect = httpx.ConnectError("refused")
        result = runner.invoke(app, ["register", "Alice"])
        assert result.exit_code == 1


class TestResultsCommand:
    @patch("cli.cli.httpx.get")
    def test_results_prints_table(self, mock_get: Mock):
        mock_get.return_value = _response(
            200,
            {"racers": [{"name": "Alice", "laps": 1, "checkpoints": 0, "totalTime": 1000, "bestLap": 1000, "gap": 0}]},
            path="/api/results",
        )
        result = runner.invoke(app, ["results", "--url", "http://race.test"])
        assert result.exit_code == 0
        assert "Alice" in result.output

    @patch("cli.cli.httpx.get")
    def test_results_server_error(self, mock_get: Mock):
        mock_get.return_value = _response(500, {"detail": "boom"}, path="/api/results")
        result = runner.invoke(app, ["results"])
        assert result.exit_code == 1


class TestServeCommand:
    @patch("cli.cli.setup_logger")
    @patch("cli.cli.uvicorn.run")
    def test_serve_binds_configured_host_and_port(self, mock_run: Mock, _mock_logger: Mock, monkeypatch):
        """Without options, serve binds where HOST and PORT say."""
        monkeypatch.setenv("HOST", "127.0.0.2")
        monkeypatch.setenv("PORT", "4100")
        result = runner.invoke(app, ["serve"])
        assert result.exit_code == 0
        mock_run.assert_called_once_with("icekart.main:app", host="127.0.0.2", port=4100, reload=False)

    @patch("cli.cli.setup_logger")
    @patch("cli.cli.uvicorn.run")
    def test_serve_options_override_settings(self, mock_run: Mock, _mock_logger: Mock, monkeypatch):
        monkeypatch.setenv("HOST", "127.0.0.2")
        monkeypatch.setenv("PORT", "4100")
        result = runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "9000", "--reload"])
        assert result.exit_code == 0
        mock_run.assert_called_once_with("icekart.main:app", host="0.0.0.0", port=9000, reload=True)

    @patch("cli.cli.setup_logger")
    @patch("cli.cli.uvicorn.run")
    def test_serve_defaults(self, mock_run: Mock, mock_logger: Mock, monkeypatch):
        for name in ("HOST", "PORT", "LOG_LEVEL", "LOG_FILE"):
            monkeypatch.delenv(name, raising=False)
        result = runner.invoke(app, ["serve"])
        assert result.exit_code == 0
        mock_run.assert_called_once_with("icekart.main:app", host="0.0.0.0", port=3000, reload=False)
        mock_logger.assert_called_once_with(level="INFO", log_file=None)
