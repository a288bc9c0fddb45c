"""
Tests for the command-line entry point.
"""
from unittest.mock import patch

import pytest

from webhook_relay import cli
from webhook_relay.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestParseArgs:

    def test_config_path_flag(self):
        assert cli.parse_args(["--config-path", "relay.env"]).config_path == "relay.env"

    def test_config_path_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", "from-env.env")

        assert cli.parse_args([]).config_path == "from-env.env"


class TestMain:

    def test_runs_uvicorn_with_configured_address(self, tmp_path, monkeypatch):
        env_file = tmp_path / "relay.env"
        env_file.write_text('BROKER_HOST=127.0.0.1\nBROKER_PORT=9191\nQUEUE_NAMES=["orders"]\n')

        with patch.object(cli, "configure_logging"), patch.object(cli.uvicorn, "run") as run:
            cli.main(["--config-path", str(env_file)])

        run.assert_called_once()
        app = run.call_args.args[0]
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9191
        assert app.title == "Webhook Relay API"
