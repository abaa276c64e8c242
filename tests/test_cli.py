"""Tests for CLI commands."""

import pytest

from etbridge.cli.app import app
from etbridge.config import BridgeConfig


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "bridge.toml"
    path.write_text(
        """
[tracker]
host = "127.0.0.1"
port = 43884

[emulator]
core_id = "N64"
"""
    )
    return path


class TestConfigCommand:
    """Tests for 'etbridge config' command."""

    def test_no_action_prints_help(self, cli_runner):
        result = cli_runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "show, validate" in result.stdout

    def test_config_show_displays_content(self, cli_runner, config_file):
        result = cli_runner.invoke(app, ["config", "show", "--path", str(config_file)])
        assert result.exit_code == 0
        assert "[tracker]" in result.stdout

    def test_config_show_missing_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["config", "show", "--path", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_config_validate_success(self, cli_runner, config_file):
        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(config_file)]
        )
        assert result.exit_code == 0
        assert "valid" in result.stdout.lower()
        assert "127.0.0.1:43884" in result.stdout

    def test_config_validate_invalid_toml(self, cli_runner, tmp_path):
        invalid_file = tmp_path / "invalid.toml"
        invalid_file.write_text("not valid toml [[[")

        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(invalid_file)]
        )
        assert result.exit_code == 1

    def test_config_validate_invalid_config(self, cli_runner, tmp_path):
        invalid_config = tmp_path / "bad_config.toml"
        invalid_config.write_text("[tracker]\nport = 0\n")

        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(invalid_config)]
        )
        assert result.exit_code == 1
        assert "validation failed" in result.stdout.lower()
        assert "tracker.port" in result.stdout

    def test_config_unknown_action(self, cli_runner):
        result = cli_runner.invoke(app, ["config", "unknown"])
        assert result.exit_code == 1
        assert "Unknown action" in result.stdout


class TestRunCommand:
    """Tests for 'etbridge run' command."""

    @pytest.fixture
    def captured(self, monkeypatch):
        calls: list[tuple[BridgeConfig, bool]] = []

        async def _fake_run_bridge(bridge_config, verbose=False):
            calls.append((bridge_config, verbose))

        monkeypatch.setattr("etbridge.cli.commands.run._run_bridge", _fake_run_bridge)
        return calls

    def test_uses_config_file(self, cli_runner, config_file, captured):
        result = cli_runner.invoke(app, ["run", "--config", str(config_file)])
        assert result.exit_code == 0
        bridge_config, verbose = captured[0]
        assert bridge_config.tracker.host == "127.0.0.1"
        assert verbose is False

    def test_flags_override_config(self, cli_runner, config_file, captured, tmp_path):
        image = tmp_path / "rdram.bin"
        result = cli_runner.invoke(
            app,
            [
                "run",
                "-c",
                str(config_file),
                "--host",
                "tracker.local",
                "--port",
                "5000",
                "--ram-image",
                str(image),
                "-v",
            ],
        )
        assert result.exit_code == 0
        bridge_config, verbose = captured[0]
        assert bridge_config.tracker.host == "tracker.local"
        assert bridge_config.tracker.port == 5000
        assert bridge_config.emulator.ram_image == image
        assert verbose is True

    def test_defaults_without_config(self, cli_runner, captured):
        result = cli_runner.invoke(app, ["run"])
        assert result.exit_code == 0
        assert captured[0][0].tracker.port == 43884

    def test_missing_config(self, cli_runner, tmp_path, captured):
        result = cli_runner.invoke(
            app, ["run", "--config", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "Error loading config" in result.stdout
        assert captured == []

    def test_out_of_range_port_is_rejected(self, cli_runner, captured):
        result = cli_runner.invoke(app, ["run", "--port", "70000"])
        assert result.exit_code == 1
        assert "--port" in result.stdout
        assert captured == []
