"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from castwatch.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_NETWORK_ERROR,
    EXIT_SUCCESS,
    args_to_dict,
    main,
    parse_args,
    run_discovery,
)
from castwatch.monitor.types import DeviceInfo


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = parse_args([])
        assert not args.discover
        assert args.timeout == 3.0
        assert args.config == Path("./config.yaml")
        assert args.poll_interval is None
        assert args.known_hosts is None

    def test_repeatable_options(self):
        args = parse_args(["--known-host", "10.0.0.1", "--known-host", "10.0.0.2", "--name", "Kitchen"])
        assert args.known_hosts == ["10.0.0.1", "10.0.0.2"]
        assert args.friendly_names == ["Kitchen"]

    @pytest.mark.parametrize("value", ["0", "-2", "soon"])
    def test_rejects_bad_interval(self, value):
        with pytest.raises(SystemExit):
            parse_args(["--poll-interval", value])


class TestArgsToDict:
    """Tests for args_to_dict."""

    def test_only_given_values(self):
        """Test unset options do not override lower-priority sources."""
        assert args_to_dict(parse_args([])) == {}

    def test_mapping(self):
        args = parse_args(
            [
                "--poll-interval",
                "2",
                "--restart-polling-on-reconnect",
                "--connect-timeout",
                "4",
                "--name",
                "Kitchen",
                "--log-level",
                "debug",
            ]
        )
        assert args_to_dict(args) == {
            "monitor": {
                "poll_interval": 2.0,
                "restart_polling_on_reconnect": True,
                "connect_timeout": 4.0,
            },
            "discovery": {"friendly_names": ["Kitchen"]},
            "logging": {"level": "debug"},
        }


class TestRunDiscovery:
    """Tests for --discover output."""

    DEVICES = [
        DeviceInfo(name="Kitchen", host="10.0.0.1", port=8009, model_name="Google Home", cast_type="audio"),
    ]

    async def test_json_output(self, capsys):
        with patch("castwatch.cast.scan", return_value=self.DEVICES) as scan:
            code = await run_discovery(2.0, json_output=True)

        assert code == EXIT_SUCCESS
        scan.assert_called_once_with(2.0, None)
        output = json.loads(capsys.readouterr().out)
        assert output["count"] == 1
        assert output["devices"][0]["name"] == "Kitchen"
        assert output["devices"][0]["model"] == "Google Home"

    async def test_text_output(self, capsys):
        with patch("castwatch.cast.scan", return_value=self.DEVICES):
            code = await run_discovery(2.0, json_output=False)

        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert "Found 1 cast device(s)" in out
        assert "Address: 10.0.0.1:8009" in out

    async def test_nothing_found(self, capsys):
        with patch("castwatch.cast.scan", return_value=[]):
            await run_discovery(1.0, json_output=False)

        assert "No cast devices found." in capsys.readouterr().out


class TestMain:
    """Tests for main exit codes."""

    @pytest.fixture(autouse=True)
    def no_logging_setup(self):
        with patch("castwatch.cli.setup_logging"):
            yield

    def test_config_error(self, tmp_path):
        """Test an invalid config file exits with the config error code."""
        path = tmp_path / "config.yaml"
        path.write_text("monitor:\n  poll_interval: -1\n")

        assert main(["--config", str(path)]) == EXIT_CONFIG_ERROR

    def test_discover_network_error(self):
        with patch("castwatch.cast.scan", side_effect=OSError("no multicast")):
            assert main(["--discover"]) == EXIT_NETWORK_ERROR

    def test_discover_known_hosts(self):
        """Test known hosts given on the command line reach the scan."""
        with patch("castwatch.cast.scan", return_value=[]) as scan:
            assert main(["--discover", "--known-host", "10.0.0.7"]) == EXIT_SUCCESS

        scan.assert_called_once_with(3.0, ["10.0.0.7"])

    def test_monitor_runs_app(self, tmp_path):
        """Test the monitor path builds the app from the merged config."""
        with patch("castwatch.cli.CastWatch") as app_cls, patch("castwatch.cli.asyncio.run") as run:
            code = main(["--config", str(tmp_path / "none.yaml"), "--poll-interval", "4"])

        assert code == EXIT_SUCCESS
        config = app_cls.call_args[0][0]
        assert config.monitor.poll_interval == 4.0
        run.assert_called_once()
