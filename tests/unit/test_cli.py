"""Tests for option parsing and the CLI entry point."""

import pytest

from log_portal import cli
from log_portal.config import ConfigurationError
from log_portal.writer_fanout import FILE_SINK

URL = "http://logs.example.com/access.log"


def test_defaults_match_documented_values():
    options, _ = cli.parse_options(["-u", URL])
    assert options.interval == 2
    assert options.tail == 0
    assert options.lifetime == 3
    assert options.enable_file is False
    assert options.disable_console is False


def test_environment_supplies_defaults(monkeypatch):
    monkeypatch.setenv("LOG_PORTAL_URL", URL)
    monkeypatch.setenv("LOG_PORTAL_INTERVAL", "5")
    monkeypatch.setenv("LOG_PORTAL_ENABLE_FILE", "yes")
    monkeypatch.setenv("LOG_PORTAL_DIR", "/tmp/mirror")

    options, _ = cli.parse_options([])

    assert options.url == URL
    assert options.interval == 5
    assert options.enable_file is True
    assert options.dir == "/tmp/mirror"


@pytest.mark.parametrize(
    "argv, message",
    [
        ([], "log file URL"),
        (["-u", URL, "-i", "0"], "interval"),
        (["-u", URL, "-t", "-1"], "tail"),
        (["-u", URL, "-l", "-1"], "lifetime"),
        (["-u", URL, "--disableconsole"], "--enablefile"),
        (["-u", URL, "--enablefile"], "file dir path"),
    ],
)
def test_invalid_options_are_rejected(argv, message):
    with pytest.raises(ConfigurationError, match=message):
        cli.parse_options(argv)


def test_main_reports_configuration_errors(capsys):
    assert cli.main(["-u", URL, "-i", "0"]) == cli.EXIT_CONFIG_ERROR
    assert "interval" in capsys.readouterr().err


def test_main_reports_invalid_url(monkeypatch, capsys):
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    assert cli.main(["-u", "http://logs.example.com/"]) == cli.EXIT_CONFIG_ERROR
    assert "invalid log file url" in capsys.readouterr().err


def test_main_builds_and_runs_portal(monkeypatch, tmp_path):
    started = []
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    monkeypatch.setattr(cli, "run_portal", started.append)

    exit_code = cli.main(["-u", URL, "--enablefile", "--disableconsole", "-d", str(tmp_path), "-t", "1024"])

    assert exit_code == 0
    (portal,) = started
    try:
        assert portal.session.tail == 1024
        assert portal.session.writer.sink_names == [FILE_SINK]
        assert (tmp_path / "access.log").exists()
    finally:
        portal.session.file.close()


def test_runtime_settings_come_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_PORTAL_TIMEZONE", "UTC")
    options = cli.PortalOptions(
        url=URL, dir=str(tmp_path), interval=1, tail=0, lifetime=1, enable_file=False, disable_console=False
    )

    portal = cli.build_portal(options)

    assert portal.rotation.timezone_name == "UTC"
