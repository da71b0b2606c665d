"""Tests for CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from structlog.testing import capture_logs

from proc_census.cli import main
from proc_census.config import Config
from proc_census.errors import SourceUnavailable
from tests.conftest import make_stat, write_stat


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_log_setup():
    """Keep CLI tests from reconfiguring global logging or printing events."""
    with patch("proc_census.logging.configure") as mock_configure, capture_logs():
        yield mock_configure


@pytest.fixture
def config_file(tmp_path: Path, proc_root: Path) -> Path:
    """Write a config pointing procfs at the fake root."""
    config = Config()
    config.census.proc_root = str(proc_root)
    path = tmp_path / "config.toml"
    config.save(path)
    return path


class TestCollectCommand:
    """Tests for the collect command."""

    def test_collect_json_from_procfs(self, runner, config_file, proc_root):
        write_stat(proc_root, 1, make_stat(pid=1, state="S", threads=4))

        result = runner.invoke(main, ["collect", "--proc", "--json", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        record = json.loads(result.output)
        assert record["sleeping"] == 1
        assert record["total"] == 1

    def test_collect_table_from_ps(self, runner, config_file):
        with (
            patch("proc_census.ps.shutil.which", return_value="/bin/ps"),
            patch("proc_census.ps.subprocess.run") as mock_run,
        ):
            mock_run.return_value.stdout = b"STAT\nR\nZ\n"
            result = runner.invoke(main, ["collect", "--ps", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        lines = dict(
            line.split()
            for line in result.output.splitlines()
            if len(line.split()) == 2 and line.split()[1].isdigit()
        )
        assert lines["running"] == "1"
        assert lines["zombies"] == "1"
        assert lines["total"] == "2"

    def test_collect_failure_exits_1(self, runner, config_file):
        with patch(
            "proc_census.collector.ProcessesCollector.collect",
            side_effect=SourceUnavailable("ps not found on PATH"),
        ):
            result = runner.invoke(main, ["collect", "--ps", "--config", str(config_file)])

        assert result.exit_code == 1

    def test_collect_rejects_both_sources(self, runner, config_file):
        result = runner.invoke(main, ["collect", "--ps", "--proc", "--config", str(config_file)])
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_collect_bad_config(self, runner, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[census]\nforce_ps = true\nforce_proc = true\n")
        result = runner.invoke(main, ["collect", "--config", str(path)])
        assert result.exit_code == 1
        assert "can't both" in result.output


class TestConfigCommand:
    """Tests for the config command group."""

    def test_config_show(self, runner, tmp_path):
        with patch("pathlib.Path.home", return_value=tmp_path):
            result = runner.invoke(main, ["config", "show"])

        assert result.exit_code == 0
        assert "[census]" in result.output
        assert "force_ps = False" in result.output
        assert "ps_command = ps axo state=" in result.output

    def test_config_reset(self, runner, tmp_path):
        with patch("pathlib.Path.home", return_value=tmp_path):
            result = runner.invoke(main, ["config", "reset", "--yes"])

        assert result.exit_code == 0
        config_path = tmp_path / ".config" / "proc-census" / "config.toml"
        assert config_path.exists()
        assert Config.load(config_path) == Config()

    def test_config_show_bad_config(self, runner, tmp_path):
        config_path = tmp_path / ".config" / "proc-census" / "config.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text('[census]\nforce_ps = "false"\n')

        with patch("pathlib.Path.home", return_value=tmp_path):
            result = runner.invoke(main, ["config", "show"])

        assert result.exit_code == 1
        assert "force_ps must be true or false" in result.output
        assert "Traceback" not in result.output
