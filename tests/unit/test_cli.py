"""
Unit tests for the command line interface
"""

import re
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from csharply.cli import cli
from csharply.core.config import Config
from csharply.core.errors import ConfigError, SourceParseError
from csharply.core.processor import CSharpProcessor

SUMMARY = re.compile(r"Organized (\d+) files in [\d.,]+(ms|s| minutes)\.")


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CliRunner working inside an isolated home and project directory"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in (
        "CSHARPLY_VERBOSE",
        "CSHARPLY_DRY_RUN",
        "CSHARPLY_MAX_WORKERS",
        "CSHARPLY_LINE_ENDING",
    ):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


class TestOrganizeCommand:
    """Test the organize command"""

    def test_organize_directory(self, runner, sample_cs_project, organized_class):
        """Test organizing a project prints the summary line"""
        result = runner.invoke(cli, ["organize", str(sample_cs_project), "--no-backup"], obj={})

        assert result.exit_code == 0
        match = SUMMARY.search(result.output)
        assert match is not None
        assert match.group(1) == "2"
        assert "5 files ignored" in result.output
        assert "failed" not in result.output
        assert (sample_cs_project / "src" / "Widget.cs").read_text() == organized_class

    def test_verbose_lists_every_file(self, runner, sample_cs_project):
        result = runner.invoke(
            cli, ["-v", "organize", str(sample_cs_project), "--no-backup"], obj={}
        )

        assert result.exit_code == 0
        assert f"organized : {sample_cs_project / 'src' / 'Widget.cs'}" in result.output
        assert f"ignored   : {sample_cs_project / 'obj' / 'Temp.cs'}" in result.output

    def test_simulate_leaves_files(
        self, runner, tmp_path, sample_cs_project, unordered_class, organized_class
    ):
        """Test --simulate prints organized content without saving"""
        target = sample_cs_project / "src" / "Widget.cs"

        result = runner.invoke(cli, ["organize", str(target), "--simulate"], obj={})

        assert result.exit_code == 0
        assert "====================" in result.output
        assert f"{target}:" in result.output
        assert organized_class in result.output
        assert target.read_text() == unordered_class
        assert not (tmp_path / ".csharply-backups").exists()

    def test_failures_exit_nonzero(self, runner, broken_cs_project):
        result = runner.invoke(cli, ["organize", str(broken_cs_project), "--no-backup"], obj={})

        assert result.exit_code == 1
        assert "1 files failed." in result.output
        assert SUMMARY.search(result.output).group(1) == "1"

    def test_strict_propagates_error(self, runner, broken_cs_project):
        result = runner.invoke(
            cli, ["organize", str(broken_cs_project), "--no-backup", "--strict"], obj={}
        )

        assert result.exit_code != 0
        assert isinstance(result.exception, SourceParseError)

    def test_workers_option(self, runner, sample_cs_project):
        with patch("csharply.cli.CSharpProcessor", wraps=CSharpProcessor) as processor_class:
            result = runner.invoke(
                cli, ["organize", str(sample_cs_project), "--no-backup", "-w", "5"], obj={}
            )

        assert result.exit_code == 0
        config = processor_class.call_args.args[0]
        assert config.batch.max_workers == 5

    def test_backup_session_created(self, runner, tmp_path, sample_cs_project):
        """Test organizing keeps the originals in a backup session"""
        result = runner.invoke(cli, ["organize", str(sample_cs_project)], obj={})
        assert result.exit_code == 0

        result = runner.invoke(cli, ["backup", "--sessions"], obj={})

        assert "Found 1 backup sessions:" in result.output
        assert "Files: 2" in result.output

    def test_no_session_when_nothing_changes(self, runner, tmp_path, organized_class):
        target = tmp_path / "Clean.cs"
        target.write_text(organized_class)

        runner.invoke(cli, ["organize", str(target)], obj={})
        result = runner.invoke(cli, ["backup", "--sessions"], obj={})

        assert "No backup sessions found." in result.output


class TestOtherCommands:
    """Test init, backup and serve commands"""

    def test_init_creates_config(self, runner, tmp_path):
        result = runner.invoke(cli, ["init"], obj={})

        assert result.exit_code == 0
        config_file = tmp_path / ".csharply.yaml"
        assert config_file.exists()
        data = yaml.safe_load(config_file.read_text())
        assert data["organize"]["standard_prefixes"] == ["System"]

    def test_init_declined_overwrite(self, runner, tmp_path):
        (tmp_path / ".csharply.yaml").write_text("strict: true\n")

        result = runner.invoke(cli, ["init"], input="n\n", obj={})

        assert result.exit_code == 1
        assert (tmp_path / ".csharply.yaml").read_text() == "strict: true\n"

    def test_project_config_used(self, runner, tmp_path, sample_cs_project):
        """Test .csharply.yaml in the working directory is loaded"""
        config = Config()
        config.batch.ignore_patterns = []
        config.backup.enabled = False
        config.save(tmp_path / ".csharply.yaml")

        result = runner.invoke(cli, ["organize", str(sample_cs_project)], obj={})

        assert SUMMARY.search(result.output).group(1) == "4"

    def test_invalid_config_rejected(self, runner, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(yaml.safe_dump({"organize": {"line_ending": "cr"}}))

        result = runner.invoke(cli, ["-c", str(config_file), "backup"], obj={})

        assert result.exit_code == 1
        assert isinstance(result.exception, ConfigError)

    def test_backup_without_action(self, runner):
        result = runner.invoke(cli, ["backup"], obj={})

        assert "Use --sessions, --restore, or --clean" in result.output

    def test_restore_session(self, runner, tmp_path, sample_cs_project, unordered_class):
        runner.invoke(cli, ["organize", str(sample_cs_project)], obj={})
        archives = list((tmp_path / ".csharply-backups").glob("session_*.tar.gz"))
        assert len(archives) == 1
        session_id = archives[0].name.removesuffix(".tar.gz")

        result = runner.invoke(cli, ["backup", "--restore", session_id], input="y\n", obj={})

        assert result.exit_code == 0
        assert "Successfully restored session" in result.output
        assert (sample_cs_project / "src" / "Widget.cs").read_text() == unordered_class

    def test_serve_uses_config(self, runner, mocker):
        run = mocker.patch("csharply.server.run")

        result = runner.invoke(cli, ["serve", "--port", "9100"], obj={})

        assert result.exit_code == 0
        config = run.call_args.args[0]
        assert isinstance(config, Config)
        assert run.call_args.kwargs == {"host": None, "port": 9100}
