"""Tests for the promise-fixer command-line interface."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from promise_rejection_fixer import __version__
from promise_rejection_fixer.cli.main import cli, sanitize_for_output
from promise_rejection_fixer.core import fixer as fixer_module


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo the logging.basicConfig(force=True) call made by each command."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def runner(temp_workspace: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CliRunner whose working directory is the temp workspace."""
    monkeypatch.chdir(temp_workspace)
    return CliRunner()


class TestFixCommand:
    """Tests for `promise-fixer fix`."""

    def test_fix_rewrites_file(self, runner: CliRunner, sample_js_file: Path) -> None:
        result = runner.invoke(cli, ["fix", "app.js"])

        assert result.exit_code == 0, result.output
        assert "Found 3 promises in app.js" in result.output
        assert "Promise chains: 3" in result.output
        assert "Already handled: 1" in result.output
        assert "Inserted: 2 rejection handlers" in result.output
        assert sample_js_file.read_text(encoding="utf-8").count(".catch(noop)") == 2

    def test_dry_run_leaves_file_untouched(
        self, runner: CliRunner, sample_js_file: Path, sample_source: str
    ) -> None:
        result = runner.invoke(cli, ["fix", "app.js", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "DRY RUN MODE" in result.output
        assert "Would insert: 2 rejection handlers" in result.output
        assert sample_js_file.read_text(encoding="utf-8") == sample_source

    def test_dry_run_from_environment(
        self,
        runner: CliRunner,
        sample_js_file: Path,
        sample_source: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PRF_MODE", "dry-run")

        result = runner.invoke(cli, ["fix", "app.js"])

        assert result.exit_code == 0, result.output
        assert "DRY RUN MODE" in result.output
        assert sample_js_file.read_text(encoding="utf-8") == sample_source

    def test_custom_noop_handler(self, runner: CliRunner, sample_js_file: Path) -> None:
        result = runner.invoke(cli, ["fix", "app.js", "--noop-handler", "ignoreError"])

        assert result.exit_code == 0, result.output
        assert ".catch(ignoreError)" in sample_js_file.read_text(encoding="utf-8")

    def test_invalid_noop_handler(self, runner: CliRunner, sample_js_file: Path) -> None:
        result = runner.invoke(cli, ["fix", "app.js", "--noop-handler", "a.then"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_backup(
        self, runner: CliRunner, sample_js_file: Path, sample_source: str
    ) -> None:
        result = runner.invoke(cli, ["fix", "app.js", "--backup"])

        assert result.exit_code == 0, result.output
        assert "Backup: app.js.backup" in result.output
        backup = sample_js_file.with_name("app.js.backup")
        assert backup.read_text(encoding="utf-8") == sample_source

    def test_no_backup_overrides_environment(
        self, runner: CliRunner, sample_js_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PRF_BACKUP", "true")

        result = runner.invoke(cli, ["fix", "app.js", "--no-backup"])

        assert result.exit_code == 0, result.output
        assert not sample_js_file.with_name("app.js.backup").exists()

    def test_missing_file(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["fix", "missing.js"])

        assert result.exit_code == 1
        assert "No document found. Failed" in result.output

    def test_no_matches(self, runner: CliRunner, temp_workspace: Path) -> None:
        (temp_workspace / "plain.js").write_text("const a = 1;\n", encoding="utf-8")

        result = runner.invoke(cli, ["fix", "plain.js"])

        assert result.exit_code == 0, result.output
        assert "Found 0 promises" in result.output
        assert "Exiting. No matches." in result.output

    def test_directory_argument(self, runner: CliRunner, temp_workspace: Path) -> None:
        src = temp_workspace / "src"
        src.mkdir()
        (src / "a.js").write_text("a.then(x);\n", encoding="utf-8")
        (src / "b.ts").write_text("b.then(y).catch(z);\n", encoding="utf-8")
        (src / "c.txt").write_text("c.then(q);\n", encoding="utf-8")

        result = runner.invoke(cli, ["fix", "src"])

        assert result.exit_code == 0, result.output
        assert "Promise chains: 2" in result.output
        assert (src / "a.js").read_text(encoding="utf-8") == "a.then(x).catch(noop);\n"
        assert (src / "b.ts").read_text(encoding="utf-8") == "b.then(y).catch(z);\n"
        assert (src / "c.txt").read_text(encoding="utf-8") == "c.then(q);\n"

    def test_bracketed_file_name_is_reported_verbatim(
        self, runner: CliRunner, temp_workspace: Path
    ) -> None:
        pages = temp_workspace / "pages"
        pages.mkdir()
        (pages / "[id].js").write_text("load().then(show)", encoding="utf-8")

        result = runner.invoke(cli, ["fix", "--dry-run", "pages"])

        assert result.exit_code == 0, result.output
        assert "Found 1 promises in pages/[id].js" in result.output
        assert "pages/[id].js:1:18" in result.output

    def test_write_failure_lists_rewritten_files(
        self, runner: CliRunner, temp_workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (temp_workspace / "a.js").write_text("a.then(x)\n", encoding="utf-8")
        (temp_workspace / "b.js").write_text("b.then(y)\n", encoding="utf-8")
        real_write = fixer_module.atomic_write_text

        def failing_write(file_path: Path, content: str) -> None:
            if file_path.name == "b.js":
                raise OSError("disk full")
            real_write(file_path, content)

        monkeypatch.setattr(fixer_module, "atomic_write_text", failing_write)

        result = runner.invoke(cli, ["fix", "a.js", "b.js", "--log-level", "CRITICAL"])

        assert result.exit_code == 1
        assert "Error writing fixes" in result.output
        assert "Already rewritten before the failure" in result.output
        assert "  a.js" in result.output
        assert (temp_workspace / "b.js").read_text(encoding="utf-8") == "b.then(y)\n"

    def test_config_file(self, runner: CliRunner, temp_workspace: Path, sample_js_file: Path) -> None:
        config_file = temp_workspace / "promise-fixer.yaml"
        config_file.write_text("fix:\n  noop_handler: fromConfig\n", encoding="utf-8")

        result = runner.invoke(cli, ["fix", "app.js", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert ".catch(fromConfig)" in sample_js_file.read_text(encoding="utf-8")

    def test_log_file(self, runner: CliRunner, temp_workspace: Path, sample_js_file: Path) -> None:
        log_file = temp_workspace / "fixer.log"

        result = runner.invoke(cli, ["fix", "app.js", "--log-file", str(log_file)])

        assert result.exit_code == 0, result.output
        assert "Inserted 2 rejection handler(s)" in log_file.read_text(encoding="utf-8")


class TestAnalyzeCommand:
    """Tests for `promise-fixer analyze`."""

    def test_reports_without_editing(
        self, runner: CliRunner, sample_js_file: Path, sample_source: str
    ) -> None:
        result = runner.invoke(cli, ["analyze", "app.js"])

        assert result.exit_code == 0, result.output
        assert "Found 3 promises in app.js" in result.output
        assert "second-callback" in result.output
        assert "unhandled" in result.output
        assert "3 promise chains, 2 without rejection handling" in result.output
        assert sample_js_file.read_text(encoding="utf-8") == sample_source

    def test_json_report(self, runner: CliRunner, sample_js_file: Path) -> None:
        result = runner.invoke(cli, ["analyze", "app.js", "--json", "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert len(report) == 1
        entry = report[0]
        assert entry["path"] == str(sample_js_file.resolve())
        assert [site["pattern"] for site in entry["sites"]] == [
            "none",
            "none",
            "second-callback",
        ]
        assert [edit["text"] for edit in entry["edits"]] == [".catch(noop)", ".catch(noop)"]
        assert entry["audit"]["chain_count"] == 3
        assert entry["audit"]["mismatch"] is True

    def test_no_matches(self, runner: CliRunner, temp_workspace: Path) -> None:
        (temp_workspace / "plain.js").write_text("export {};\n", encoding="utf-8")

        result = runner.invoke(cli, ["analyze", "plain.js"])

        assert result.exit_code == 0, result.output
        assert "Found 0 promises in plain.js" in result.output
        assert "Exiting. No matches." in result.output

    def test_missing_file(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["analyze", "missing.js"])

        assert result.exit_code == 1
        assert "No document found. Failed" in result.output

    def test_lookahead_option(self, runner: CliRunner, temp_workspace: Path) -> None:
        js_file = temp_workspace / "far.js"
        js_file.write_text("p.then(f)" + " " * 25 + ".catch(g);\n", encoding="utf-8")

        narrow = runner.invoke(cli, ["analyze", "far.js", "--json", "--log-level", "ERROR"])
        wide = runner.invoke(
            cli,
            ["analyze", "far.js", "--json", "--log-level", "ERROR", "--catch-lookahead", "40"],
        )

        assert json.loads(narrow.stdout)[0]["sites"][0]["handled"] is False
        assert json.loads(wide.stdout)[0]["sites"][0]["handled"] is True


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_paths_are_required() -> None:
    result = CliRunner().invoke(cli, ["fix"])

    assert result.exit_code == 2
    assert "Missing argument" in result.output


class TestSanitizeForOutput:
    """Tests for sanitize_for_output."""

    def test_plain_value_is_unchanged(self) -> None:
        assert sanitize_for_output("src/app.js") == "src/app.js"

    @pytest.mark.parametrize("value", ["evil\x1b[31m.js", "a\nb.js", "tab\t.js", "del\x7f"])
    def test_control_characters_are_redacted(self, value: str) -> None:
        assert sanitize_for_output(value) == "[REDACTED]"
