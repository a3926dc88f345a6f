"""Tests for the CLI entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import orjson
from typer.testing import CliRunner

from lintcrumb.cli import app
from lintcrumb.models import Report

runner = CliRunner()


class TestCLI:
    """Tests for the lintcrumb CLI."""

    def test_text_report(self, sample_repo: Path) -> None:
        result = runner.invoke(app, [str(sample_repo)])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "models.py:7: [warning] style.mutable-default-argument: "
            "function 'User.__init__' uses a mutable literal as a default argument",
            "utils.py:1: [warning] doc.missing-docstring: "
            "function 'format_name' is missing a docstring",
            "utils.py:1: [warning] type.missing-annotation: "
            "function 'format_name' has incomplete type annotations",
            "utils.py:4: [warning] style.bare-exception-handler: "
            "'format_name' has a catch-all exception handler",
        ]
        assert "3 file(s) checked: 0 error, 4 warning, 0 info" in result.output

    def test_json_report(self, sample_repo: Path) -> None:
        result = runner.invoke(app, [str(sample_repo), "--format", "json"])
        assert result.exit_code == 0
        data = orjson.loads(result.stdout)
        assert data["files"] == ["main.py", "models.py", "utils.py"]
        assert data["summary"] == {"error": 0, "warning": 4, "info": 0}
        assert data["incomplete"] is False

    def test_toon_report(self, sample_repo: Path) -> None:
        result = runner.invoke(app, [str(sample_repo), "-f", "toon"])
        assert result.exit_code == 0
        assert result.stdout.startswith("incomplete: false\n")
        assert "violations[4]{path,line,severity,rule_id,message}:" in result.stdout

    def test_fail_on_warning(self, sample_repo: Path) -> None:
        result = runner.invoke(app, [str(sample_repo), "--fail-on", "warning"])
        assert result.exit_code == 1

    def test_disable_rules(self, sample_repo: Path) -> None:
        args = [str(sample_repo), "--fail-on", "warning"]
        for rule_id in (
            "style.mutable-default-argument",
            "doc.missing-docstring",
            "type.missing-annotation",
            "style.bare-exception-handler",
        ):
            args += ["--disable", rule_id]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert result.stdout == ""

    def test_enable_rule(self, sample_repo: Path) -> None:
        result = runner.invoke(
            app, [str(sample_repo), "-e", "doc.missing-module-docstring"]
        )
        assert result.exit_code == 0
        assert "main.py:1: [info] doc.missing-module-docstring" in result.stdout

    def test_unknown_rule_id(self, sample_repo: Path) -> None:
        result = runner.invoke(app, [str(sample_repo), "--enable", "doc.nope"])
        assert result.exit_code == 2
        assert "doc.nope" in result.output

    def test_config_file_in_root(self, sample_repo: Path) -> None:
        (sample_repo / "lintcrumb.toml").write_text(
            '[severity]\n"style.bare-exception-handler" = "error"\n',
            encoding="utf-8",
        )
        result = runner.invoke(app, [str(sample_repo)])
        assert result.exit_code == 1
        assert "[error] style.bare-exception-handler" in result.stdout

    def test_explicit_config_option(self, sample_repo: Path, tmp_path: Path) -> None:
        config = tmp_path / "strict.toml"
        config.write_text('fail_on = "warning"\n', encoding="utf-8")
        result = runner.invoke(app, [str(sample_repo), "--config", str(config)])
        assert result.exit_code == 1

    def test_invalid_config(self, sample_repo: Path) -> None:
        (sample_repo / "lintcrumb.toml").write_text("colour = true\n", encoding="utf-8")
        result = runner.invoke(app, [str(sample_repo)])
        assert result.exit_code == 2
        assert "Invalid config" in result.output

    def test_unsupported_language(self, sample_repo: Path) -> None:
        result = runner.invoke(app, [str(sample_repo), "--language", "cobol"])
        assert result.exit_code == 2

    def test_nonexistent_root(self, tmp_path: Path) -> None:
        result = runner.invoke(app, [str(tmp_path / "nope")])
        assert result.exit_code != 0

    def test_empty_root(self, tmp_path: Path) -> None:
        (tmp_path / "readme.txt").write_text("hello", encoding="utf-8")
        result = runner.invoke(app, [str(tmp_path)])
        assert result.exit_code == 0
        assert "0 file(s) checked" in result.output

    def test_degraded_file_warning(self, tmp_path: Path) -> None:
        (tmp_path / "broken.py").write_text("def broken(:\n", encoding="utf-8")
        result = runner.invoke(app, [str(tmp_path)])
        assert "Warning: broken.py: parse-degraded: syntax error" in result.output

    def test_incomplete_run_exit_code(self, sample_repo: Path) -> None:
        with patch(
            "lintcrumb.cli.analyze_root", return_value=Report(incomplete=True)
        ):
            result = runner.invoke(app, [str(sample_repo)])
        assert result.exit_code == 130
        assert "(incomplete)" in result.output

    def test_list_rules(self) -> None:
        result = runner.invoke(app, ["--list-rules"])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert len(lines) == 12
        assert lines[0].startswith("doc.missing-docstring")
        assert any(
            line.startswith("file.too-long") and " off " in line for line in lines
        )
