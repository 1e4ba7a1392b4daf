"""Tests for the tiergate CLI.

Covers every command, --json output, config loading errors and exit
codes via CliRunner. Only paths that never reach a model backend run
unpatched.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from tiergate import __version__
from tiergate.cli import app
from tiergate.schemas.decomposition import DecompositionResult, Subtask

# NO_COLOR=1 prevents Rich from injecting ANSI codes inside option names,
# which breaks substring matching in CI (headless, no TTY).
# COLUMNS=200 prevents wrapping that could split a flag across lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})


# ── Factories ──────────────────────────────────────────────────────


def _write_config(tmp_path: Path, body: str = "") -> Path:
    history = (tmp_path / "history.jsonl").as_posix()
    path = tmp_path / "tiergate.toml"
    path.write_text(f'[history]\npath = "{history}"\n\n{body}', encoding="utf-8")
    return path


def _write_output(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "output.txt"
    path.write_text(text, encoding="utf-8")
    return path


# ── App ────────────────────────────────────────────────────────────


class TestApp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"tiergate {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("classify", "evaluate", "gate", "decompose", "recommend", "record", "config"):
            assert command in result.output

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.toml"), "config"])
        assert result.exit_code == 1
        assert "Error loading config" in result.output

    def test_invalid_config_file(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[tiergate]\ndelegation_level = 9\n", encoding="utf-8")
        result = runner.invoke(app, ["--config", str(path), "config"])
        assert result.exit_code == 1
        assert "Error loading config" in result.output


# ── classify ───────────────────────────────────────────────────────


class TestClassify:
    def test_table_output(self):
        result = runner.invoke(app, ["classify", "git status"])
        assert result.exit_code == 0
        assert "Routing Decision" in result.output
        assert "no_llm" in result.output

    def test_ladder_examples_shown(self):
        result = runner.invoke(app, ["classify", "write docstring for this function", "-l", "1"])
        assert result.exit_code == 0
        assert "1b-3b" in result.output
        assert "Example Models" in result.output
        assert "llama3.2:1b" in result.output

    def test_json_output(self):
        result = runner.invoke(app, ["classify", "create a crud endpoint", "--level", "1", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["route"] == "cloud"
        assert data["delegation_level"] == 1
        assert data["task_complexity"] == 3

    def test_level_zero(self):
        result = runner.invoke(app, ["classify", "write docstring", "-l", "0", "--json"])
        data = json.loads(result.output)
        assert data["route"] == "cloud"
        assert data["classification_layer"] == "level_gate"

    def test_level_from_config_file(self, tmp_path):
        config = _write_config(tmp_path, "[tiergate]\ndelegation_level = 5\n")
        result = runner.invoke(app, ["-c", str(config), "classify", "git status", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["delegation_level"] == 5

    def test_empty_description(self):
        result = runner.invoke(app, ["classify", "   "])
        assert result.exit_code == 1
        assert "Description cannot be empty" in result.output


# ── evaluate ───────────────────────────────────────────────────────


class TestEvaluate:
    def test_accepted_output(self, tmp_path):
        path = _write_output(tmp_path, "def add(a, b):\n    return a + b\n")
        result = runner.invoke(app, ["evaluate", str(path), "--language", "python"])
        assert result.exit_code == 0
        assert "ACCEPT" in result.output
        assert "Escalation Check" in result.output

    def test_rejected_output_exits_one(self, tmp_path):
        path = _write_output(tmp_path, "")
        result = runner.invoke(app, ["evaluate", str(path)])
        assert result.exit_code == 1
        assert "REJECT" in result.output
        assert "empty_output" in result.output

    def test_json_output(self, tmp_path):
        path = _write_output(tmp_path, "Maybe this works, perhaps it might not.")
        result = runner.invoke(app, ["evaluate", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["accept"] is True
        assert data["severity"] == "minor"
        assert data["signals"] == ["confidence_caveat"]

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["evaluate", str(tmp_path / "missing.txt")])
        assert result.exit_code == 1
        assert "File not found" in result.output


# ── gate ───────────────────────────────────────────────────────────


class TestGate:
    def test_accepted_output(self, tmp_path):
        path = _write_output(tmp_path, "Here is the implementation with every edge case handled.")
        result = runner.invoke(app, ["gate", str(path)])
        assert result.exit_code == 0
        assert "Quality Gate" in result.output
        assert "ACCEPT" in result.output
        assert "7/7 checks passed" in result.output

    def test_hard_failure_escalates(self, tmp_path):
        path = _write_output(tmp_path, "Updated src/app.py and also touched lib/util.py as needed.")
        result = runner.invoke(app, ["gate", str(path), "--allowed-file", "src/app.py"])
        assert result.exit_code == 1
        assert "ESCALATE" in result.output
        assert "lib/util.py" in result.output

    def test_json_output(self, tmp_path):
        path = _write_output(tmp_path, "Maybe this works, perhaps it might not, but the code is here.")
        result = runner.invoke(app, ["gate", str(path), "-s", "code", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["accepted"] is False
        assert data["should_retry"] is True
        assert [c["name"] for c in data["soft_failures"]] == ["no_hedging"]
        assert data["failure_signals"] == ["confidence_caveat"]

    def test_disabled_in_config(self, tmp_path):
        config = _write_config(tmp_path, "[quality_gate]\nenabled = false\n")
        path = _write_output(tmp_path, "TODO")
        result = runner.invoke(app, ["-c", str(config), "gate", str(path)])
        assert result.exit_code == 0
        assert "Quality gate disabled" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["gate", str(tmp_path / "missing.txt")])
        assert result.exit_code == 1
        assert "File not found" in result.output


# ── decompose ──────────────────────────────────────────────────────


class TestDecompose:
    def test_disabled_by_default(self):
        result = runner.invoke(app, ["decompose", "Build the billing service"])
        assert result.exit_code == 0
        assert "Not decomposed" in result.output
        assert "Decomposition disabled" in result.output

    def test_subtask_table(self):
        decomposition = DecompositionResult(
            decomposed=True,
            subtasks=[
                Subtask(id="1", description="Write the schema", estimated_level=2),
                Subtask(id="2", description="Write the handler", estimated_level=3,
                        depends_on=["1"]),
            ],
            reason="Decomposed into 2 subtasks",
        )
        with patch("tiergate.cli.decompose_task", new=AsyncMock(return_value=decomposition)):
            result = runner.invoke(app, ["decompose", "Build the billing service"])
        assert result.exit_code == 0
        assert "Decomposed into 2 subtasks" in result.output
        assert "Write the handler" in result.output

    def test_json_output(self):
        result = runner.invoke(app, ["decompose", "Build it", "--json"])
        data = json.loads(result.output)
        assert data["decomposed"] is False
        assert data["subtasks"] == []


# ── recommend / record ─────────────────────────────────────────────


class TestRecommend:
    def test_disabled_by_default(self):
        result = runner.invoke(app, ["recommend", "code_gen", "3"])
        assert result.exit_code == 0
        assert "Learner Recommendation" in result.output
        assert "Historical learning disabled" in result.output

    def test_json_with_learning_enabled(self, tmp_path):
        config = _write_config(tmp_path, "[routing]\nuse_historical_learning = true\n")
        result = runner.invoke(app, ["-c", str(config), "recommend", "code_gen", "3", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["sample_size"] == 0
        assert data["reason"] == "Insufficient data (0/50 records)"


class TestRecord:
    def test_appends_to_history(self, tmp_path):
        config = _write_config(tmp_path)
        result = runner.invoke(app, [
            "-c", str(config), "record", "Write the parser", "code_gen", "3", "success",
            "--quality", "0.8",
        ])
        assert result.exit_code == 0
        assert "Recorded" in result.output

        lines = (tmp_path / "history.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["outcome"] == "success"
        assert entry["level_used"] == 3
        assert entry["quality_signal"] == 0.8

    def test_invalid_level(self, tmp_path):
        config = _write_config(tmp_path)
        result = runner.invoke(app, [
            "-c", str(config), "record", "Write the parser", "code_gen", "9", "success",
        ])
        assert result.exit_code == 1
        assert not (tmp_path / "history.jsonl").exists()

    def test_invalid_outcome(self, tmp_path):
        config = _write_config(tmp_path)
        result = runner.invoke(app, [
            "-c", str(config), "record", "Write the parser", "code_gen", "3", "meh",
        ])
        assert result.exit_code != 0


# ── config ─────────────────────────────────────────────────────────


class TestConfigShow:
    def test_defaults(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "tiergate Configuration" in result.output
        assert "qwen2.5-coder:7b" in result.output
        assert "10000 chars" in result.output
        assert "Specialist Models" not in result.output

    def test_specialist_models_listed(self, tmp_path):
        config = _write_config(tmp_path, '[specialist_models]\ndocs = "llama3.2:3b"\n')
        result = runner.invoke(app, ["-c", str(config), "config"])
        assert result.exit_code == 0
        assert "Specialist Models" in result.output
        assert "llama3.2:3b" in result.output
