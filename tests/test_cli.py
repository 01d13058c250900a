import io
import json
import subprocess
import sys
from pathlib import Path

from parlance.cli import run_cli

ROOT = Path(__file__).resolve().parents[1]


def _write_rules(tmp_path: Path, rules: dict) -> Path:
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(rules))
    return path


def test_cli_expands_rule_book(tmp_path: Path):
    rules_file = _write_rules(
        tmp_path,
        {"origin": "#greeting#, #name#!", "greeting": "Hello", "name": "Ada"},
    )
    trace_file = tmp_path / "trace.jsonl"

    result = subprocess.run(
        [sys.executable, "-m", "parlance.cli", str(rules_file), "--trace-jsonl", str(trace_file)],
        check=True,
        capture_output=True,
        text=True,
        cwd=ROOT,
    )

    summary = json.loads(result.stdout)
    assert summary["origin"] == "#origin#"
    assert summary["tagging"] == "flat"
    assert summary["results"] == ["Hello, Ada!"]
    assert summary["errors"] == 0
    assert summary["rule_counts"] == {"greeting": 1, "name": 1, "origin": 1}
    trace_lines = trace_file.read_text().strip().splitlines()
    assert len(trace_lines) == 3


def test_cli_count_and_seed(tmp_path: Path, capsys):
    rules_file = _write_rules(tmp_path, {"origin": ["a", "b", "c"]})

    code = run_cli([str(rules_file), "--count", "3", "--seed", "5"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert sorted(summary["results"]) == ["a", "b", "c"]
    assert summary["seed"] == 5
    assert summary["rule_counts"] == {"origin": 3}


def test_cli_scoped_tagging_and_english(tmp_path: Path, capsys):
    rules_file = _write_rules(
        tmp_path,
        {"origin": "[x:owl]#inner# #x.a#", "inner": "[x:cat]#x.s#"},
    )

    code = run_cli([str(rules_file), "--tagging", "scoped", "--english"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["results"] == ["cats an owl"]
    assert summary["tagging"] == "scoped"


def test_cli_dry_run_reports_dropped_rules_and_findings(tmp_path: Path, capsys):
    rules_file = _write_rules(tmp_path, {"origin": "#missing#", "bad#name": "x"})

    code = run_cli([str(rules_file), "--dry-run"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["rules"] == ["origin"]
    assert summary["dropped"] == ["bad#name"]
    assert summary["findings"][0]["kind"] == "unknown-reference"


def test_cli_reports_overflow_as_error_result(tmp_path: Path, capsys):
    rules_file = _write_rules(tmp_path, {"origin": "#origin#"})

    code = run_cli([str(rules_file), "--max-depth", "16", "--no-analyze"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["results"] == ["error: stack overflow"]
    assert summary["errors"] == 1


def test_cli_accepts_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps({"origin": "piped"})))

    code = run_cli(["-"])

    assert code == 0
    assert json.loads(capsys.readouterr().out)["results"] == ["piped"]


def test_cli_missing_file_fails(tmp_path: Path, capsys):
    code = run_cli([str(tmp_path / "nope.json")])

    assert code == 1
    assert "parlance:" in capsys.readouterr().err


def test_cli_rejects_non_object_rule_book(tmp_path: Path, capsys):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")

    assert run_cli([str(path)]) == 1
    assert "JSON object" in capsys.readouterr().err


def test_cli_warns_about_repeated_rule_names(tmp_path: Path, capsys, caplog):
    path = tmp_path / "dupes.json"
    path.write_text('{"origin": "first", "origin": "second", "bad#name": "x", "bad#name": "y"}')

    code = run_cli([str(path)])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["results"] == ["second"]
    assert "duplicate rule 'origin', using latest definition" in caplog.text


def test_cli_dry_run_lists_repeated_bad_name_once(tmp_path: Path, capsys):
    path = tmp_path / "dupes.json"
    path.write_text('{"origin": "ok", "bad#name": "x", "bad#name": "y"}')

    assert run_cli([str(path), "--dry-run"]) == 0
    assert json.loads(capsys.readouterr().out)["dropped"] == ["bad#name"]
