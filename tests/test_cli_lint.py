import json

from typer.testing import CliRunner

from project_tree.cli import app


runner = CliRunner()


def test_cli_lint_success():
    r = runner.invoke(app, ["lint", "examples/consulting-project.yaml"])
    assert r.exit_code == 0
    assert "OK: lint passed" in r.stdout


def test_cli_lint_reports_issues():
    r = runner.invoke(app, ["lint", "examples/lint-issues.yaml"])
    assert r.exit_code == 2
    assert "L_DUPLICATE_ID" in r.output
    assert "L_PART_WEIGHT_EXCEEDS_LIMIT" in r.output


def test_cli_lint_json_mixes_lint_and_validation():
    r = runner.invoke(app, ["lint", "examples/invalid-structure.yaml", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert "validate" in {e["source"] for e in payload["errors"]}


def test_cli_lint_json_sources():
    r = runner.invoke(app, ["lint", "examples/lint-issues.yaml", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert {e["source"] for e in payload["errors"]} == {"lint"}
    assert payload["error_count"] == 6


def test_cli_lint_non_finite_numbers():
    r = runner.invoke(app, ["lint", "examples/non-finite.yaml"])
    assert r.exit_code == 2
    assert "phases[0].activities[0].progress_percent: L_NON_FINITE_NUMBER" in r.output
