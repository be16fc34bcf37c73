from __future__ import annotations

import json
import os
from typing import Any, Optional

import typer
import yaml

from project_tree.core.config.scoring_config import ScoringConfigError, load_and_merge
from project_tree.core.errors import TreeError, TreeLoadError, TreeValidationError
from project_tree.core.format.format_tree import ProjectTreeResponse, build_project_tree
from project_tree.core.io.load_tree import load_tree
from project_tree.core.lint.lint_tree import lint_tree
from project_tree.core.model import FormattedTree, RawProjectTree, TreeNode
from project_tree.core.query.query_tree import apply_filters
from project_tree.core.stats.compute_stats import compute_stats, format_stats
from project_tree.core.status.derive_status import ACTIVITY_STATUSES, DELIVERABLE_STATUSES
from project_tree.core.validate.validate_tree import summarize_tree, validate_tree
from project_tree.utils.logging_setup import LOG_LEVEL_ENV, setup_logging

app = typer.Typer(add_completion=False, no_args_is_help=True)

FORMATS = ("text", "json")


@app.callback()
def _callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help=f"DEBUG|INFO|WARNING|ERROR (default: ${LOG_LEVEL_ENV} or WARNING)"
    ),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this rotating file"),
) -> None:
    """Project tree CLI: phase/deliverable rollups, queries and statistics."""
    if log_level or log_file or os.environ.get(LOG_LEVEL_ENV):
        setup_logging(log_level, log_file)


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a project tree file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Check that a project tree document has a well-formed record structure."""
    _check_format("validate", format)

    try:
        doc = load_tree(path)
    except TreeLoadError as e:
        if format == "json":
            _emit_json("validate", False, exit_code=1, errors=[e])
        _print_errors([e])
        raise typer.Exit(code=1)

    tree, errors = validate_tree(doc)
    if errors:
        if format == "json":
            _emit_json("validate", False, exit_code=2, errors=errors)
        _print_errors(errors)
        raise typer.Exit(code=2)

    assert tree is not None

    if format == "text":
        typer.echo(summarize_tree(tree))
        return

    summary = {
        "project_id": tree.project_id,
        "phase_count": len(tree.phases),
        "activity_count": sum(len(p.activities) for p in tree.phases),
        "deliverable_count": len(tree.deliverables),
        "part_count": sum(len(d.parts) for d in tree.deliverables),
    }
    _emit_json("validate", True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a project tree file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint a project tree (data-quality rules beyond record structure)."""
    _check_format("lint", format)

    try:
        doc = load_tree(path)
    except TreeLoadError as e:
        if format == "json":
            _emit_json("lint", False, exit_code=1, errors=[e])
        _print_errors([e])
        raise typer.Exit(code=1)

    lint_errors = lint_tree(doc)
    _, validation_errors = validate_tree(doc)
    errors: list[TreeError] = [*lint_errors, *validation_errors]

    if format == "text":
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json("lint", False, exit_code=2, errors=errors)
    _emit_json("lint", True, exit_code=0, errors=[])


@app.command("tree")
def tree_cmd(
    path: str = typer.Argument(..., help="Path to a project tree file (.yaml/.yml/.json)"),
    project_id: Optional[str] = typer.Option(None, "--project-id", help="Override the document's project id"),
    search: Optional[str] = typer.Option(None, "--search", help="Case-insensitive name/description search"),
    status: Optional[str] = typer.Option(None, "--status", help="Keep phases/deliverables with this status"),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Keep nodes with work owned by this user id"),
    scoring_file: Optional[str] = typer.Option(None, "--scoring-file", help="YAML part-score overrides"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Print the formatted project tree with rolled-up status and progress."""
    _check_format("tree", format)
    scores = _load_scores(scoring_file)
    _check_status_option("tree", status, scores)
    raw = _load_raw(path)

    response = build_project_tree(raw, project_id=project_id, scores=scores)
    filtered = apply_filters(response.tree, search_term=search, status=status, assignee=assignee)

    if format == "json":
        payload = ProjectTreeResponse(
            project_id=response.project_id, tree=filtered, summary=response.summary
        ).to_dict()
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(
        f"Project {response.project_id or '<unknown>'}: overall progress {response.summary.overall_progress}%"
    )
    for line in _outline(filtered):
        typer.echo(line)


@app.command("stats")
def stats_cmd(
    path: str = typer.Argument(..., help="Path to a project tree file (.yaml/.yml/.json)"),
    search: Optional[str] = typer.Option(None, "--search", help="Case-insensitive name/description search"),
    status: Optional[str] = typer.Option(None, "--status", help="Keep phases/deliverables with this status"),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Keep nodes with work owned by this user id"),
    scoring_file: Optional[str] = typer.Option(None, "--scoring-file", help="YAML part-score overrides"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Print completion statistics for a project tree (optionally filtered)."""
    _check_format("stats", format)
    scores = _load_scores(scoring_file)
    _check_status_option("stats", status, scores)
    raw = _load_raw(path)

    response = build_project_tree(raw, scores=scores)
    filtered = apply_filters(response.tree, search_term=search, status=status, assignee=assignee)
    stats = compute_stats(filtered)

    if format == "json":
        payload = {"projectId": response.project_id, "stats": stats.to_dict()}
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    typer.echo(format_stats(stats))


@app.command("scores")
def scores_cmd(
    scoring_file: Optional[str] = typer.Option(
        None,
        "--scoring-file",
        help="Optional YAML file to add/override part scores",
    ),
) -> None:
    """List the part-status scores used for weighted deliverable progress."""
    scores = _load_scores(scoring_file)
    typer.echo("Part scores:")
    for status in sorted(scores):
        typer.echo(f"- {status}: {scores[status]:g}")
    typer.echo("- (any other status): 0")


def _load_raw(path: str) -> RawProjectTree:
    try:
        doc = load_tree(path)
    except TreeLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    raw, errors = validate_tree(doc)
    if errors or raw is None:
        _print_errors(errors)
        raise typer.Exit(code=2)
    return raw


def _load_scores(scoring_file: Optional[str]) -> dict[str, float]:
    try:
        return load_and_merge(scoring_file)
    except FileNotFoundError:
        _print_errors(
            [
                TreeLoadError(
                    code="E_SCORING_FILE_NOT_FOUND",
                    message=f"scoring file not found: {scoring_file}",
                    file=None,
                    path="scoring_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except (ScoringConfigError, yaml.YAMLError) as e:
        _print_errors(
            [
                TreeValidationError(
                    code="E_SCORING_FILE_INVALID",
                    message=str(e),
                    file=scoring_file,
                    path="scoring_file",
                )
            ]
        )
        raise typer.Exit(code=2)


def _check_format(command: str, format: str) -> None:
    if format in FORMATS:
        return
    err = TreeValidationError(
        code=f"E_{command.upper()}_UNKNOWN_FORMAT",
        message=f"unknown format: {format} (choose one of: {', '.join(FORMATS)})",
        file=None,
        path="format",
    )
    _print_errors([err])
    raise typer.Exit(code=2)


def _check_status_option(command: str, status: Optional[str], scores: dict[str, float]) -> None:
    if status is None:
        return
    known = ACTIVITY_STATUSES | DELIVERABLE_STATUSES | frozenset(scores)
    if status.strip().lower() in known:
        return
    err = TreeValidationError(
        code=f"E_{command.upper()}_UNKNOWN_STATUS",
        message=f"unknown status: {status} (choose one of: {', '.join(sorted(known))})",
        file=None,
        path="status",
    )
    _print_errors([err])
    raise typer.Exit(code=2)


def _emit_json(
    command: str,
    ok: bool,
    *,
    exit_code: int,
    errors: list[TreeError],
    summary: dict[str, Any] | None = None,
) -> None:
    payload: dict[str, Any] = {
        "tool": "project-tree",
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in errors],
    }
    if command == "validate":
        payload["summary"] = summary
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _to_item(e: TreeError) -> dict[str, Any]:
    if isinstance(e, TreeLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _outline(tree: FormattedTree) -> list[str]:
    lines = ["Phases:"]
    lines += _node_lines(tree.phases) or ["  (none)"]
    lines.append("Deliverables:")
    lines += _node_lines(tree.deliverables) or ["  (none)"]
    return lines


def _node_lines(nodes: tuple[TreeNode, ...], depth: int = 1) -> list[str]:
    out: list[str] = []
    for node in nodes:
        extra = ""
        if node.weight is not None:
            extra = f", weight {node.weight:g} {node.weight_unit}"
        who = node.owner or node.assigned_to
        if who:
            extra += f", {who}"
        out.append(f"{'  ' * depth}- [{node.status}] {node.id} {node.name} ({node.progress}%{extra})")
        out += _node_lines(node.children or (), depth + 1)
    return out


def _print_errors(errors: list[TreeError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="project-tree")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
