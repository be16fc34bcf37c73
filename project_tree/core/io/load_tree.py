from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from project_tree.core.errors import TreeLoadError


PARSERS: dict[str, tuple[str, Callable[[str], Any]]] = {
    ".yaml": ("E_YAML_PARSE", yaml.safe_load),
    ".yml": ("E_YAML_PARSE", yaml.safe_load),
    ".json": ("E_JSON_PARSE", json.loads),
}
SUPPORTED_SUFFIXES = tuple(PARSERS)

TREE_COLLECTIONS = ("phases", "deliverables")


def load_tree(path: str, *, project_id: Optional[str] = None) -> dict[str, Any]:
    """Load one project's pre-joined snapshot from a YAML/JSON document.

    The project id is, in order: the caller's project_id, the document's
    project_id, the file stem. Missing or null phases/deliverables become
    empty lists. Records are left untyped; validate_tree owns their shape.
    """

    p = Path(path)
    if not p.is_file():
        raise TreeLoadError(
            code="E_FILE_NOT_FOUND",
            message="no tree document at this path",
            file=str(p),
        )

    suffix = p.suffix.lower()
    if suffix not in PARSERS:
        raise TreeLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message=f"tree documents must be one of: {', '.join(SUPPORTED_SUFFIXES)}",
            file=str(p),
        )

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise TreeLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    parse_code, parse = PARSERS[suffix]
    try:
        data = parse(text)
    except (yaml.YAMLError, ValueError) as e:
        raise TreeLoadError(code=parse_code, message=str(e), file=str(p)) from e

    if data is None:
        raise TreeLoadError(code="E_EMPTY_DOCUMENT", message="tree document is empty", file=str(p))
    if not isinstance(data, dict):
        raise TreeLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="a tree document must be a mapping with phases and deliverables",
            file=str(p),
        )

    doc: dict[str, Any] = {"project_id": _project_id(project_id, data.get("project_id"), p)}
    for key in TREE_COLLECTIONS:
        value = data.get(key)
        doc[key] = [] if value is None else value
    doc["__file__"] = str(p)
    return doc


def _project_id(requested: Optional[str], stored: Any, p: Path) -> Any:
    if requested is not None:
        return requested
    if stored is None or (isinstance(stored, str) and not stored.strip()):
        return p.stem
    # Non-string ids are passed on for validate_tree to reject.
    return stored
