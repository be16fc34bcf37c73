from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Iterable, Optional, cast

from project_tree.core.errors import TreeValidationError
from project_tree.core.model import (
    RawActivity,
    RawDeliverable,
    RawPart,
    RawPhase,
    RawProjectTree,
)


log = logging.getLogger(__name__)


def validate_tree(
    tree: dict[str, Any],
) -> tuple[Optional[RawProjectTree], list[TreeValidationError]]:
    """Convert a loosely-typed project document into typed raw records.

    Structural problems (a collection that is not an array, a record that is
    not an object, a missing id or title) are errors. Value problems (odd
    statuses, non-numeric or non-finite progress and weights) are defaulted here and reported
    by lint instead.

    Returns (tree, errors). Tree is None when errors exist.
    """

    file = cast(Optional[str], tree.get("__file__"))
    errors: list[TreeValidationError] = []

    project_id = tree.get("project_id")
    if project_id is not None and not isinstance(project_id, (str, int)):
        errors.append(
            TreeValidationError(
                code="E_INVALID_TYPE",
                message="project_id must be a string",
                file=file,
                path="project_id",
            )
        )
        project_id = None

    phases: list[RawPhase] = []
    for i, raw in _records(tree, "phases", file, errors):
        phase = _parse_phase(raw, f"phases[{i}]", file, errors)
        if phase is not None:
            phases.append(phase)

    deliverables: list[RawDeliverable] = []
    for i, raw in _records(tree, "deliverables", file, errors):
        deliverable = _parse_deliverable(raw, f"deliverables[{i}]", file, errors)
        if deliverable is not None:
            deliverables.append(deliverable)

    if errors:
        return None, _sorted(errors)

    return (
        RawProjectTree(
            project_id=str(project_id) if project_id is not None else None,
            phases=tuple(phases),
            deliverables=tuple(deliverables),
        ),
        [],
    )


def summarize_tree(tree: RawProjectTree) -> str:
    activities = sum(len(p.activities) for p in tree.phases)
    parts = sum(len(d.parts) for d in tree.deliverables)
    return (
        f"OK: project {tree.project_id or '<unknown>'} ("
        f"phases={len(tree.phases)}, activities={activities}, "
        f"deliverables={len(tree.deliverables)}, parts={parts})"
    )


def _records(
    container: dict[str, Any],
    key: str,
    file: Optional[str],
    errors: list[TreeValidationError],
    prefix: str = "",
) -> list[tuple[int, dict[str, Any]]]:
    value = container.get(key)
    if value is None:
        return []
    path = f"{prefix}{key}"
    if not isinstance(value, list):
        errors.append(
            TreeValidationError(
                code="E_INVALID_TYPE",
                message=f"{key} must be an array",
                file=file,
                path=path,
            )
        )
        return []

    out: list[tuple[int, dict[str, Any]]] = []
    for i, raw in enumerate(value):
        if not isinstance(raw, dict):
            errors.append(
                TreeValidationError(
                    code="E_INVALID_TYPE",
                    message="record must be an object",
                    file=file,
                    path=f"{path}[{i}]",
                )
            )
            continue
        out.append((i, raw))
    return out


def _identity(
    raw: dict[str, Any], path: str, file: Optional[str], errors: list[TreeValidationError]
) -> Optional[tuple[str, str]]:
    rid = raw.get("id")
    if isinstance(rid, bool) or not isinstance(rid, (str, int)) or not str(rid).strip():
        errors.append(
            TreeValidationError(
                code="E_REQUIRED_FIELD",
                message="id is required and must be a non-empty string",
                file=file,
                path=f"{path}.id",
            )
        )
        return None

    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append(
            TreeValidationError(
                code="E_REQUIRED_FIELD",
                message="title is required and must be a non-empty string",
                file=file,
                path=f"{path}.title",
            )
        )
        return None

    return str(rid), title


def _parse_phase(
    raw: dict[str, Any], path: str, file: Optional[str], errors: list[TreeValidationError]
) -> Optional[RawPhase]:
    ident = _identity(raw, path, file, errors)

    activities: list[RawActivity] = []
    for i, raw_activity in _records(raw, "activities", file, errors, prefix=f"{path}."):
        a_path = f"{path}.activities[{i}]"
        a_ident = _identity(raw_activity, a_path, file, errors)
        if a_ident is None:
            continue
        activities.append(
            RawActivity(
                id=a_ident[0],
                title=a_ident[1],
                description=_text(raw_activity.get("description")),
                status=_text(raw_activity.get("status")),
                progress_percent=_number(raw_activity.get("progress_percent"), f"{a_path}.progress_percent"),
                owner_user_id=_text(raw_activity.get("owner_user_id")),
                planned_start_date=_date(raw_activity.get("planned_start_date")),
                planned_end_date=_date(raw_activity.get("planned_end_date")),
                actual_start_date=_date(raw_activity.get("actual_start_date")),
                actual_end_date=_date(raw_activity.get("actual_end_date")),
            )
        )

    if ident is None:
        return None
    return RawPhase(
        id=ident[0],
        title=ident[1],
        description=_text(raw.get("description")),
        planned_start_date=_date(raw.get("planned_start_date")),
        planned_end_date=_date(raw.get("planned_end_date")),
        display_order=_order(raw.get("display_order")),
        activities=tuple(activities),
    )


def _parse_deliverable(
    raw: dict[str, Any], path: str, file: Optional[str], errors: list[TreeValidationError]
) -> Optional[RawDeliverable]:
    ident = _identity(raw, path, file, errors)

    parts: list[RawPart] = []
    for i, raw_part in _records(raw, "parts", file, errors, prefix=f"{path}."):
        p_path = f"{path}.parts[{i}]"
        p_ident = _identity(raw_part, p_path, file, errors)
        if p_ident is None:
            continue
        parts.append(
            RawPart(
                id=p_ident[0],
                title=p_ident[1],
                description=_text(raw_part.get("description")),
                status=_text(raw_part.get("status")),
                part_weight=_number(raw_part.get("part_weight"), f"{p_path}.part_weight"),
                progress_percent=_number(raw_part.get("progress_percent"), f"{p_path}.progress_percent"),
                assigned_user_id=_text(raw_part.get("assigned_user_id")),
            )
        )

    if ident is None:
        return None
    return RawDeliverable(
        id=ident[0],
        title=ident[1],
        description=_text(raw.get("description")),
        status=_text(raw.get("status")),
        weight=_number(raw.get("weight"), f"{path}.weight"),
        weight_unit=_text(raw.get("weight_unit")),
        display_order=_order(raw.get("display_order")),
        parts=tuple(parts),
    )


def _text(v: Any) -> Optional[str]:
    if v is None:
        return None
    return v if isinstance(v, str) else str(v)


def _number(v: Any, path: str) -> float:
    if v is None:
        return 0
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        log.debug("%s: non-numeric value %r, defaulting to 0", path, v)
        return 0
    if not math.isfinite(v):
        log.debug("%s: non-finite value %r, defaulting to 0", path, v)
        return 0
    return v


def _date(v: Any) -> Optional[str]:
    if isinstance(v, date):
        return v.isoformat()
    if isinstance(v, str) and v.strip():
        return v.strip()
    return None


def _order(v: Any) -> Optional[int]:
    if isinstance(v, bool) or not isinstance(v, int):
        return None
    return v


def _sorted(errors: Iterable[TreeValidationError]) -> list[TreeValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
