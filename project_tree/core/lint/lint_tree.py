from __future__ import annotations

import math
from collections import Counter
from typing import Any, Iterator, Optional

from project_tree.core.errors import TreeValidationError
from project_tree.core.status.derive_status import (
    ACTIVITY_STATUSES,
    DELIVERABLE_STATUSES,
    PART_STATUSES,
    is_known_status,
)


# Tree lint rules. The engine defaults bad values silently so dashboards keep
# rendering; lint is where those defaults become visible.
# - L_DUPLICATE_ID: an id used more than once anywhere in the tree
# - L_UNKNOWN_STATUS: status the engine will read as not_started
# - L_PROGRESS_OUT_OF_RANGE: stored progress outside [0, 100]
# - L_NON_FINITE_NUMBER: NaN or infinite progress or weight, read as 0
# - L_PART_WEIGHT_EXCEEDS_LIMIT: part weights sum past the deliverable's limit
# - L_INVALID_DATE_RANGE: planned end before planned start
# - L_MISSING_ASSIGNEE: activity without owner, part without assignee


def lint_tree(
    tree: dict[str, Any],
    *,
    part_statuses: frozenset[str] = PART_STATUSES,
) -> list[TreeValidationError]:
    """Lint a project tree document.

    Lint runs *in addition to* validation and works on partially-invalid
    input (best effort). The CLI prints lint + validation errors together.
    """

    file = _cast_optional_str(tree.get("__file__"))
    errors: list[TreeValidationError] = []

    def err(code: str, message: str, path: str) -> None:
        errors.append(TreeValidationError(code=code, message=message, file=file, path=path))

    # Rule: duplicate IDs
    located = list(_ids(tree))
    counts = Counter(rid for rid, _ in located)
    seen: set[str] = set()
    for rid, path in located:
        if counts[rid] < 2:
            continue
        if rid not in seen:
            seen.add(rid)
            continue
        err("L_DUPLICATE_ID", f"duplicate id: {rid} (count={counts[rid]})", f"{path}.id")

    for i, phase in _dicts(tree.get("phases")):
        p_path = f"phases[{i}]"
        _check_dates(phase, p_path, err)

        for j, activity in _dicts(phase.get("activities")):
            a_path = f"{p_path}.activities[{j}]"
            _check_status(activity, a_path, ACTIVITY_STATUSES, err)
            _check_finite(activity, a_path, ("progress_percent",), err)
            _check_progress(activity, a_path, err)
            _check_dates(activity, a_path, err)
            if not _present(activity.get("owner_user_id")):
                err("L_MISSING_ASSIGNEE", "activity has no owner_user_id", f"{a_path}.owner_user_id")

    for i, deliverable in _dicts(tree.get("deliverables")):
        d_path = f"deliverables[{i}]"
        _check_status(deliverable, d_path, DELIVERABLE_STATUSES, err)
        _check_finite(deliverable, d_path, ("weight",), err)

        part_weight_total = 0.0
        for j, part in _dicts(deliverable.get("parts")):
            pt_path = f"{d_path}.parts[{j}]"
            _check_status(part, pt_path, part_statuses, err)
            _check_finite(part, pt_path, ("progress_percent", "part_weight"), err)
            _check_progress(part, pt_path, err)
            if not _present(part.get("assigned_user_id")):
                err("L_MISSING_ASSIGNEE", "part has no assigned_user_id", f"{pt_path}.assigned_user_id")
            weight = part.get("part_weight")
            if _is_number(weight):
                part_weight_total += weight

        limit = _weight_limit(deliverable)
        if limit is not None and part_weight_total > limit:
            err(
                "L_PART_WEIGHT_EXCEEDS_LIMIT",
                f"part weights sum to {part_weight_total:g}, limit is {limit:g}",
                f"{d_path}.parts",
            )

    return _sorted(errors)


def _ids(tree: dict[str, Any]) -> Iterator[tuple[str, str]]:
    for key, child_key in (("phases", "activities"), ("deliverables", "parts")):
        for i, rec in _dicts(tree.get(key)):
            path = f"{key}[{i}]"
            if _present(rec.get("id")):
                yield str(rec["id"]), path
            for j, child in _dicts(rec.get(child_key)):
                if _present(child.get("id")):
                    yield str(child["id"]), f"{path}.{child_key}[{j}]"


def _check_status(rec: dict[str, Any], path: str, allowed: frozenset[str], err) -> None:
    status = rec.get("status")
    if not is_known_status(status, allowed):
        err(
            "L_UNKNOWN_STATUS",
            f"unknown status {status!r}, read as not_started (expected one of {sorted(allowed)})",
            f"{path}.status",
        )


def _check_finite(rec: dict[str, Any], path: str, fields: tuple[str, ...], err) -> None:
    for field in fields:
        v = rec.get(field)
        if isinstance(v, float) and not math.isfinite(v):
            err("L_NON_FINITE_NUMBER", f"{field} is {v!r}, read as 0", f"{path}.{field}")


def _check_progress(rec: dict[str, Any], path: str, err) -> None:
    progress = rec.get("progress_percent")
    if _is_number(progress) and not 0 <= progress <= 100:
        err(
            "L_PROGRESS_OUT_OF_RANGE",
            f"progress_percent {progress:g} is outside [0, 100] and will be clamped",
            f"{path}.progress_percent",
        )


def _check_dates(rec: dict[str, Any], path: str, err) -> None:
    start = rec.get("planned_start_date")
    end = rec.get("planned_end_date")
    if start is None or end is None:
        return
    # ISO dates order lexically; YAML may already hand us date objects.
    if str(end) < str(start):
        err(
            "L_INVALID_DATE_RANGE",
            f"planned_end_date {end} is before planned_start_date {start}",
            f"{path}.planned_end_date",
        )


def _weight_limit(deliverable: dict[str, Any]) -> Optional[float]:
    unit = deliverable.get("weight_unit")
    if isinstance(unit, str) and unit.strip().lower() == "percent":
        return 100
    weight = deliverable.get("weight")
    return weight if _is_number(weight) else None


def _dicts(value: Any) -> Iterator[tuple[int, dict[str, Any]]]:
    if not isinstance(value, list):
        return
    for i, rec in enumerate(value):
        if isinstance(rec, dict):
            yield i, rec


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _present(v: Any) -> bool:
    return v is not None and str(v).strip() != ""


def _sorted(errors: list[TreeValidationError]) -> list[TreeValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None
