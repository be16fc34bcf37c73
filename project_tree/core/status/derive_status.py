from __future__ import annotations

import logging
from typing import Iterable, Optional

from project_tree.core.model import NodeType, StatusPolicy


log = logging.getLogger(__name__)

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
DONE = "done"
APPROVED = "approved"

ACTIVITY_STATUSES: frozenset[str] = frozenset({NOT_STARTED, IN_PROGRESS, DONE})
PART_STATUSES: frozenset[str] = frozenset({NOT_STARTED, IN_PROGRESS, APPROVED})
DELIVERABLE_STATUSES: frozenset[str] = PART_STATUSES

# Phases reflect a live rollup of their activities. Deliverables carry an
# explicit sign-off decision that part completion must not override.
STATUS_POLICY: dict[NodeType, StatusPolicy] = {
    "phase": "derived-from-children",
    "activity": "stored-authoritative",
    "deliverable": "stored-authoritative",
    "part": "stored-authoritative",
}


def normalize_status(raw: Optional[str], allowed: frozenset[str]) -> str:
    """Lower-case a stored status; missing or unrecognised values become not_started."""
    if not isinstance(raw, str) or not raw.strip():
        return NOT_STARTED
    status = raw.strip().lower()
    if status not in allowed:
        log.debug("unknown status %r, defaulting to %s", raw, NOT_STARTED)
        return NOT_STARTED
    return status


def derive_phase_status(child_statuses: Iterable[str]) -> str:
    """Derive a parent status from its children's statuses.

    Precedence: empty -> not_started; all done -> done; any in_progress ->
    in_progress; some done -> in_progress; otherwise not_started.
    """

    statuses = list(child_statuses)
    if not statuses:
        return NOT_STARTED
    if all(s == DONE for s in statuses):
        return DONE
    if any(s == IN_PROGRESS for s in statuses):
        return IN_PROGRESS
    if any(s == DONE for s in statuses):
        return IN_PROGRESS
    return NOT_STARTED


def is_known_status(raw: Optional[str], allowed: frozenset[str]) -> bool:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return True
    return isinstance(raw, str) and raw.strip().lower() in allowed
