from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, TypeVar

from project_tree.core.config.scoring_config import DEFAULT_PART_SCORES
from project_tree.core.model import (
    FormattedTree,
    NodeType,
    RawActivity,
    RawDeliverable,
    RawPart,
    RawPhase,
    RawProjectTree,
    TreeNode,
    WeightUnit,
)
from project_tree.core.progress.aggregate_progress import (
    bound_progress,
    clamp_progress,
    mean_progress,
    overall_progress,
    weighted_completion,
)
from project_tree.core.status.derive_status import (
    ACTIVITY_STATUSES,
    DELIVERABLE_STATUSES,
    PART_STATUSES,
    STATUS_POLICY,
    derive_phase_status,
    normalize_status,
)


_Ordered = TypeVar("_Ordered", RawPhase, RawDeliverable)


@dataclass(frozen=True)
class TreeSummary:
    total_phases: int
    total_activities: int
    total_deliverables: int
    total_parts: int
    overall_progress: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalPhases": self.total_phases,
            "totalActivities": self.total_activities,
            "totalDeliverables": self.total_deliverables,
            "totalParts": self.total_parts,
            "overallProgress": self.overall_progress,
        }


@dataclass(frozen=True)
class ProjectTreeResponse:
    project_id: Optional[str]
    tree: FormattedTree
    summary: TreeSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "phases": [p.to_dict() for p in self.tree.phases],
            "deliverables": [d.to_dict() for d in self.tree.deliverables],
            "summary": self.summary.to_dict(),
        }


def format_tree(
    raw_phases: Iterable[RawPhase],
    raw_deliverables: Iterable[RawDeliverable],
    *,
    scores: Mapping[str, float] = DEFAULT_PART_SCORES,
) -> FormattedTree:
    """Normalize raw phase/deliverable records into the typed node tree.

    Phase status and progress are rolled up from activities. Deliverable
    status is taken as stored; only its progress is rolled up from parts.
    """

    part_statuses = PART_STATUSES | frozenset(scores)
    return FormattedTree(
        phases=tuple(_format_phase(p) for p in _by_display_order(raw_phases)),
        deliverables=tuple(
            _format_deliverable(d, scores, part_statuses) for d in _by_display_order(raw_deliverables)
        ),
    )


def build_project_tree(
    raw: RawProjectTree,
    *,
    project_id: Optional[str] = None,
    scores: Mapping[str, float] = DEFAULT_PART_SCORES,
) -> ProjectTreeResponse:
    tree = format_tree(raw.phases, raw.deliverables, scores=scores)
    summary = TreeSummary(
        total_phases=len(tree.phases),
        total_activities=sum(len(p.children or ()) for p in tree.phases),
        total_deliverables=len(tree.deliverables),
        total_parts=sum(len(d.children or ()) for d in tree.deliverables),
        overall_progress=overall_progress(
            [p.progress for p in tree.phases],
            [d.progress for d in tree.deliverables],
        ),
    )
    return ProjectTreeResponse(
        project_id=project_id if project_id is not None else raw.project_id,
        tree=tree,
        summary=summary,
    )


def _format_phase(phase: RawPhase) -> TreeNode:
    children = tuple(_format_activity(a) for a in phase.activities)
    return TreeNode(
        id=phase.id,
        name=phase.title,
        type="phase",
        status=_resolve_status("phase", None, [c.status for c in children], ACTIVITY_STATUSES),
        description=phase.description,
        # Mean of the unrounded activity values, rounded once.
        progress=mean_progress([bound_progress(a.progress_percent) for a in phase.activities]),
        can_edit=True,
        can_delete=not children,
        children=children,
        start_date=phase.planned_start_date,
        end_date=phase.planned_end_date,
        display_order=phase.display_order,
    )


def _format_activity(activity: RawActivity) -> TreeNode:
    return TreeNode(
        id=activity.id,
        name=activity.title,
        type="activity",
        status=_resolve_status("activity", activity.status, (), ACTIVITY_STATUSES),
        description=activity.description,
        progress=clamp_progress(activity.progress_percent),
        can_edit=True,
        can_delete=True,
        owner=activity.owner_user_id,
        planned_start_date=activity.planned_start_date,
        planned_end_date=activity.planned_end_date,
        actual_start_date=activity.actual_start_date,
        actual_end_date=activity.actual_end_date,
    )


def _format_deliverable(
    deliverable: RawDeliverable,
    scores: Mapping[str, float],
    part_statuses: frozenset[str],
) -> TreeNode:
    children = tuple(_format_part(p, part_statuses) for p in deliverable.parts)
    progress = weighted_completion(
        ((p.status, p.part_weight) for p in deliverable.parts),
        scores,
    )
    return TreeNode(
        id=deliverable.id,
        name=deliverable.title,
        type="deliverable",
        status=_resolve_status("deliverable", deliverable.status, (), DELIVERABLE_STATUSES),
        description=deliverable.description,
        progress=progress,
        can_edit=True,
        can_delete=not children,
        weight=deliverable.weight,
        weight_unit=normalize_weight_unit(deliverable.weight_unit),
        can_upload=True,
        children=children,
        display_order=deliverable.display_order,
    )


def _format_part(part: RawPart, part_statuses: frozenset[str]) -> TreeNode:
    return TreeNode(
        id=part.id,
        name=part.title,
        type="part",
        status=_resolve_status("part", part.status, (), part_statuses),
        description=part.description,
        progress=clamp_progress(part.progress_percent),
        can_edit=True,
        can_delete=True,
        weight=part.part_weight,
        weight_unit="percent",
        can_upload=True,
        assigned_to=part.assigned_user_id,
    )


def normalize_weight_unit(raw: Optional[str]) -> WeightUnit:
    if isinstance(raw, str) and raw.strip().lower() == "percent":
        return "percent"
    return "points"


def _resolve_status(
    node_type: NodeType,
    stored: Optional[str],
    child_statuses: Sequence[str],
    allowed: frozenset[str],
) -> str:
    if STATUS_POLICY[node_type] == "derived-from-children":
        return derive_phase_status(child_statuses)
    return normalize_status(stored, allowed)


def _by_display_order(records: Iterable[_Ordered]) -> list[_Ordered]:
    # Stable: records without display_order keep input order after ordered ones.
    return sorted(
        records,
        key=lambda r: (r.display_order is None, r.display_order or 0),
    )
