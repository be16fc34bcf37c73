from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from project_tree.core.model import FormattedTree
from project_tree.core.progress.aggregate_progress import completion_rate
from project_tree.core.status.derive_status import APPROVED, DONE, IN_PROGRESS


@dataclass(frozen=True)
class GroupCounts:
    total: int
    completed: int
    in_progress: int


@dataclass(frozen=True)
class LeafCounts:
    total: int
    completed: int
    completion_rate: int


@dataclass(frozen=True)
class WeightCompletion:
    total: float
    completed: float
    completion_rate: int


@dataclass(frozen=True)
class ProjectStats:
    phases: GroupCounts
    activities: LeafCounts
    deliverables: GroupCounts
    parts: LeafCounts
    weight: WeightCompletion

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compute_stats(tree: FormattedTree) -> ProjectStats:
    """Aggregate counts and completion rates over a formatted tree.

    Phases count as completed when done, deliverables and parts when approved.
    Weight completion sums the weights of approved deliverables.
    """

    activities = [a for p in tree.phases for a in p.children or ()]
    parts = [part for d in tree.deliverables for part in d.children or ()]

    done_activities = sum(1 for a in activities if a.status == DONE)
    approved_parts = sum(1 for p in parts if p.status == APPROVED)

    total_weight = sum(d.weight or 0 for d in tree.deliverables)
    completed_weight = sum(d.weight or 0 for d in tree.deliverables if d.status == APPROVED)

    return ProjectStats(
        phases=GroupCounts(
            total=len(tree.phases),
            completed=sum(1 for p in tree.phases if p.status == DONE),
            in_progress=sum(1 for p in tree.phases if p.status == IN_PROGRESS),
        ),
        activities=LeafCounts(
            total=len(activities),
            completed=done_activities,
            completion_rate=completion_rate(done_activities, len(activities)),
        ),
        deliverables=GroupCounts(
            total=len(tree.deliverables),
            completed=sum(1 for d in tree.deliverables if d.status == APPROVED),
            in_progress=sum(1 for d in tree.deliverables if d.status == IN_PROGRESS),
        ),
        parts=LeafCounts(
            total=len(parts),
            completed=approved_parts,
            completion_rate=completion_rate(approved_parts, len(parts)),
        ),
        weight=WeightCompletion(
            total=total_weight,
            completed=completed_weight,
            completion_rate=completion_rate(completed_weight, total_weight),
        ),
    )


def format_stats(stats: ProjectStats) -> str:
    return "\n".join(
        [
            f"Phases: {stats.phases.total} (done={stats.phases.completed}, in_progress={stats.phases.in_progress})",
            f"Activities: {stats.activities.completed}/{stats.activities.total} done ({stats.activities.completion_rate}%)",
            f"Deliverables: {stats.deliverables.total} (approved={stats.deliverables.completed}, in_progress={stats.deliverables.in_progress})",
            f"Parts: {stats.parts.completed}/{stats.parts.total} approved ({stats.parts.completion_rate}%)",
            f"Weight: {stats.weight.completed:g}/{stats.weight.total:g} approved ({stats.weight.completion_rate}%)",
        ]
    )
