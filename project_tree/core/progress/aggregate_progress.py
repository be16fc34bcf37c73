from __future__ import annotations

import math
from typing import Iterable, Mapping, Optional, Sequence

from project_tree.core.config.scoring_config import DEFAULT_PART_SCORES


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def bound_progress(value: float) -> float:
    """Clamp to [0, 100] without rounding. NaN reads as 0."""
    if math.isnan(value):
        return 0
    return max(0, min(100, value))


def clamp_progress(value: float) -> int:
    return round_half_up(bound_progress(value))


def mean_progress(progresses: Sequence[float]) -> int:
    """Unweighted mean: every child counts equally. 0 when there are no children."""
    if not progresses:
        return 0
    return clamp_progress(sum(progresses) / len(progresses))


def part_score(status: Optional[str], scores: Mapping[str, float] = DEFAULT_PART_SCORES) -> float:
    if not isinstance(status, str):
        return 0
    return scores.get(status.strip().lower(), 0)


def weighted_completion(
    parts: Iterable[tuple[Optional[str], float]],
    scores: Mapping[str, float] = DEFAULT_PART_SCORES,
) -> int:
    """Weighted completion over (status, weight) pairs.

    Each part contributes score(status) * weight / total_weight. A total weight
    of 0 yields 0 regardless of the number of parts.
    """

    items = [(status, weight or 0) for status, weight in parts]
    total_weight = sum(weight for _, weight in items)
    if total_weight == 0:
        return 0

    weighted = sum(part_score(status, scores) * weight / total_weight for status, weight in items)
    return clamp_progress(weighted)


def overall_progress(phase_progresses: Sequence[float], deliverable_progresses: Sequence[float]) -> int:
    """Mean of the phase mean and the deliverable mean.

    Both halves weigh the same no matter how many phases or deliverables the
    project has; an empty half contributes 0.
    """

    phases_mean = sum(phase_progresses) / len(phase_progresses) if phase_progresses else 0
    deliverables_mean = (
        sum(deliverable_progresses) / len(deliverable_progresses) if deliverable_progresses else 0
    )
    return clamp_progress((phases_mean + deliverables_mean) / 2)


def completion_rate(completed: float, total: float) -> int:
    if total <= 0:
        return 0
    return clamp_progress(completed / total * 100)
