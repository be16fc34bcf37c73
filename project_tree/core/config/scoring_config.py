from __future__ import annotations

from pathlib import Path

import yaml


DEFAULT_PART_SCORES: dict[str, float] = {
    # Keep stable: deliverable progress in dashboards depends on these.
    "approved": 100,
    "in_progress": 50,
}


class ScoringConfigError(ValueError):
    pass


def load_scoring_file(path: str | Path) -> dict[str, float]:
    """Load part scores from a YAML file.

    Format:
      <status>: <score 0-100>

    Returns a mapping of lower-cased part status -> score.
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ScoringConfigError("scoring file must be a mapping of status -> number")

    out: dict[str, float] = {}
    for k, v in raw.items():
        if not isinstance(k, str) or not k.strip():
            raise ScoringConfigError("status names must be non-empty strings")
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ScoringConfigError(f"score for '{k}' must be a number")
        if not 0 <= v <= 100:
            raise ScoringConfigError(f"score for '{k}' must be between 0 and 100")
        out[k.strip().lower()] = v
    return out


def merged_scores(overrides: dict[str, float] | None = None) -> dict[str, float]:
    """Return DEFAULT_PART_SCORES merged with optional overrides.

    Overrides replace scores of the same status, and may add new ones.
    """
    merged = dict(DEFAULT_PART_SCORES)
    if overrides:
        merged.update(overrides)
    return merged


def load_and_merge(scoring_file: str | None) -> dict[str, float]:
    if not scoring_file:
        return merged_scores()
    return merged_scores(load_scoring_file(scoring_file))
