from __future__ import annotations

import logging
from typing import Mapping, Optional

from project_tree.core.config.scoring_config import merged_scores
from project_tree.core.format.format_tree import ProjectTreeResponse, build_project_tree
from project_tree.core.io.tree_source import TreeSource
from project_tree.core.model import FormattedTree
from project_tree.core.query.query_tree import filter_by_assignee, filter_by_status, search
from project_tree.core.stats.compute_stats import ProjectStats, compute_stats


log = logging.getLogger(__name__)


class ProjectTreeService:
    """Fetch a project snapshot from a source and run the engine over it.

    Every call fetches and recomputes; nothing is cached between calls. Fetch
    errors propagate unchanged and the engine is never run on a failed fetch.
    """

    def __init__(self, source: TreeSource, scores: Optional[Mapping[str, float]] = None) -> None:
        self._source = source
        self._scores = dict(scores) if scores is not None else merged_scores()

    def get_project_tree(self, project_id: str) -> ProjectTreeResponse:
        raw = self._source.fetch_project_tree(project_id)
        response = build_project_tree(raw, project_id=project_id, scores=self._scores)
        log.info(
            "project %s: %d phase(s), %d deliverable(s), overall progress %d%%",
            project_id,
            response.summary.total_phases,
            response.summary.total_deliverables,
            response.summary.overall_progress,
        )
        return response

    def refresh_project_tree(self, project_id: str) -> ProjectTreeResponse:
        return self.get_project_tree(project_id)

    def get_stats(self, project_id: str) -> ProjectStats:
        return compute_stats(self.get_project_tree(project_id).tree)

    def search(self, project_id: str, term: str) -> FormattedTree:
        return search(self.get_project_tree(project_id).tree, term)

    def filter_by_status(self, project_id: str, status: str) -> FormattedTree:
        return filter_by_status(self.get_project_tree(project_id).tree, status)

    def filter_by_assignee(self, project_id: str, user_id: str) -> FormattedTree:
        return filter_by_assignee(self.get_project_tree(project_id).tree, user_id)
