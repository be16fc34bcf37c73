from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from project_tree.core.errors import (
    ProjectNotFoundError,
    TransientFetchError,
    TreeLoadError,
    TreeValidationError,
)
from project_tree.core.io.load_tree import SUPPORTED_SUFFIXES, load_tree
from project_tree.core.model import RawProjectTree
from project_tree.core.validate.validate_tree import validate_tree


log = logging.getLogger(__name__)


class TreeSource(Protocol):
    """Persistence collaborator: one pre-joined snapshot per project.

    Implementations raise ProjectNotFoundError, TransientFetchError or
    UnauthorizedError; they own any retry policy.
    """

    def fetch_project_tree(self, project_id: str) -> RawProjectTree: ...


class FileTreeSource:
    """Serve project trees from <root>/<project_id>.yaml|.yml|.json documents."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, project_id: str) -> Path:
        if not _is_plain_id(project_id):
            raise ProjectNotFoundError(
                code="E_INVALID_PROJECT_ID",
                message=f"project id must be a plain file name: {project_id!r}",
                file=str(self.root),
                path="project_id",
            )
        for suffix in SUPPORTED_SUFFIXES:
            candidate = self.root / f"{project_id}{suffix}"
            if candidate.is_file():
                return candidate
        raise ProjectNotFoundError(
            code="E_PROJECT_NOT_FOUND",
            message=f"no tree document for project: {project_id}",
            file=str(self.root),
            path="project_id",
        )

    def fetch_project_tree(self, project_id: str) -> RawProjectTree:
        path = self.path_for(project_id)
        try:
            doc = load_tree(str(path), project_id=project_id)
        except TreeLoadError as e:
            if e.code == "E_FILE_READ":
                raise TransientFetchError(
                    code="E_FETCH_IO", message=e.message, file=e.file, path="project_id"
                ) from e
            raise

        tree, errors = validate_tree(doc)
        if errors:
            log.warning("project %s: %d invalid record(s) in %s", project_id, len(errors), path)
            first = errors[0]
            raise TreeValidationError(
                code=first.code,
                message=f"{first.message} ({len(errors)} error(s) in document)",
                file=first.file,
                path=first.path,
            )
        assert tree is not None
        log.debug("fetched project %s from %s", project_id, path)
        return tree


def _is_plain_id(project_id: str) -> bool:
    # Ids name a document directly under root; no separators or dot segments.
    if not project_id or project_id in {".", ".."}:
        return False
    return "/" not in project_id and "\\" not in project_id and "\0" not in project_id
