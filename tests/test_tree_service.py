import shutil
from pathlib import Path

import pytest

from project_tree.core.errors import (
    ProjectNotFoundError,
    TransientFetchError,
    TreeFetchError,
    TreeValidationError,
    UnauthorizedError,
)
from project_tree.core.io.tree_source import FileTreeSource
from project_tree.core.model import RawProjectTree
from project_tree.core.service import ProjectTreeService


class _FailingSource:
    def __init__(self, error: TreeFetchError):
        self.error = error
        self.calls = 0

    def fetch_project_tree(self, project_id: str) -> RawProjectTree:
        self.calls += 1
        raise self.error


@pytest.fixture()
def source(tmp_path: Path) -> FileTreeSource:
    shutil.copy("examples/scenario.yaml", tmp_path / "PRJ-001.yaml")
    shutil.copy("examples/consulting-project.yaml", tmp_path / "ACME-2025.yml")
    return FileTreeSource(tmp_path)


def test_get_project_tree(source):
    svc = ProjectTreeService(source)
    response = svc.get_project_tree("PRJ-001")
    assert response.project_id == "PRJ-001"
    assert response.summary.overall_progress == 56
    assert response.to_dict()["projectId"] == "PRJ-001"


def test_project_id_comes_from_request_not_document(tmp_path):
    shutil.copy("examples/scenario.yaml", tmp_path / "renamed.yaml")
    response = ProjectTreeService(FileTreeSource(tmp_path)).get_project_tree("renamed")
    assert response.project_id == "renamed"


def test_refresh_recomputes_from_source(source, tmp_path):
    svc = ProjectTreeService(source)
    assert svc.get_project_tree("PRJ-001").summary.total_parts == 2

    shutil.copy("examples/consulting-project.yaml", tmp_path / "PRJ-001.yaml")
    refreshed = svc.refresh_project_tree("PRJ-001")
    assert refreshed.summary.total_parts == 4
    assert refreshed.project_id == "PRJ-001"


def test_queries_and_stats(source):
    svc = ProjectTreeService(source)
    assert [p.id for p in svc.search("ACME-2025", "kpi").phases] == ["PH-ASSESS"]
    assert [d.id for d in svc.filter_by_status("ACME-2025", "approved").deliverables] == ["DEL-REPORT"]
    assert [p.id for p in svc.filter_by_assignee("ACME-2025", "u-sara").phases] == ["PH-DESIGN"]
    assert svc.get_stats("ACME-2025").weight.completion_rate == 60


def test_custom_scores(source):
    svc = ProjectTreeService(source, scores={"approved": 100, "in_progress": 100})
    tom = svc.get_project_tree("ACME-2025").tree.deliverables[1]
    assert tom.id == "DEL-TOM"
    assert tom.progress == 50


def test_not_found(source):
    with pytest.raises(ProjectNotFoundError) as exc:
        ProjectTreeService(source).get_project_tree("NOPE")
    assert exc.value.code == "E_PROJECT_NOT_FOUND"


def test_invalid_document_raises_validation_error(tmp_path):
    shutil.copy("examples/invalid-structure.yaml", tmp_path / "BROKEN-1.yaml")
    with pytest.raises(TreeValidationError) as exc:
        FileTreeSource(tmp_path).fetch_project_tree("BROKEN-1")
    assert "3 error(s)" in exc.value.message


@pytest.mark.parametrize(
    "error",
    [
        TransientFetchError(code="E_FETCH_IO", message="timeout"),
        UnauthorizedError(code="E_UNAUTHORIZED", message="no access"),
        ProjectNotFoundError(code="E_PROJECT_NOT_FOUND", message="gone"),
    ],
)
def test_fetch_errors_propagate_without_retry(error):
    source = _FailingSource(error)
    with pytest.raises(type(error)):
        ProjectTreeService(source).get_project_tree("X")
    assert source.calls == 1


def test_error_str_includes_location():
    err = ProjectNotFoundError(code="E_PROJECT_NOT_FOUND", message="gone", file="trees", path="project_id")
    assert str(err) == "trees:project_id: E_PROJECT_NOT_FOUND: gone"
    assert str(UnauthorizedError(code="E_UNAUTHORIZED", message="no")) == "<tree>: E_UNAUTHORIZED: no"


@pytest.mark.parametrize("project_id", ["../PRJ-001", "nested/PRJ-001", "..\\PRJ-001", "", ".."])
def test_project_id_cannot_leave_root(source, project_id):
    with pytest.raises(ProjectNotFoundError) as exc:
        source.fetch_project_tree(project_id)
    assert exc.value.code == "E_INVALID_PROJECT_ID"
