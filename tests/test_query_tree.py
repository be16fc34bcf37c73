import pytest

from project_tree.core.format.format_tree import build_project_tree
from project_tree.core.io.load_tree import load_tree
from project_tree.core.model import FormattedTree
from project_tree.core.query.query_tree import (
    apply_filters,
    filter_by_assignee,
    filter_by_status,
    search,
)
from project_tree.core.validate.validate_tree import validate_tree


@pytest.fixture()
def tree() -> FormattedTree:
    raw, errors = validate_tree(load_tree("examples/consulting-project.yaml"))
    assert errors == []
    assert raw is not None
    return build_project_tree(raw).tree


def _ids(t: FormattedTree) -> tuple[list[str], list[str]]:
    return [p.id for p in t.phases], [d.id for d in t.deliverables]


def test_search_matches_own_name(tree):
    assert _ids(search(tree, "handover")) == (["PH-CLOSE"], [])


def test_search_matches_child_description_and_keeps_all_children(tree):
    out = search(tree, "kpi")
    assert _ids(out) == (["PH-ASSESS"], [])
    (phase,) = out.phases
    assert [c.id for c in phase.children or ()] == ["ACT-INT", "ACT-DATA"]


def test_search_is_case_insensitive_and_checks_parts(tree):
    assert _ids(search(tree, "EXECUTIVE")) == ([], ["DEL-REPORT"])
    assert _ids(search(tree, "report")) == ([], ["DEL-REPORT"])


def test_search_is_idempotent(tree):
    once = search(tree, "stakeholder")
    assert search(once, "stakeholder") == once


def test_search_no_match(tree):
    assert _ids(search(tree, "zzz")) == ([], [])


def test_filter_by_status(tree):
    assert _ids(filter_by_status(tree, "in_progress")) == (["PH-ASSESS"], ["DEL-TOM"])
    assert _ids(filter_by_status(tree, "APPROVED")) == ([], ["DEL-REPORT"])
    assert _ids(filter_by_status(tree, "not_started")) == (["PH-DESIGN", "PH-CLOSE"], ["DEL-TRAIN"])


def test_filter_by_status_is_idempotent(tree):
    once = filter_by_status(tree, "not_started")
    assert filter_by_status(once, "not_started") == once


def test_filter_by_status_ignores_children(tree):
    # PH-DESIGN has no done activity and PH-ASSESS is only in progress overall
    assert _ids(filter_by_status(tree, "done")) == ([], [])


def test_filter_by_assignee(tree):
    assert _ids(filter_by_assignee(tree, "u-lina")) == (["PH-ASSESS", "PH-DESIGN"], ["DEL-REPORT"])
    assert _ids(filter_by_assignee(tree, "u-sara")) == (["PH-DESIGN"], ["DEL-TOM"])
    assert _ids(filter_by_assignee(tree, "nobody")) == ([], [])


def test_queries_compose_and_do_not_mutate(tree):
    before = tree.to_dict()
    out = filter_by_status(filter_by_assignee(search(tree, "design"), "u-lina"), "not_started")
    assert _ids(out) == (["PH-DESIGN"], [])
    assert tree.to_dict() == before


def test_apply_filters_skips_empty_criteria(tree):
    assert apply_filters(tree) == tree
    assert _ids(apply_filters(tree, status="approved", assignee="u-omar")) == ([], ["DEL-REPORT"])
