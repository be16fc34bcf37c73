from project_tree.core.format.format_tree import build_project_tree, format_tree
from project_tree.core.io.load_tree import load_tree
from project_tree.core.model import FormattedTree, RawDeliverable, RawPart
from project_tree.core.query.query_tree import filter_by_assignee
from project_tree.core.stats.compute_stats import compute_stats, format_stats
from project_tree.core.validate.validate_tree import validate_tree


def _tree(path: str) -> FormattedTree:
    raw, errors = validate_tree(load_tree(path))
    assert errors == []
    assert raw is not None
    return build_project_tree(raw).tree


def test_stats_consulting_project():
    stats = compute_stats(_tree("examples/consulting-project.yaml"))
    d = stats.to_dict()
    assert d["phases"] == {"total": 3, "completed": 0, "in_progress": 1}
    assert d["activities"] == {"total": 4, "completed": 1, "completion_rate": 25}
    assert d["deliverables"] == {"total": 3, "completed": 1, "in_progress": 1}
    assert d["parts"] == {"total": 4, "completed": 2, "completion_rate": 50}
    assert d["weight"] == {"total": 100, "completed": 60, "completion_rate": 60}


def test_stats_scenario():
    stats = compute_stats(_tree("examples/scenario.yaml"))
    assert stats.phases.completed == 1
    assert stats.phases.in_progress == 1
    assert stats.activities.completion_rate == 50
    assert stats.parts.completion_rate == 50
    # the deliverable is not approved, so none of its weight counts
    assert stats.weight.completion_rate == 0


def test_stats_empty_tree_is_all_zero():
    stats = compute_stats(FormattedTree(phases=(), deliverables=()))
    assert stats.activities.completion_rate == 0
    assert stats.parts.completion_rate == 0
    assert stats.weight.completion_rate == 0
    assert stats.phases.total == 0


def test_stats_rates_stay_in_bounds():
    tree = format_tree(
        [],
        [
            RawDeliverable(id="d1", title="A", status="approved", weight=0, parts=(RawPart(id="p", title="P", status="approved"),)),
            RawDeliverable(id="d2", title="B", status="approved", weight=0),
        ],
    )
    stats = compute_stats(tree)
    assert stats.weight.completion_rate == 0
    assert stats.parts.completion_rate == 100
    for rate in (stats.activities.completion_rate, stats.parts.completion_rate, stats.weight.completion_rate):
        assert 0 <= rate <= 100


def test_stats_over_filtered_tree():
    tree = filter_by_assignee(_tree("examples/consulting-project.yaml"), "u-sara")
    stats = compute_stats(tree)
    assert stats.phases.total == 1
    assert stats.deliverables.total == 1
    assert stats.weight.total == 40


def test_format_stats():
    text = format_stats(compute_stats(_tree("examples/consulting-project.yaml")))
    assert "Activities: 1/4 done (25%)" in text
    assert "Weight: 60/100 approved (60%)" in text
