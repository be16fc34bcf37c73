import pytest

from project_tree.core.config.scoring_config import (
    DEFAULT_PART_SCORES,
    ScoringConfigError,
    load_and_merge,
    load_scoring_file,
    merged_scores,
)


def test_defaults():
    assert load_and_merge(None) == {"approved": 100, "in_progress": 50}


def test_merge_overrides_and_adds():
    scores = load_and_merge("examples/scoring.yaml")
    assert scores == {"approved": 100, "in_progress": 40, "submitted": 80}
    assert DEFAULT_PART_SCORES["in_progress"] == 50


def test_merged_scores_copies_defaults():
    scores = merged_scores()
    scores["approved"] = 1
    assert DEFAULT_PART_SCORES["approved"] == 100


def test_empty_file_means_no_overrides(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_scoring_file(p) == {}


@pytest.mark.parametrize(
    "content",
    [
        "- approved\n",
        "approved: lots\n",
        "approved: 120\n",
        "rejected: -1\n",
        "approved: true\n",
        "approved: .nan\n",
        "approved: .inf\n",
    ],
)
def test_invalid_files(tmp_path, content):
    p = tmp_path / "scores.yaml"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ScoringConfigError):
        load_scoring_file(p)


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_and_merge("examples/no-such-scores.yaml")
