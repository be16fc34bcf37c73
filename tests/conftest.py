from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def _run_from_repo_root(monkeypatch):
    # Tests refer to examples/ relative to the repository root.
    monkeypatch.chdir(REPO_ROOT)
