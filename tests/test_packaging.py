"""Project metadata sanity checks."""
from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent.parent


def test_project_metadata_files_exist():
    project = tomllib.loads((ROOT / "pyproject.toml").read_text())["project"]

    readme = project.get("readme")
    if readme is not None:
        assert (ROOT / readme).is_file()
        assert readme.lower().startswith("readme")
    assert project["name"] == "rideshare-backend"
