"""
Shared test fixtures for the Viewer test suite.
"""

import pytest
from pathlib import Path
from typing import Callable

from viewer.config import ViewerSettings
from viewer.templates import TemplateLoader


@pytest.fixture
def project_dir(tmp_path, monkeypatch) -> Path:
    """
    Temporary project root holding a ``templates/`` directory.

    The working directory is switched to it so views built inside
    templates (which use the default loader) resolve the same files.
    """
    (tmp_path / "templates").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def write_template(project_dir) -> Callable[[str, str], Path]:
    """Write ``templates/<name>`` and return its path."""

    def write(name: str, text: str) -> Path:
        path = project_dir / "templates" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return write


@pytest.fixture
def settings(project_dir) -> ViewerSettings:
    return ViewerSettings(search_paths=[str(project_dir)])


@pytest.fixture
def loader(project_dir) -> TemplateLoader:
    return TemplateLoader(search_paths=[str(project_dir)])
