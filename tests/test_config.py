"""
Test settings loading.
"""

import json
import os
import pytest
from typing import List

from viewer.config import SettingsLoader, ViewerSettings, coerce
from viewer.faults import ConfigInvalidFault


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("VIEWER_"):
            monkeypatch.delenv(key)


def test_defaults():
    settings = SettingsLoader.load().settings()

    assert settings == ViewerSettings()
    assert settings.templates_root == "templates"
    assert settings.template_extension == "tpl"
    assert settings.default_layout == "layout"
    assert settings.default_format == "html"
    assert settings.search_paths == ["."]


def test_yaml_and_json_files(tmp_path):
    (tmp_path / "a.yaml").write_text("templates_root: views\nsearch_paths: [app, lib]\n")
    (tmp_path / "b.json").write_text(json.dumps({"default_layout": "base"}))

    settings = SettingsLoader.load([str(tmp_path / "*")]).settings()

    assert settings.templates_root == "views"
    assert settings.search_paths == ["app", "lib"]
    assert settings.default_layout == "base"


def test_env_overrides_files(tmp_path, monkeypatch):
    (tmp_path / "viewer.yaml").write_text("default_format: html\n")
    monkeypatch.setenv("VIEWER_DEFAULT_FORMAT", "txt")

    settings = SettingsLoader.load([str(tmp_path / "viewer.yaml")]).settings()

    assert settings.default_format == "txt"


def test_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("VIEWER_ENCODING=latin-1\nOTHER=ignored\n")

    loader = SettingsLoader.load(env_file=str(env_file))

    assert loader.get("encoding") == "latin-1"
    assert loader.get("other") is None


def test_missing_env_file_is_skipped(tmp_path):
    loader = SettingsLoader.load(env_file=str(tmp_path / "absent.env"))
    assert loader.to_dict() == {}


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("VIEWER_DEFAULT_LAYOUT", "env")

    settings = SettingsLoader.load(overrides={"default_layout": "manual"}).settings()

    assert settings.default_layout == "manual"


def test_env_strings_keep_str_fields(monkeypatch):
    monkeypatch.setenv("VIEWER_TEMPLATES_ROOT", "2024")
    monkeypatch.setenv("VIEWER_TEMPLATE_EXTENSION", "1.5")

    settings = SettingsLoader.load().settings()

    assert settings.templates_root == "2024"
    assert settings.template_extension == "1.5"


def test_env_single_search_path(monkeypatch):
    monkeypatch.setenv("VIEWER_SEARCH_PATHS", "/srv/app")
    assert SettingsLoader.load().settings().search_paths == ["/srv/app"]


def test_env_search_path_list(monkeypatch):
    monkeypatch.setenv("VIEWER_SEARCH_PATHS", os.pathsep.join(["one", "two", ""]))
    assert SettingsLoader.load().settings().search_paths == ["one", "two"]


def test_env_file_values_are_coerced(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(f"VIEWER_SEARCH_PATHS=a{os.pathsep}b\nVIEWER_DEFAULT_FORMAT=404\n")

    settings = SettingsLoader.load(env_file=str(env_file)).settings()

    assert settings.search_paths == ["a", "b"]
    assert settings.default_format == "404"


def test_invalid_type():
    loader = SettingsLoader.load(overrides={"encoding": 8})

    with pytest.raises(ConfigInvalidFault) as exc_info:
        loader.settings()

    assert exc_info.value.metadata["key"] == "encoding"


def test_invalid_list_items():
    loader = SettingsLoader.load(overrides={"search_paths": ["ok", 3]})

    with pytest.raises(ConfigInvalidFault):
        loader.settings()


def test_file_must_hold_a_mapping(tmp_path):
    (tmp_path / "list.yaml").write_text("- a\n- b\n")

    with pytest.raises(ConfigInvalidFault):
        SettingsLoader.load([str(tmp_path / "list.yaml")])


def test_coerce():
    assert coerce("flag", "yes", bool) is True
    assert coerce("flag", "off", bool) is False
    assert coerce("count", "3", int) == 3
    assert coerce("paths", ["x"], List[str]) == ["x"]

    with pytest.raises(ConfigInvalidFault):
        coerce("flag", "maybe", bool)
    with pytest.raises(ConfigInvalidFault):
        coerce("count", "three", int)
