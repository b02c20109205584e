"""
Config system - Layered typed settings with validation.

Settings come from (later overrides earlier):
1. Config files (JSON or YAML)
2. A .env file
3. Environment variables (VIEWER_* prefix)
4. Manual overrides
"""

from typing import Any, Dict, List, Mapping, Optional, Type, get_args, get_origin
from dataclasses import dataclass, field, fields, is_dataclass, MISSING
from glob import glob
from pathlib import Path
import json
import logging
import os

import yaml
from dotenv import dotenv_values

from viewer.faults import ConfigInvalidFault

logger = logging.getLogger("viewer.config")


@dataclass
class ViewerSettings:
    """
    Global rendering settings.

    Attributes:
        templates_root: Directory (relative to a search path) holding templates
        template_extension: Template language extension in file names
        default_layout: Layout used when a view configures none
        default_format: Output format used when a view configures none
        encoding: Encoding templates are read with
        search_paths: Directories the loader resolves templates against
    """

    templates_root: str = "templates"
    template_extension: str = "tpl"
    default_layout: str = "layout"
    default_format: str = "html"
    encoding: str = "utf-8"
    search_paths: List[str] = field(default_factory=lambda: ["."])


TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def _type_name(expected: Any) -> str:
    return expected.__name__ if isinstance(expected, type) else str(expected)


def _from_string(key: str, value: str, expected: Any) -> Any:
    """Convert a raw environment string to the field's type."""
    if get_origin(expected) is list:
        return [part for part in value.split(os.pathsep) if part]
    if expected is bool:
        if value.lower() in TRUE_VALUES:
            return True
        if value.lower() in FALSE_VALUES:
            return False
        raise ConfigInvalidFault(key, f"expected a boolean, got {value!r}")
    if expected in (int, float):
        try:
            return expected(value)
        except ValueError:
            raise ConfigInvalidFault(key, f"expected {expected.__name__}, got {value!r}") from None
    return value


def coerce(key: str, value: Any, expected: Any) -> Any:
    """
    Validate ``value`` against a settings field type.

    Strings (environment values) are converted first; ``List[str]``
    fields take ``os.pathsep``-separated lists. Values from config files
    must already have the right type.

    Raises:
        ConfigInvalidFault: If the value does not fit the field
    """
    if isinstance(value, str) and expected is not str:
        value = _from_string(key, value, expected)

    if get_origin(expected) is list:
        item_type = (get_args(expected) or (object,))[0]
        if isinstance(value, list) and all(isinstance(item, item_type) for item in value):
            return value
    elif not isinstance(expected, type) or isinstance(value, expected):
        return value

    raise ConfigInvalidFault(key, f"expected {_type_name(expected)}, got {type(value).__name__}")


class SettingsLoader:
    """
    Loads and merges settings from multiple sources.

    Settings are flat: ``VIEWER_TEMPLATES_ROOT`` sets ``templates_root``.
    Raw strings are kept until ``settings()`` converts them to the field
    types of the settings dataclass.

    Example:
        settings = SettingsLoader.load(["viewer.yaml"], env_file=".env").settings()
    """

    def __init__(self, env_prefix: str = "VIEWER_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "VIEWER_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "SettingsLoader":
        """
        Load settings from every source, lowest precedence first.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._update_from_env(os.environ)

        if overrides:
            loader._update(overrides, "overrides")

        return loader

    def _load_from_files(self, pattern: str):
        for path in map(Path, sorted(glob(pattern))):
            with open(path) as f:
                if path.suffix == ".json":
                    data = json.load(f)
                elif path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                else:
                    continue
            logger.debug("Loaded settings from %s", path)
            self._update(data, str(path))

    def _load_env_file(self, path: str):
        if not Path(path).exists():
            logger.debug("Env file %s not found, skipping", path)
            return
        self._update_from_env(dotenv_values(path))

    def _update_from_env(self, values: Mapping[str, Optional[str]]):
        """Take prefixed keys, lower-cased and without the prefix."""
        for key, value in values.items():
            if key.startswith(self.env_prefix) and value is not None:
                self.config_data[key[len(self.env_prefix):].lower()] = value

    def _update(self, data: Any, source: str):
        if not isinstance(data, dict):
            raise ConfigInvalidFault(source, "expected a mapping of settings")
        self.config_data.update(data)

    def get(self, name: str, default: Any = None) -> Any:
        return self.config_data.get(name, default)

    def settings(self, settings_class: Type = ViewerSettings) -> Any:
        """Validate the merged data into ``settings_class``."""
        if not is_dataclass(settings_class):
            raise TypeError(f"{settings_class!r} is not a dataclass")

        kwargs = {}
        for field_info in fields(settings_class):
            name = field_info.name
            if name in self.config_data:
                kwargs[name] = coerce(name, self.config_data[name], field_info.type)
            elif field_info.default is MISSING and field_info.default_factory is MISSING:
                raise ConfigInvalidFault(name, "required setting not provided")

        return settings_class(**kwargs)

    def to_dict(self) -> dict:
        return self.config_data.copy()
