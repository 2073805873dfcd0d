from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..utils import deep_merge, substitute_env_vars
from .schema import ToolConfigSchema

logger = logging.getLogger(__name__)

BASE_CONFIG_RESOURCE = "tool-config.yaml"


class ConfigLoader:
    """Loads, merges, and validates tool configuration overlays.

    Supports recursive `include:` directives and environment variable
    substitution for ${VAR} patterns.
    """

    def __init__(self, overlay_path: Path | str):
        self.overlay_path = Path(overlay_path)
        if not self.overlay_path.exists():
            raise ConfigurationError(f"Config overlay not found: {self.overlay_path}")

    @staticmethod
    def _parse_yaml(text: str, origin: str) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {origin}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"YAML root must be a mapping: {origin}")
        return data

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        return self._parse_yaml(text, str(path))

    def _collect_includes(self, root_path: Path, data: Dict[str, Any]) -> Tuple[List[Path], Dict[str, Any]]:
        includes: List[Path] = []
        include_val = data.get("include")
        if include_val is None:
            return includes, data
        if isinstance(include_val, str):
            includes = [root_path.parent / include_val]
        elif isinstance(include_val, list):
            includes = [root_path.parent / str(p) for p in include_val]
        else:
            raise ConfigurationError("`include` must be a string or list of strings")
        data = {k: v for k, v in data.items() if k != "include"}
        return includes, data

    def _load_with_includes(self, path: Path) -> Dict[str, Any]:
        cur = self._load_yaml(path)
        includes, cur_wo_inc = self._collect_includes(path, cur)
        merged: Dict[str, Any] = {}
        for inc in includes:
            inc_data = self._load_with_includes(inc)
            merged = deep_merge(merged, inc_data)
        merged = deep_merge(merged, cur_wo_inc)
        return merged

    def load_raw(self) -> Dict[str, Any]:
        return self._load_with_includes(self.overlay_path)

    def load(self, base: Optional[Dict[str, Any]] = None) -> ToolConfigSchema:
        raw = deep_merge(base or {}, self.load_raw())
        return validate_config(raw)


def load_base_document() -> Dict[str, Any]:
    """Read the tool configuration document shipped with the package."""
    text = resources.files("ehr_servicegen.resources").joinpath(BASE_CONFIG_RESOURCE).read_text(encoding="utf-8")
    return ConfigLoader._parse_yaml(text, BASE_CONFIG_RESOURCE)


def validate_config(raw: Dict[str, Any]) -> ToolConfigSchema:
    raw = substitute_env_vars(raw)
    try:
        return ToolConfigSchema.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Tool configuration is invalid: {e}") from e


def load_tool_config(overlay: Optional[Path | str] = None) -> ToolConfigSchema:
    """Packaged base configuration, optionally deep-merged with a user overlay."""
    base = load_base_document()
    if overlay is None:
        return validate_config(base)
    logger.debug("Applying config overlay %s", overlay)
    return ConfigLoader(overlay).load(base)
