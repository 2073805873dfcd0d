from __future__ import annotations

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Union
from urllib.parse import urlparse


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge two dict-like mappings. Values in overlay win.

    - Dict vs dict: merge recursively
    - List vs list: overlay replaces base entirely (simple and predictable)
    - Other types: overlay replaces base
    """
    result: Dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} in strings using environment variables.

    If an environment variable is missing, leave the pattern unchanged
    to allow upstream validation to catch it.
    """
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            name = match.group(1)
            return os.environ.get(name, match.group(0))

        return _ENV_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    return value


def get_by_path(tree: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read a dot-separated path (e.g. 'fhir.tools.template.config') from a nested mapping.

    Returns ``default`` as soon as a segment is missing or a non-mapping is hit.
    """
    value: Any = tree
    for key in path.split("."):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        else:
            return default
    return value


def set_by_path(tree: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Write ``value`` at a dot-separated path, creating intermediate dicts.

    A non-mapping value sitting on the path is replaced by a new dict.
    """
    keys = path.split(".")
    cur = tree
    for key in keys[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, MutableMapping):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[keys[-1]] = copy.deepcopy(value)


def is_remote_location(location: str) -> bool:
    return urlparse(location).scheme.lower() in ("http", "https")


def short_package_name(package_ref: str) -> str:
    """'healthcare/health.fhir.r4.uscore501' -> 'health.fhir.r4.uscore501'"""
    return package_ref[package_ref.rfind("/") + 1:]


def default_project_name(ehr_name: str) -> str:
    return f"{ehr_name}-service"


def ensure_dir(path: Union[str, Path]) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def slugify(value: str) -> str:
    value = value.lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)
    value = re.sub(r"-+", "-", value).strip("-")
    return value


_UNSAFE_PATH_CHARS = re.compile(r'\s*[\\/:*?"<>|\x00-\x1f]+\s*')


def safe_dir_name(name: str) -> str:
    """Single path segment for ``name``: separators and reserved characters become '-'.

    'HL7 International / FHIR Infrastructure' -> 'HL7 International-FHIR Infrastructure'
    '../../escaped' -> 'escaped'

    Raises ValueError when nothing usable is left.
    """
    segment = _UNSAFE_PATH_CHARS.sub("-", name).strip(" .-")
    if not segment:
        raise ValueError(f"Cannot derive a folder name from {name!r}")
    return segment


def is_within(path: Union[str, Path], root: Union[str, Path]) -> bool:
    return Path(path).resolve().is_relative_to(Path(root).resolve())
