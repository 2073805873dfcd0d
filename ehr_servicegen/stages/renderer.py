from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from ..exceptions import StageExecutionError
from ..utils import ensure_dir


class TemplateRenderer:
    """Renders the Jinja2 templates shipped under ehr_servicegen/templates/<group>/."""

    def __init__(self, group: str, stage: str) -> None:
        self.group = group
        self.stage = stage
        self.env = Environment(
            loader=PackageLoader("ehr_servicegen", "templates"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template: str, variables: Dict[str, Any]) -> str:
        try:
            return self.env.get_template(f"{self.group}/{template}").render(**variables)
        except TemplateError as e:
            raise StageExecutionError(f"Failed to render {template}: {e}", self.stage) from e

    def write_all(self, out_dir: Path, files: List[Tuple[str, str]], variables: Dict[str, Any]) -> List[Path]:
        """Render (template, output filename) pairs into ``out_dir``."""
        written: List[Path] = []
        try:
            ensure_dir(out_dir)
            for template, filename in files:
                out_path = out_dir / filename
                out_path.write_text(self.render(template, variables), encoding="utf-8")
                written.append(out_path)
        except OSError as e:
            raise StageExecutionError(f"Failed to write generated files to {out_dir}: {e}", self.stage) from e
        return written
