from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from pydantic import ValidationError

from ..config.schema import TemplateToolConfig
from ..core.context import ExecutionContext
from ..exceptions import StageExecutionError
from ..models import GeneratorProperties, ProfileSet
from ..utils import set_by_path, slugify
from .base import Stage
from .renderer import TemplateRenderer

logger = logging.getLogger(__name__)

PACKAGE_FILES = [
    ("package.yaml.j2", "package.yaml"),
    ("profiles.yaml.j2", "profiles.yaml"),
    ("README.md.j2", "README.md"),
]


def profile_short_name(profile: str) -> str:
    """'http://hl7.org/fhir/us/core/StructureDefinition/us-core-patient' -> 'us-core-patient'"""
    return profile.rstrip("/").rsplit("/", 1)[-1]


class TemplateStage(Stage):
    """Generates the FHIR template package for the selected implementation guide."""

    def __init__(self, target_dir: Union[str, Path], name: str = "template"):
        super().__init__(target_dir, name)
        self.config: Dict[str, Any] = {}
        self.renderer = TemplateRenderer("package", name)

    def configure(self, config: Mapping[str, Any]) -> None:
        self.config = copy.deepcopy(dict(config))

    def override_config(self, path: str, value: Any) -> None:
        set_by_path(self.config, path, value)

    def _validated(self) -> TemplateToolConfig:
        try:
            return TemplateToolConfig.model_validate(self.config)
        except ValidationError as e:
            raise StageExecutionError(f"Invalid template tool configuration: {e}", self.name) from e

    def execute(self, context: ExecutionContext) -> GeneratorProperties:
        cfg = self._validated().project.package
        ig = cfg.ig_config
        if ig is None:
            raise StageExecutionError("No implementation guide configured at project.package.igConfig", self.name)
        if not ig.enable:
            raise StageExecutionError(f"Implementation guide {ig.implementation_guide!r} is disabled", self.name)

        excluded = set(ig.excluded_profiles)
        profiles = ProfileSet(p for p in ig.included_profiles if p not in excluded)
        ig_slug = slugify(ig.implementation_guide).replace("-", "")
        package_name = f"{cfg.name_prefix}.{ig_slug}"
        package_dir = self.output_dir(package_name)

        variables = {
            "package_name": package_name,
            "org": cfg.org,
            "version": cfg.version,
            "implementation_guide": ig.implementation_guide,
            "import_statement": ig.import_statement,
            "dependent_package": cfg.dependent_package,
            "profiles": [{"url": p, "name": profile_short_name(p)} for p in profiles],
        }
        logger.info("Generating template package %s (%d profile(s))", package_name, len(profiles))
        self.written = self.renderer.write_all(package_dir, PACKAGE_FILES, variables)

        return GeneratorProperties(
            package_name=package_name,
            org_name=cfg.org,
            version=cfg.version,
            implementation_guide=ig.implementation_guide,
            import_statement=ig.import_statement,
            package_dir=str(package_dir),
            profiles=profiles.as_list(),
            dependent_package=cfg.dependent_package,
        )
