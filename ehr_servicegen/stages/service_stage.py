from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..core.context import ExecutionContext
from ..exceptions import StageExecutionError
from ..utils import default_project_name, get_by_path
from .base import Stage
from .renderer import TemplateRenderer

logger = logging.getLogger(__name__)

PROJECT_NAME_PATH = "servicegen.config.projectName"
EHR_NAME_PATH = "servicegen.config.ehrName"
AUTH_METHOD_PATH = "servicegen.config.authMethod"

SERVICE_FILES = [
    ("service.yaml.j2", "service.yaml"),
    ("config.yaml.j2", "config.yaml"),
    ("README.md.j2", "README.md"),
]


class ServiceStage(Stage):
    """Generates the prebuilt EHR service project wired to the template package."""

    def __init__(self, target_dir: Union[str, Path], name: str = "ehr-service-gen"):
        super().__init__(target_dir, name)
        self.ehr_name: Optional[str] = None
        self.auth_method: Optional[str] = None
        self.base_path = "/fhir/r4"
        self.port = 9090
        self._project_name: Optional[str] = None
        self.renderer = TemplateRenderer("service", name)

    def configure(self, config: Mapping[str, Any]) -> None:
        self.base_path = get_by_path(config, "servicegen.config.basePath", self.base_path)
        port = get_by_path(config, "servicegen.config.port", self.port)
        try:
            self.port = int(port)
        except (TypeError, ValueError) as e:
            raise StageExecutionError(f"Invalid service port: {port!r}", self.name) from e

    def override_config(self, path: str, value: Any) -> None:
        if path == PROJECT_NAME_PATH:
            self._project_name = value
        elif path == EHR_NAME_PATH:
            self.ehr_name = value
        elif path == AUTH_METHOD_PATH:
            self.auth_method = value
        else:
            logger.warning("Invalid config path: %s", path)

    @property
    def project_name(self) -> Optional[str]:
        # Defaulted on first read so a later ehrName override is honoured
        if not self._project_name and self.ehr_name:
            self._project_name = default_project_name(self.ehr_name)
        return self._project_name

    def execute(self, context: ExecutionContext) -> None:
        props = context.generator_properties
        if props is None:
            raise StageExecutionError("Template stage produced no generator properties", self.name)
        if not self.ehr_name:
            raise StageExecutionError("EHR name is not configured", self.name)

        project_dir = self.output_dir(self.project_name)
        variables = {
            "project_name": self.project_name,
            "ehr_name": self.ehr_name,
            "auth_method": self.auth_method,
            "base_path": self.base_path.rstrip("/"),
            "port": self.port,
            "package": props,
            "package_import": props.package_import,
        }
        logger.info("Generating service project %s for %s", self.project_name, self.ehr_name)
        self.written = self.renderer.write_all(project_dir, SERVICE_FILES, variables)
