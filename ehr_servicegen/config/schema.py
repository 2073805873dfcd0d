from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from ..utils import get_by_path


DEFAULT_IG_NAME = "international"
DEFAULT_ORG_NAME = "healthcare"

TEMPLATE_CONFIG_PATH = "fhir.tools.template.config"
SERVICE_CONFIG_PATH = "fhir.tools.ehr-service-gen.config"


class DefaultsConfig(BaseModel):
    implementation_guide: str = DEFAULT_IG_NAME
    org_name: str = DEFAULT_ORG_NAME


class HttpConfig(BaseModel):
    timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "ehr-servicegen/0.1"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    console: bool = True
    file: bool = False
    path: str = "ehr-servicegen.log"


class ToolConfigSchema(BaseModel):
    """Master configuration model reflecting the merged tool YAML.

    The ``fhir`` tree stays raw: each stage slices its own section out of it
    and applies overrides by dotted path before validating.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    fhir: Dict[str, Any] = Field(default_factory=dict)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def slice(self, path: str) -> Dict[str, Any]:
        """Return the mapping at ``path`` of the full document (empty if absent)."""
        section = get_by_path({"fhir": self.fhir}, path, {})
        return dict(section) if isinstance(section, dict) else {}


# Stage-level models. Validated from the config tree after overrides are applied.


class IGConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    implementation_guide: str = Field(alias="implementationGuide")
    import_statement: str = Field(alias="importStatement")
    enable: bool = True
    included_profiles: List[str] = Field(default_factory=list, alias="includedProfiles")
    excluded_profiles: List[str] = Field(default_factory=list, alias="excludedProfiles")


class PackageConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    org: str = DEFAULT_ORG_NAME
    version: str = "1.0.0"
    name_prefix: str = Field(default="health.fhir.templates", alias="namePrefix")
    dependent_package: Optional[str] = Field(default=None, alias="dependentPackage")
    ig_config: Optional[IGConfig] = Field(default=None, alias="igConfig")


class ProjectConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    package: PackageConfig = Field(default_factory=PackageConfig)


class TemplateToolConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    project: ProjectConfig = Field(default_factory=ProjectConfig)
