from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config.schema import SERVICE_CONFIG_PATH, TEMPLATE_CONFIG_PATH, ToolConfigSchema
from .core.capability import ProfileSetResolver
from .core.context import ExecutionContext
from .core.overlay import build_ig_override
from .exceptions import (
    CapabilityStatementError,
    InvalidArgumentError,
    MissingNameError,
    ServiceGenError,
    StageExecutionError,
)
from .models import GenerationRequest, GeneratorProperties, ImplementationGuideOverride, ProfileSet
from .stages.base import Stage
from .stages.registry import StageKind, StageRegistry
from .stages.service_stage import AUTH_METHOD_PATH, EHR_NAME_PATH, PROJECT_NAME_PATH
from .utils import safe_dir_name, short_package_name

logger = logging.getLogger(__name__)

IG_CONFIG_PATH = "project.package.igConfig"
DEPENDENT_PACKAGE_PATH = "project.package.dependentPackage"
NAME_PREFIX_PATH = "project.package.namePrefix"


def _execute(stage: Stage, context: ExecutionContext) -> Optional[GeneratorProperties]:
    try:
        return stage.execute(context)
    except ServiceGenError:
        raise
    except Exception as e:
        raise StageExecutionError(f"Stage failed: {e}", stage.name) from e


@dataclass
class PipelineResult:
    ehr_name: str
    project_name: str
    profiles: ProfileSet
    ig_override: ImplementationGuideOverride
    generator_properties: Optional[GeneratorProperties] = None
    written: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class PipelineOrchestrator:
    """Resolves profiles, builds the IG overlay and runs the template and service stages."""

    def __init__(
        self,
        config: ToolConfigSchema,
        *,
        registry: Optional[StageRegistry] = None,
        resolver: Optional[ProfileSetResolver] = None,
    ) -> None:
        self.cfg = config
        self.registry = registry or StageRegistry()
        self.resolver = resolver or ProfileSetResolver(config.http)

    def resolve_profiles(
        self,
        request: GenerationRequest,
        warnings: List[str],
        *,
        deadline: Optional[float] = None,
    ) -> GenerationRequest:
        """Merge capability statement profiles (and inferred name) into a copy of ``request``.

        Fetch/parse/not-found failures are reported and the caller's profiles kept;
        MissingNameError propagates.
        """
        if not request.capability_statement:
            return request
        try:
            resolved = self.resolver.resolve(
                request.capability_statement,
                request.included_profiles,
                request.ehr_name,
                deadline=deadline,
            )
        except CapabilityStatementError as e:
            logger.warning("%s: %s", type(e).__name__, e)
            warnings.append(f"{type(e).__name__}: {e}")
            return request

        update = {"included_profiles": resolved.profiles.as_list()}
        if resolved.inferred_name:
            logger.info("Using publisher '%s' as EHR name", resolved.inferred_name)
            update["ehr_name"] = resolved.inferred_name
        return request.model_copy(update=update)

    def run(self, request: GenerationRequest, *, deadline: Optional[float] = None) -> PipelineResult:
        warnings: List[str] = []
        resolved = self.resolve_profiles(request, warnings, deadline=deadline)
        if not resolved.ehr_name:
            raise MissingNameError()
        project_name = resolved.resolved_project_name
        try:
            safe_dir_name(project_name)
        except ValueError as e:
            raise InvalidArgumentError(f"Unusable project name: {project_name!r}") from e

        profiles = ProfileSet(resolved.included_profiles)
        ig_override = build_ig_override(
            self.cfg.defaults.implementation_guide,
            resolved.org_name,
            profiles,
            None,
            default_org=self.cfg.defaults.org_name,
        )

        target_dir = Path(resolved.output_dir)
        context = ExecutionContext(target_dir=target_dir)

        # Stage one: template package
        template_stage = self.registry.create(StageKind.TEMPLATE, target_dir=target_dir)
        template_stage.configure(self.cfg.slice(TEMPLATE_CONFIG_PATH))
        template_stage.override_config(IG_CONFIG_PATH, ig_override.to_config())
        if resolved.dependent_package:
            template_stage.override_config(DEPENDENT_PACKAGE_PATH, resolved.dependent_package)
            template_stage.override_config(NAME_PREFIX_PATH, short_package_name(resolved.dependent_package))
        props = _execute(template_stage, context)
        if props is None:
            raise StageExecutionError("Stage returned no generator properties", template_stage.name)
        context.publish_generator_properties(props)

        # Stage two: prebuilt service, reading what stage one published
        service_stage = self.registry.create(StageKind.SERVICE, target_dir=target_dir)
        service_stage.configure(self.cfg.slice(SERVICE_CONFIG_PATH))
        service_stage.override_config(PROJECT_NAME_PATH, resolved.project_name or None)
        service_stage.override_config(EHR_NAME_PATH, resolved.ehr_name)
        service_stage.override_config(AUTH_METHOD_PATH, resolved.auth_method)
        _execute(service_stage, context)

        written = template_stage.written + service_stage.written
        return PipelineResult(
            ehr_name=resolved.ehr_name,
            project_name=project_name,
            profiles=profiles,
            ig_override=ig_override,
            generator_properties=props,
            written=written,
            warnings=warnings,
        )
