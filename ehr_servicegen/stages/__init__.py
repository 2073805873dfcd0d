from .base import Stage
from .registry import StageKind, StageRegistry
from .service_stage import ServiceStage
from .template_stage import TemplateStage

__all__ = ["Stage", "StageKind", "StageRegistry", "ServiceStage", "TemplateStage"]
