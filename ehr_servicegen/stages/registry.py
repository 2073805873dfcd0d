from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional

from ..exceptions import ToolLoadError
from .base import Stage
from .service_stage import ServiceStage
from .template_stage import TemplateStage


class StageKind(str, Enum):
    TEMPLATE = "template"
    SERVICE = "ehr-service-gen"


StageFactory = Callable[..., Stage]

DEFAULT_FACTORIES: Dict[StageKind, StageFactory] = {
    StageKind.TEMPLATE: TemplateStage,
    StageKind.SERVICE: ServiceStage,
}


class StageRegistry:
    """Maps each StageKind to the factory that builds it."""

    def __init__(self, factories: Optional[Dict[StageKind, StageFactory]] = None) -> None:
        self._factories: Dict[StageKind, StageFactory] = dict(DEFAULT_FACTORIES if factories is None else factories)

    def add(self, kind: StageKind, factory: StageFactory) -> None:
        self._factories[kind] = factory

    def get(self, kind: StageKind) -> StageFactory:
        try:
            return self._factories[kind]
        except KeyError:
            raise ToolLoadError(f"No implementation registered for stage '{kind.value}'", kind.value) from None

    def names(self) -> list[str]:
        return [k.value for k in self._factories]

    def create(self, kind: StageKind, **kwargs) -> Stage:
        factory = self.get(kind)
        try:
            stage = factory(name=kind.value, **kwargs)
        except Exception as e:
            raise ToolLoadError(f"Failed to instantiate stage '{kind.value}': {e}", kind.value) from e
        if not isinstance(stage, Stage):
            raise ToolLoadError(f"Factory for '{kind.value}' did not return a Stage", kind.value)
        return stage
