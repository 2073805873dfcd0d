from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..models import GeneratorProperties


# Property name the template stage output is published under
GENERATOR_PROPERTIES_KEY = "ehrServiceGenProperties"


@dataclass
class ExecutionContext:
    """State shared by the pipeline stages of a single run."""
    target_dir: Path
    generator_properties: Optional[GeneratorProperties] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    def get_property(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def set_property(self, name: str, value: Any) -> None:
        self.properties[name] = value

    def publish_generator_properties(self, props: GeneratorProperties) -> None:
        self.generator_properties = props
        self.properties[GENERATOR_PROPERTIES_KEY] = props
