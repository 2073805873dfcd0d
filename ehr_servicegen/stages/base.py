"""
Abstract base class for pipeline stages.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from ..core.context import ExecutionContext
from ..exceptions import StageExecutionError
from ..models import GeneratorProperties
from ..utils import is_within, safe_dir_name


class Stage(ABC):
    """One configurable, executable step of the generation pipeline."""

    def __init__(self, target_dir: Union[str, Path], name: str):
        self.target_dir = Path(target_dir)
        self.name = name
        # Files produced by the last execute(), in write order
        self.written: List[Path] = []

    @abstractmethod
    def configure(self, config: Mapping[str, Any]) -> None:
        """Load the stage's slice of the base tool configuration."""
        pass

    @abstractmethod
    def override_config(self, path: str, value: Any) -> None:
        """Patch a single dotted config path after configure()."""
        pass

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Optional[GeneratorProperties]:
        """Generate output under target_dir."""
        pass

    def output_dir(self, name: str) -> Path:
        """Folder for ``name`` directly under target_dir; never outside it."""
        try:
            folder = self.target_dir / safe_dir_name(name)
        except ValueError as e:
            raise StageExecutionError(str(e), self.name) from e
        if not is_within(folder, self.target_dir):
            raise StageExecutionError(f"Output folder {folder} is outside {self.target_dir}", self.name)
        return folder

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, target_dir={str(self.target_dir)!r})"
