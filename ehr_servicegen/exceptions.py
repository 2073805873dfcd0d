"""
Exceptions raised by the service generator.

Hierarchy:
    ServiceGenError (base)
    ├── CapabilityStatementError   → capability statement could not be used
    │   ├── FetchError             → remote fetch failed (HTTP, timeout, DNS)
    │   ├── NotFoundError          → local file does not exist
    │   └── ParseError             → not JSON / not a CapabilityStatement
    ├── MissingNameError           → no EHR name given or inferable
    ├── InvalidArgumentError       → bad caller input (unknown option, empty name)
    ├── ConfigurationError         → tool configuration unreadable or invalid
    ├── ToolLoadError              → a pipeline stage could not be created
    └── StageExecutionError        → a pipeline stage failed while generating

Capability statement errors are recoverable: the pipeline reports them and keeps
the profiles it already has. Everything else aborts the run.
"""

from typing import Optional


class ServiceGenError(Exception):
    """Base exception for all service generator errors.

    Attributes:
        message: Human-readable error description
        context: Extra key/value details appended to the message
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


class CapabilityStatementError(ServiceGenError):
    """The capability statement at ``location`` could not be used."""

    def __init__(self, message: str, location: Optional[str] = None, context: Optional[dict] = None):
        self.location = location
        ctx = dict(context or {})
        if location:
            ctx.setdefault("location", location)
        super().__init__(message, ctx)


class FetchError(CapabilityStatementError):
    """Remote capability statement could not be downloaded."""


class NotFoundError(CapabilityStatementError):
    """Local capability statement file does not exist."""


class ParseError(CapabilityStatementError):
    """Document is not a readable CapabilityStatement."""


class MissingNameError(ServiceGenError):
    """No EHR name was supplied and none could be read from the publisher."""

    def __init__(self, message: Optional[str] = None, context: Optional[dict] = None):
        super().__init__(
            message
            or "Cannot set ehr name from capability statement. "
            "Manually set ehr name using --ehr-name option.",
            context,
        )


class InvalidArgumentError(ServiceGenError):
    """Caller supplied an unusable argument."""


class ConfigurationError(ServiceGenError):
    """Tool configuration could not be loaded or validated."""


class ToolLoadError(ServiceGenError):
    """A pipeline stage could not be looked up or instantiated."""

    def __init__(self, message: str, stage: Optional[str] = None, context: Optional[dict] = None):
        self.stage = stage
        ctx = dict(context or {})
        if stage:
            ctx.setdefault("stage", stage)
        super().__init__(message, ctx)


class StageExecutionError(ServiceGenError):
    """A pipeline stage failed while generating output."""

    def __init__(self, message: str, stage: Optional[str] = None, context: Optional[dict] = None):
        self.stage = stage
        ctx = dict(context or {})
        if stage:
            ctx.setdefault("stage", stage)
        super().__init__(message, ctx)
