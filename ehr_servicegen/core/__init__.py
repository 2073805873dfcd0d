from .capability import ProfileSetResolver, ResolvedProfiles, parse_capability_statement
from .context import ExecutionContext
from .overlay import build_ig_override

__all__ = [
    "ProfileSetResolver",
    "ResolvedProfiles",
    "parse_capability_statement",
    "ExecutionContext",
    "build_ig_override",
]
