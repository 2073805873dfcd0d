from .loader import ConfigLoader, load_tool_config
from .schema import (
    DEFAULT_IG_NAME,
    DEFAULT_ORG_NAME,
    SERVICE_CONFIG_PATH,
    TEMPLATE_CONFIG_PATH,
    ToolConfigSchema,
)

__all__ = [
    "ConfigLoader",
    "load_tool_config",
    "DEFAULT_IG_NAME",
    "DEFAULT_ORG_NAME",
    "SERVICE_CONFIG_PATH",
    "TEMPLATE_CONFIG_PATH",
    "ToolConfigSchema",
]
