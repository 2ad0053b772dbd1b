"""Core types, errors and protocols for tmplconv."""

from tmplconv.core.errors import (
    ConfigError,
    ConverterError,
    ErrorCode,
    ErrorSeverity,
    RenderError,
    RenderOutputTooLargeError,
    StarlarkMainInvalidError,
    StarlarkMainMissingError,
    StarlarkMainReturnError,
    TemplateNotFoundError,
    TemplateSyntaxError,
)
from tmplconv.core.protocols import ConvertService
from tmplconv.core.types import (
    Build,
    Config,
    ConfigFile,
    ConvertArgs,
    Repository,
    Template,
    TemplateArgs,
)

__all__ = [
    "Build",
    "Config",
    "ConfigError",
    "ConfigFile",
    "ConvertArgs",
    "ConvertService",
    "ConverterError",
    "ErrorCode",
    "ErrorSeverity",
    "RenderError",
    "RenderOutputTooLargeError",
    "Repository",
    "StarlarkMainInvalidError",
    "StarlarkMainMissingError",
    "StarlarkMainReturnError",
    "Template",
    "TemplateArgs",
    "TemplateNotFoundError",
    "TemplateSyntaxError",
]
