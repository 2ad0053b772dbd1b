"""
Error taxonomy for the template converter.

Every classified failure raised by the converter derives from ConverterError,
which carries a stable code and a severity. Failures of the template store
(other than "no rows") and of the rendering engines are NOT wrapped: they
propagate as raised so the caller sees the underlying diagnostic.

"Not applicable" is not an error. The converter returns None for it.
"""

from enum import Enum
from typing import Any

# ============================================================================
# Error Codes and Severity
# ============================================================================


class ErrorCode(str, Enum):
    """Enumeration of all error codes raised by the converter."""

    TEMPLATE_SYNTAX_ERROR = "TEMPLATE_SYNTAX_ERROR"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    RENDER_ERROR = "RENDER_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"


class ErrorSeverity(str, Enum):
    """Error severity for reporting."""

    FATAL = "fatal"  # Unrecoverable, requires intervention
    USER_ERROR = "user_error"  # Configuration authoring mistake


# ============================================================================
# Base Exception Class
# ============================================================================


class ConverterError(Exception):
    """Base class for all classified converter errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
        severity: ErrorSeverity = ErrorSeverity.FATAL,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.severity = severity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "error": self.code.value,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }


# ============================================================================
# Envelope and Lookup Errors
# ============================================================================


class TemplateSyntaxError(ConverterError):
    """The template envelope could not be decoded."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(
            "template converter: there is a problem with the yaml file provided",
            code=ErrorCode.TEMPLATE_SYNTAX_ERROR,
            details={"reason": reason} if reason else None,
            severity=ErrorSeverity.USER_ERROR,
        )


class TemplateNotFoundError(ConverterError):
    """The named template does not exist in the requesting namespace."""

    def __init__(self, name: str, namespace: str) -> None:
        super().__init__(
            "template converter: template name given not found",
            code=ErrorCode.TEMPLATE_NOT_FOUND,
            details={"name": name, "namespace": namespace},
            severity=ErrorSeverity.USER_ERROR,
        )
        self.name = name
        self.namespace = namespace


# ============================================================================
# Render Errors
# ============================================================================


class RenderError(ConverterError):
    """Base for failures detected by the script renderers themselves."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            code=ErrorCode.RENDER_ERROR,
            details=details,
            severity=ErrorSeverity.USER_ERROR,
        )


class StarlarkMainMissingError(RenderError):
    """The Starlark script does not define `main`."""

    def __init__(self, template: str) -> None:
        super().__init__("starlark: missing main function", {"template": template})


class StarlarkMainInvalidError(RenderError):
    """`main` is defined but is not a function."""

    def __init__(self, template: str, kind: str) -> None:
        super().__init__("starlark: main must be a function", {"template": template, "type": kind})


class StarlarkMainReturnError(RenderError):
    """`main` returned something other than a dict or a list of dicts."""

    def __init__(self, template: str, kind: str) -> None:
        super().__init__(
            "starlark: main returns an invalid type", {"template": template, "type": kind}
        )


class RenderOutputTooLargeError(RenderError):
    """Rendered output exceeds the configured size limit."""

    def __init__(self, template: str, size: int, limit: int) -> None:
        super().__init__(
            f"maximum file size exceeded: {size} bytes (limit {limit})",
            {"template": template, "size": size, "limit": limit},
        )


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigError(ConverterError):
    """Invalid converter configuration."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code=ErrorCode.CONFIG_ERROR, details=details)
