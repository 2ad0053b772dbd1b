"""Template envelope conversion.

This module provides:
- Envelope detection and decoding
- The template converter and its extension dispatch table
"""

from tmplconv.converter.envelope import (
    TEMPLATE_FILE_RE,
    is_template_envelope,
    parse_template_args,
)
from tmplconv.converter.template import (
    RENDERERS,
    TemplateConverter,
    select_renderer,
    template_extension,
)

__all__ = [
    "RENDERERS",
    "TEMPLATE_FILE_RE",
    "TemplateConverter",
    "is_template_envelope",
    "parse_template_args",
    "select_renderer",
    "template_extension",
]
