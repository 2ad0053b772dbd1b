"""Plain substitution renderer for `.yml` and `.yaml` templates.

The stored template is a Jinja2 text template rendered in a sandbox with the
envelope `data` mapping as its context:

    kind: pipeline
    name: {{ name }}
    steps:
    {% for target in targets %}
    - name: build-{{ target }}
    {% endfor %}

Compile and execution errors are raised as Jinja2 reports them.
"""

import logging
from typing import Any

from jinja2 import DictLoader, StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from tmplconv.config import ConverterConfig
from tmplconv.core.types import Config, ConvertArgs, Template

logger = logging.getLogger(__name__)


def _environment(template: Template) -> SandboxedEnvironment:
    return SandboxedEnvironment(
        loader=DictLoader({template.name: template.data}),
        undefined=StrictUndefined,  # Fail on undefined variables
        autoescape=False,  # Output is YAML, not HTML
        keep_trailing_newline=True,
    )


def render_text(template: Template, data: dict[str, Any]) -> str:
    """Render template source with the substitution mapping.

    Args:
        template: Stored template (name is used in error reports)
        data: Substitution values

    Returns:
        Rendered text, unmodified

    Raises:
        jinja2.TemplateSyntaxError: If the template does not compile
        jinja2.UndefinedError: If the template references a missing value
    """
    compiled = _environment(template).get_template(template.name)
    return compiled.render(data)


async def render(
    args: ConvertArgs, template: Template, data: dict[str, Any], config: ConverterConfig
) -> Config:
    """Render a `.yml`/`.yaml` template into configuration."""
    rendered = render_text(template, data)
    logger.debug("Rendered text template %s (%s bytes)", template.name, len(rendered))
    return Config(data=rendered)
