"""Template converter.

Turns a template envelope into rendered pipeline configuration:

    detect -> parse -> resolve -> dispatch -> render

Each conversion returns one of:
- None: the document is not a template envelope, or the resolved template
  has an extension no renderer handles. The caller tries its next converter.
- Config: the rendered configuration.
- a raised error: TemplateSyntaxError, TemplateNotFoundError, or whatever the
  store or renderer raised.

Example:
    from tmplconv.converter import TemplateConverter
    from tmplconv.persistence import InMemoryTemplateStore

    converter = TemplateConverter(InMemoryTemplateStore([...]))
    config = await converter.convert(args)
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from tmplconv.config import ConverterConfig
from tmplconv.converter.envelope import is_template_envelope, parse_template_args
from tmplconv.converter.renderers import jsonnet, starlark, yaml_template
from tmplconv.core.errors import ConverterError, TemplateNotFoundError
from tmplconv.core.types import Config, ConvertArgs, Template
from tmplconv.persistence.store import NoRowsError, TemplateStore

logger = logging.getLogger(__name__)

Renderer = Callable[[ConvertArgs, Template, dict[str, Any], ConverterConfig], Awaitable[Config]]

# Template extension -> renderer. Case-sensitive.
RENDERERS: dict[str, Renderer] = {
    ".yml": yaml_template.render,
    ".yaml": yaml_template.render,
    ".star": starlark.render,
    ".starlark": starlark.render,
    ".script": starlark.render,
    ".jsonnet": jsonnet.render,
}


def template_extension(name: str) -> str:
    """Return the extension of a template name.

    The extension is the suffix starting at the final dot of the last path
    element, or "" if that element has no dot. A leading dot counts
    (".yml" -> ".yml").
    """
    base = name.rsplit("/", 1)[-1]
    index = base.rfind(".")
    return base[index:] if index >= 0 else ""


def select_renderer(name: str) -> Renderer | None:
    """Pick the renderer for a template name, or None if unsupported."""
    return RENDERERS.get(template_extension(name))


class TemplateConverter:
    """Converts template envelopes using templates from a TemplateStore.

    Attributes:
        store: Namespaced template lookup
        config: Converter configuration
    """

    def __init__(self, store: TemplateStore, config: ConverterConfig | None = None) -> None:
        self.store = store
        self.config = config or ConverterConfig()

    async def resolve(self, name: str, namespace: str) -> Template:
        """Fetch a template by name within a namespace.

        Raises:
            TemplateNotFoundError: If the store has no such template
        """
        try:
            return await self.store.find_name(name, namespace)
        except NoRowsError as e:
            raise TemplateNotFoundError(name, namespace) from e

    async def convert(self, args: ConvertArgs) -> Config | None:
        """Convert a template envelope into pipeline configuration.

        Args:
            args: Conversion input bundle

        Returns:
            Rendered configuration, or None when the document is not a
            template envelope or the template type is unsupported

        Raises:
            TemplateSyntaxError: If the envelope is not valid YAML
            TemplateNotFoundError: If the named template does not exist
        """
        if not is_template_envelope(args):
            return None

        namespace = args.repo.namespace
        try:
            template_args = parse_template_args(args.config.data)
            template = await self.resolve(template_args.load, namespace)
        except ConverterError as e:
            logger.warning(
                "Template conversion failed for %s: %s", args.repo.slug or namespace, e.message
            )
            raise

        renderer = select_renderer(template.name)
        if renderer is None:
            logger.debug("Unsupported template type: %s", template.name)
            return None

        config = await renderer(args, template, template_args.data, self.config)
        logger.info(
            "Rendered template %s for namespace %s (%s bytes)",
            template.name,
            namespace,
            len(config.data),
        )
        return config
