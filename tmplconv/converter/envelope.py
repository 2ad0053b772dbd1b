"""Template envelope detection and decoding.

A repository configuration is a template envelope when it is a `.yml` file
whose text starts with the `kind: template` marker line:

    kind: template
    load: greet.yml
    data:
      name: World
"""

import logging
import re
from typing import Any

import yaml
from pydantic import ValidationError
from yaml.constructor import ConstructorError

from tmplconv.core.errors import TemplateSyntaxError
from tmplconv.core.types import ConvertArgs, TemplateArgs

logger = logging.getLogger(__name__)

ENVELOPE_EXTENSION = ".yml"

# Anchored at the start of the text; whitespace class matches RE2 \s.
TEMPLATE_FILE_RE = re.compile(r"^kind:[\t\n\f\r ]+template+\n")

TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
MERGE_TAG = "tag:yaml.org,2002:merge"


class EnvelopeLoader(yaml.SafeLoader):
    """SafeLoader for envelopes.

    Plain timestamps stay strings so envelope data can be handed to the
    script engines. Repeated mapping keys are rejected.
    """

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            if key_node.tag == MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                # Unhashable keys are reported by the base constructor
                continue
            if duplicate:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


EnvelopeLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def is_template_envelope(args: ConvertArgs) -> bool:
    """Check whether the configuration is a template envelope.

    The filename is checked before the content scan.

    Args:
        args: Conversion input bundle

    Returns:
        True if both the filename and the marker line match
    """
    if not args.repo.config.endswith(ENVELOPE_EXTENSION):
        return False
    return TEMPLATE_FILE_RE.match(args.config.data) is not None


def parse_template_args(text: str) -> TemplateArgs:
    """Decode an envelope into TemplateArgs.

    Only the first YAML document is decoded.

    Args:
        text: Full envelope text

    Returns:
        Decoded template arguments

    Raises:
        TemplateSyntaxError: If the text is not valid YAML or has the wrong shape
    """
    try:
        document = next(yaml.load_all(text, Loader=EnvelopeLoader), None)
        return TemplateArgs.model_validate(document or {})
    except (yaml.YAMLError, ValidationError) as e:
        logger.debug("Template envelope rejected: %s", e)
        raise TemplateSyntaxError(str(e)) from e
