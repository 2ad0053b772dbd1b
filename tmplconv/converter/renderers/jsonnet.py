"""Jsonnet renderer for `.jsonnet` templates.

Build, repository and template data are exposed as external variables:

    local name = std.extVar("input.name");
    local branch = std.extVar("build.branch");

    {
      kind: "pipeline",
      name: name,
      trigger: { branch: [branch] },
    }

String values are passed as-is. Other values are JSON encoded, so scripts
decode them with `std.parseJson`. A top-level array is treated as a stream of
documents, one per element.
"""

import asyncio
import json
import logging
from typing import Any

from tmplconv.config import ConverterConfig
from tmplconv.core.errors import RenderOutputTooLargeError
from tmplconv.core.types import Config, ConvertArgs, Template

logger = logging.getLogger(__name__)


def _ext_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def external_vars(args: ConvertArgs, data: dict[str, Any]) -> dict[str, str]:
    """Flatten build, repo and template data into Jsonnet external variables."""
    ext_vars: dict[str, str] = {}
    for prefix, context in (
        ("build", args.build.to_context()),
        ("repo", args.repo.to_context()),
        ("input", data),
    ):
        for key, value in context.items():
            ext_vars[f"{prefix}.{key}"] = _ext_value(value)
    return ext_vars


def evaluate(
    args: ConvertArgs,
    template: Template,
    data: dict[str, Any],
    max_stack: int = 500,
    max_trace: int = 20,
    max_output_bytes: int = 0,
) -> str:
    """Evaluate a Jsonnet template into a document stream.

    Args:
        args: Conversion input bundle (build and repo context)
        template: Stored Jsonnet source
        data: Envelope substitution data, exposed as input.<key>
        max_stack: Jsonnet VM maximum stack depth
        max_trace: Stack trace lines included in errors
        max_output_bytes: Output size limit (0 = unlimited)

    Returns:
        Stream of `---` separated JSON documents

    Raises:
        RuntimeError: If Jsonnet evaluation fails
        RenderOutputTooLargeError: If the output exceeds max_output_bytes
    """
    try:
        import _jsonnet  # optional dependency
    except ImportError:
        msg = "jsonnet is required for Jsonnet templates. Install with: pip install jsonnet"
        raise ImportError(msg) from None

    result = _jsonnet.evaluate_snippet(
        template.name,
        template.data,
        ext_vars=external_vars(args, data),
        max_stack=max_stack,
        max_trace=max_trace,
    )

    value = json.loads(result)
    if isinstance(value, list):
        documents = [json.dumps(item, indent=3, ensure_ascii=False) + "\n" for item in value]
    else:
        documents = [result]
    output = "".join(f"---\n{document}" for document in documents)

    size = len(output.encode("utf-8"))
    if max_output_bytes and size > max_output_bytes:
        raise RenderOutputTooLargeError(template.name, size, max_output_bytes)
    return output


async def render(
    args: ConvertArgs, template: Template, data: dict[str, Any], config: ConverterConfig
) -> Config:
    """Render a Jsonnet template into configuration."""
    output = await asyncio.wait_for(
        asyncio.to_thread(
            evaluate,
            args,
            template,
            data,
            config.jsonnet_max_stack,
            config.jsonnet_max_trace,
            config.max_output_bytes,
        ),
        timeout=config.render_timeout_seconds,
    )
    logger.debug("Rendered jsonnet template %s (%s bytes)", template.name, len(output))
    return Config(data=output)
