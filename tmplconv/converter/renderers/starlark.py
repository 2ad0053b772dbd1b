"""Sandboxed Starlark renderer for `.star`, `.starlark` and `.script` templates.

The template is a Starlark script defining `main(ctx)`. The context is a dict
with three keys:
- build: build context (event, branch, commit, ...)
- repo: repository context (namespace, name, slug, ...)
- input: the envelope `data` mapping, unmodified

`main` returns a dict (one pipeline) or a list of dicts (several pipelines).
Each is emitted as a JSON document preceded by a `---` separator:

    def main(ctx):
        return {
            "kind": "pipeline",
            "name": ctx["input"]["name"],
            "steps": [{"name": "build", "image": ctx["input"]["image"]}],
        }

Evaluation runs in a worker thread bounded by the configured render deadline.
Engine errors (syntax, resolution, evaluation) are raised as the engine
reports them.
"""

import asyncio
import json
import logging
from typing import Any

from tmplconv.config import ConverterConfig
from tmplconv.core.errors import (
    RenderOutputTooLargeError,
    StarlarkMainInvalidError,
    StarlarkMainMissingError,
    StarlarkMainReturnError,
)
from tmplconv.core.types import Config, ConvertArgs, Template

logger = logging.getLogger(__name__)

ENTRYPOINT = "main"


def _build_context(args: ConvertArgs, data: dict[str, Any]) -> dict[str, Any]:
    return {
        "build": args.build.to_context(),
        "repo": args.repo.to_context(),
        "input": data,
    }


def _documents(template: Template, value: Any) -> list[dict[str, Any]]:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list) and all(isinstance(item, dict) for item in value):
        return value
    raise StarlarkMainReturnError(template.name, type(value).__name__)


def execute(
    args: ConvertArgs, template: Template, data: dict[str, Any], max_output_bytes: int = 0
) -> str:
    """Run a Starlark template and serialize what `main` returns.

    Args:
        args: Conversion input bundle (build and repo context)
        template: Stored Starlark script
        data: Envelope substitution data, exposed as ctx["input"]
        max_output_bytes: Output size limit (0 = unlimited)

    Returns:
        Stream of `---` separated JSON documents

    Raises:
        StarlarkMainMissingError: If the script does not define main
        StarlarkMainInvalidError: If main is not a function
        StarlarkMainReturnError: If main returns neither a dict nor a list of dicts
        RenderOutputTooLargeError: If the output exceeds max_output_bytes
        starlark_go.StarlarkError: For syntax and evaluation errors
    """
    try:
        from starlark_go import ResolveError, Starlark  # optional dependency
    except ImportError:
        msg = "starlark-go is required for Starlark templates. Install with: pip install starlark-go"
        raise ImportError(msg) from None

    thread = Starlark()
    thread.exec(template.data, filename=template.name)

    try:
        kind = thread.eval(f"type({ENTRYPOINT})")
    except ResolveError:
        raise StarlarkMainMissingError(template.name) from None
    if kind != "function":
        raise StarlarkMainInvalidError(template.name, kind)

    thread.set(ctx=_build_context(args, data))
    value = thread.eval(f"{ENTRYPOINT}(ctx)", filename=template.name)

    output = "".join(
        f"---\n{json.dumps(document)}\n" for document in _documents(template, value)
    )
    size = len(output.encode("utf-8"))
    if max_output_bytes and size > max_output_bytes:
        raise RenderOutputTooLargeError(template.name, size, max_output_bytes)
    return output


async def render(
    args: ConvertArgs, template: Template, data: dict[str, Any], config: ConverterConfig
) -> Config:
    """Render a Starlark template into configuration."""
    output = await asyncio.wait_for(
        asyncio.to_thread(execute, args, template, data, config.max_output_bytes),
        timeout=config.render_timeout_seconds,
    )
    logger.debug("Rendered starlark template %s (%s bytes)", template.name, len(output))
    return Config(data=output)
