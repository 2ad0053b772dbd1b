"""Template renderers.

Each renderer module exposes `render(args, template, data, config)` returning
a Config. They are independent; the converter picks one by template
extension.
"""

from tmplconv.converter.renderers import jsonnet, starlark, yaml_template

__all__ = ["jsonnet", "starlark", "yaml_template"]
