"""
tmplconv: CI template envelope converter

Resolves pipeline configuration documents declaring `kind: template` into
rendered pipeline configuration, using templates kept in a namespaced store.

Public API modules:
- tmplconv.converter: Template converter and renderers
- tmplconv.persistence: Template store abstraction and implementations
- tmplconv.core: Types, errors and protocols
- tmplconv.config: Runtime configuration
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tmplconv")
except PackageNotFoundError:
    # Development checkout, not installed via pip
    __version__ = "0.1.0"

from tmplconv.converter.template import TemplateConverter

__all__ = ["TemplateConverter", "__version__"]
