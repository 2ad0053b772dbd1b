"""
Protocol interfaces shared with the outer conversion chain.

Converters are tried in order by the caller. A converter returns None when a
document is not meant for it so the next one can take over.
"""

from typing import Protocol, runtime_checkable

from tmplconv.core.types import Config, ConvertArgs


@runtime_checkable
class ConvertService(Protocol):
    """Converts a raw repository configuration into pipeline configuration."""

    async def convert(self, args: ConvertArgs) -> Config | None:
        """Convert the configuration in `args`.

        Args:
            args: Conversion input bundle

        Returns:
            Rendered configuration, or None when this converter does not apply
        """
        ...
