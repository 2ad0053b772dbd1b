"""Persistence layer for stored templates.

The converter depends only on the TemplateStore capability. In-memory and
SQLite backends are provided.
"""

from tmplconv.persistence.store import (
    InMemoryTemplateStore,
    NoRowsError,
    SQLiteTemplateStore,
    TemplateStore,
)

__all__ = [
    "InMemoryTemplateStore",
    "NoRowsError",
    "SQLiteTemplateStore",
    "TemplateStore",
]
