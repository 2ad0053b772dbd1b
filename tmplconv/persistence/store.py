"""Template store implementations.

This module provides the namespaced template lookup capability used by the
converter, plus two backends: an in-memory store (tests, embedding) and a
SQLite store (command line, single-node deployments).

The converter only ever calls `find_name`. The remaining operations exist for
administration of the store.

Example:
    from tmplconv.persistence import SQLiteTemplateStore
    from tmplconv.core.types import Template

    store = SQLiteTemplateStore("./data/templates.sqlite3")
    await store.create(Template(name="greet.yml", data="...", namespace="octocat"))

    template = await store.find_name("greet.yml", "octocat")
"""

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from tmplconv.core.types import Template

logger = logging.getLogger(__name__)


class NoRowsError(LookupError):
    """Raised by a store when no template matches the lookup."""

    def __init__(self, name: str, namespace: str) -> None:
        super().__init__(f"no template named {name!r} in namespace {namespace!r}")
        self.name = name
        self.namespace = namespace


class TemplateStore(ABC):
    """Abstract base class for template lookup.

    Implementations must raise NoRowsError when the template does not exist
    and let any other failure (I/O, connectivity) propagate unchanged.
    """

    @abstractmethod
    async def find_name(self, name: str, namespace: str) -> Template:
        """Find a template by name within a namespace.

        Args:
            name: Template name, including its extension
            namespace: Owning namespace

        Returns:
            The stored template

        Raises:
            NoRowsError: If no template with that name exists in the namespace
        """


class InMemoryTemplateStore(TemplateStore):
    """Dictionary-backed template store keyed by (namespace, name)."""

    def __init__(self, templates: list[Template] | None = None) -> None:
        self._templates: dict[tuple[str, str], Template] = {}
        self._next_id = 1
        for template in templates or []:
            self._insert(template)

    def _insert(self, template: Template) -> Template:
        now = datetime.now(timezone.utc)
        stored = replace(template, id=self._next_id, created=now, updated=now)
        self._next_id += 1
        self._templates[(stored.namespace, stored.name)] = stored
        return stored

    async def find_name(self, name: str, namespace: str) -> Template:
        try:
            return self._templates[(namespace, name)]
        except KeyError:
            raise NoRowsError(name, namespace) from None

    async def create(self, template: Template) -> Template:
        key = (template.namespace, template.name)
        if key in self._templates:
            msg = f"template {template.name!r} already exists in namespace {template.namespace!r}"
            raise ValueError(msg)
        return self._insert(template)

    async def update(self, template: Template) -> Template:
        current = await self.find_name(template.name, template.namespace)
        stored = replace(
            template, id=current.id, created=current.created, updated=datetime.now(timezone.utc)
        )
        self._templates[(stored.namespace, stored.name)] = stored
        return stored

    async def delete(self, template: Template) -> None:
        if self._templates.pop((template.namespace, template.name), None) is None:
            raise NoRowsError(template.name, template.namespace)

    async def list_namespace(self, namespace: str) -> list[Template]:
        return sorted(
            (t for (ns, _), t in self._templates.items() if ns == namespace),
            key=lambda t: t.name,
        )

    async def list_all(self) -> list[Template]:
        return sorted(self._templates.values(), key=lambda t: (t.namespace, t.name))


class SQLiteTemplateStore(TemplateStore):
    """SQLite-backed template store.

    Schema:
    - templates: template_id, template_name, template_namespace, template_data,
      template_created, template_updated (unix seconds)

    Queries run in a worker thread with their own connection, so awaiting
    callers can be cancelled without blocking the event loop.

    Attributes:
        db_path: Path to SQLite database file
    """

    _COLUMNS = (
        "template_id, template_name, template_namespace, template_data, "
        "template_created, template_updated"
    )

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        """Initialize SQLite template store.

        Args:
            db_path: Path to database file (created if it doesn't exist)
            timeout: Seconds to wait for a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS templates (
                    template_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    template_name TEXT NOT NULL,
                    template_namespace TEXT NOT NULL,
                    template_data TEXT NOT NULL,
                    template_created INTEGER NOT NULL,
                    template_updated INTEGER NOT NULL,
                    UNIQUE (template_name, template_namespace)
                )
            """)

        logger.info("Initialized SQLiteTemplateStore at %s", self.db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and always close it."""
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @staticmethod
    def _to_template(row: sqlite3.Row) -> Template:
        return Template(
            id=row["template_id"],
            name=row["template_name"],
            namespace=row["template_namespace"],
            data=row["template_data"],
            created=datetime.fromtimestamp(row["template_created"], tz=timezone.utc),
            updated=datetime.fromtimestamp(row["template_updated"], tz=timezone.utc),
        )

    def _find_name(self, name: str, namespace: str) -> Template:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {self._COLUMNS} FROM templates "
                "WHERE template_name = ? AND template_namespace = ?",
                (name, namespace),
            ).fetchone()
        if row is None:
            raise NoRowsError(name, namespace)
        return self._to_template(row)

    async def find_name(self, name: str, namespace: str) -> Template:
        return await asyncio.to_thread(self._find_name, name, namespace)

    def _create(self, template: Template) -> Template:
        now = int(datetime.now(timezone.utc).timestamp())
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO templates (template_name, template_namespace, template_data, "
                "template_created, template_updated) VALUES (?, ?, ?, ?, ?)",
                (template.name, template.namespace, template.data, now, now),
            )
            template_id = cursor.lastrowid
        logger.debug("Created template %s/%s", template.namespace, template.name)
        created = datetime.fromtimestamp(now, tz=timezone.utc)
        return replace(template, id=template_id, created=created, updated=created)

    async def create(self, template: Template) -> Template:
        """Insert a new template.

        Raises:
            sqlite3.IntegrityError: If the name already exists in the namespace
        """
        return await asyncio.to_thread(self._create, template)

    def _update(self, template: Template) -> Template:
        now = int(datetime.now(timezone.utc).timestamp())
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE templates SET template_data = ?, template_updated = ? "
                "WHERE template_name = ? AND template_namespace = ?",
                (template.data, now, template.name, template.namespace),
            )
            if cursor.rowcount == 0:
                raise NoRowsError(template.name, template.namespace)
        return self._find_name(template.name, template.namespace)

    async def update(self, template: Template) -> Template:
        """Replace the source of an existing template."""
        return await asyncio.to_thread(self._update, template)

    def _delete(self, template: Template) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM templates WHERE template_name = ? AND template_namespace = ?",
                (template.name, template.namespace),
            )
            if cursor.rowcount == 0:
                raise NoRowsError(template.name, template.namespace)
        logger.debug("Deleted template %s/%s", template.namespace, template.name)

    async def delete(self, template: Template) -> None:
        await asyncio.to_thread(self._delete, template)

    def _list(self, namespace: str | None) -> list[Template]:
        query = f"SELECT {self._COLUMNS} FROM templates"
        params: tuple[str, ...] = ()
        if namespace is not None:
            query += " WHERE template_namespace = ?"
            params = (namespace,)
        query += " ORDER BY template_namespace, template_name"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._to_template(row) for row in rows]

    async def list_namespace(self, namespace: str) -> list[Template]:
        """List templates of one namespace, ordered by name."""
        return await asyncio.to_thread(self._list, namespace)

    async def list_all(self) -> list[Template]:
        """List templates of every namespace."""
        return await asyncio.to_thread(self._list, None)
