"""Conversion data model.

This module defines the value objects exchanged between the outer conversion
chain, the template converter and the template store.

Example:
    from tmplconv.core.types import ConfigFile, ConvertArgs, Repository

    args = ConvertArgs(
        repo=Repository(namespace="octocat", name="hello-world", config=".drone.yml"),
        config=ConfigFile(data="kind: template\\nload: greet.yml\\n"),
    )
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class Repository:
    """Repository that owns the configuration being converted.

    Attributes:
        namespace: Owning organization or account, scopes template names
        name: Repository name
        config: Declared configuration file path (e.g. ".drone.yml")
        slug: Full repository name ("namespace/name")
    """

    namespace: str
    name: str = ""
    config: str = ".drone.yml"
    slug: str = ""
    uid: str = ""
    branch: str = ""
    link: str = ""
    git_http_url: str = ""
    git_ssh_url: str = ""
    visibility: str = ""
    private: bool = False
    active: bool = True
    trusted: bool = False
    protected: bool = False
    ignore_forks: bool = False
    ignore_pull_requests: bool = False

    def to_context(self) -> dict[str, Any]:
        """Flatten the repository into the mapping exposed to script engines."""
        return {
            "uid": self.uid,
            "name": self.name,
            "namespace": self.namespace,
            "slug": self.slug or f"{self.namespace}/{self.name}",
            "git_http_url": self.git_http_url,
            "git_ssh_url": self.git_ssh_url,
            "link": self.link,
            "branch": self.branch,
            "config": self.config,
            "private": self.private,
            "visibility": self.visibility,
            "active": self.active,
            "trusted": self.trusted,
            "protected": self.protected,
            "ignore_forks": self.ignore_forks,
            "ignore_pull_requests": self.ignore_pull_requests,
        }


@dataclass(frozen=True)
class Build:
    """Ambient build context for a conversion."""

    event: str = ""
    action: str = ""
    environment: dict[str, str] = field(default_factory=dict)
    link: str = ""
    branch: str = ""
    source: str = ""
    before: str = ""
    after: str = ""
    target: str = ""
    ref: str = ""
    commit: str = ""
    title: str = ""
    message: str = ""
    source_repo: str = ""
    author_login: str = ""
    author_name: str = ""
    author_email: str = ""
    author_avatar: str = ""
    sender: str = ""
    debug: bool = False
    params: dict[str, str] = field(default_factory=dict)

    def to_context(self) -> dict[str, Any]:
        """Flatten the build into the mapping exposed to script engines."""
        return {
            "event": self.event,
            "action": self.action,
            "environment": dict(self.environment),
            "link": self.link,
            "branch": self.branch,
            "source": self.source,
            "before": self.before,
            "after": self.after,
            "target": self.target,
            "ref": self.ref,
            "commit": self.commit,
            "title": self.title,
            "message": self.message,
            "source_repo": self.source_repo,
            "author_login": self.author_login,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "author_avatar": self.author_avatar,
            "sender": self.sender,
            "debug": self.debug,
            "params": dict(self.params),
        }


@dataclass(frozen=True)
class ConfigFile:
    """Raw configuration document fetched from the repository."""

    data: str


@dataclass(frozen=True)
class ConvertArgs:
    """Input bundle for one conversion attempt.

    Attributes:
        repo: Originating repository (namespace, declared config filename)
        config: Raw configuration document
        build: Ambient build context
    """

    repo: Repository
    config: ConfigFile
    build: Build = field(default_factory=Build)


@dataclass(frozen=True)
class Config:
    """Rendered pipeline configuration handed back to the caller."""

    data: str


@dataclass(frozen=True)
class Template:
    """Stored template.

    Attributes:
        name: Template name, unique within a namespace
        data: Raw template source
        namespace: Owning namespace
        id: Store identifier (None until persisted)
        created: Creation timestamp
        updated: Last update timestamp
    """

    name: str
    data: str
    namespace: str = ""
    id: int | None = None
    created: datetime | None = None
    updated: datetime | None = None


class TemplateArgs(BaseModel):
    """Decoded template envelope.

    Only `load` and `data` are read; other envelope keys such as `kind`
    are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    load: str = Field(default="", description="Name of the template to fetch")
    data: dict[str, Any] = Field(default_factory=dict, description="Substitution values")

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: Any) -> Any:
        # `data:` with no value decodes to None
        return {} if value is None else value

    @field_validator("load", mode="before")
    @classmethod
    def _null_load(cls, value: Any) -> Any:
        return "" if value is None else value
