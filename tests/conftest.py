"""Shared fixtures for tmplconv tests."""

from collections.abc import Callable

import pytest

from tmplconv.core.types import Build, ConfigFile, ConvertArgs, Repository, Template
from tmplconv.converter.template import TemplateConverter
from tmplconv.persistence.store import InMemoryTemplateStore

GREET_TEMPLATE = """kind: pipeline
type: docker
name: {{ name }}

steps:
- name: greet
  image: alpine
  commands:
  - echo hello {{ name }}
"""

GREET_ENVELOPE = """kind: template
load: greet.yml
data:
  name: World
"""


@pytest.fixture
def make_args() -> Callable[..., ConvertArgs]:
    """Build ConvertArgs for a document."""

    def _make_args(
        data: str,
        namespace: str = "octocat",
        config: str = ".drone.yml",
        build: Build | None = None,
    ) -> ConvertArgs:
        return ConvertArgs(
            repo=Repository(namespace=namespace, name="hello-world", config=config),
            config=ConfigFile(data=data),
            build=build or Build(event="push", branch="main", commit="abc123"),
        )

    return _make_args


@pytest.fixture
def store() -> InMemoryTemplateStore:
    """In-memory store holding templates for the `octocat` namespace."""
    return InMemoryTemplateStore(
        [
            Template(name="greet.yml", data=GREET_TEMPLATE, namespace="octocat"),
            Template(name="notes.txt", data="not a pipeline", namespace="octocat"),
        ]
    )


@pytest.fixture
def converter(store: InMemoryTemplateStore) -> TemplateConverter:
    """Converter backed by the in-memory store."""
    return TemplateConverter(store)


@pytest.fixture
def greet_envelope() -> str:
    """Envelope loading greet.yml with name=World."""
    return GREET_ENVELOPE


@pytest.fixture
def greet_template() -> str:
    """Source of the stored greet.yml template."""
    return GREET_TEMPLATE
