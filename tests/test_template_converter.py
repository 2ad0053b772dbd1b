"""Tests for the template converter pipeline."""

import asyncio

import pytest

from tmplconv.converter.renderers import jsonnet, starlark, yaml_template
from tmplconv.converter.renderers.yaml_template import render_text
from tmplconv.converter.template import (
    RENDERERS,
    TemplateConverter,
    select_renderer,
    template_extension,
)
from tmplconv.core.errors import ErrorCode, TemplateNotFoundError, TemplateSyntaxError
from tmplconv.core.protocols import ConvertService
from tmplconv.core.types import Template
from tmplconv.persistence.store import InMemoryTemplateStore, NoRowsError, TemplateStore


class FailingStore(TemplateStore):
    """Store whose lookups fail with an infrastructure error."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def find_name(self, name: str, namespace: str) -> Template:
        self.calls += 1
        raise self.error


class BlockingStore(TemplateStore):
    """Store whose lookups never complete."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def find_name(self, name: str, namespace: str) -> Template:
        self.started.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


def envelope(load: str, data: str = "") -> str:
    return f"kind: template\nload: {load}\n{data}"


class TestDispatch:
    """Extension lookup table."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("greet.yml", ".yml"),
            ("dir/greet.yaml", ".yaml"),
            ("pipeline.star", ".star"),
            ("a.b.jsonnet", ".jsonnet"),
            ("noext", ""),
            ("some.dir/noext", ""),
            (".yml", ".yml"),
        ],
    )
    def test_template_extension(self, name: str, expected: str) -> None:
        assert template_extension(name) == expected

    def test_table_is_closed(self) -> None:
        assert RENDERERS == {
            ".yml": yaml_template.render,
            ".yaml": yaml_template.render,
            ".star": starlark.render,
            ".starlark": starlark.render,
            ".script": starlark.render,
            ".jsonnet": jsonnet.render,
        }

    @pytest.mark.parametrize("name", ["a.txt", "a.YML", "a.json", "a", "a.yml.bak"])
    def test_unsupported_extensions(self, name: str) -> None:
        assert select_renderer(name) is None


class TestConvert:
    """End-to-end conversion with the in-memory store."""

    def test_converter_satisfies_protocol(self, converter) -> None:
        assert isinstance(converter, ConvertService)

    @pytest.mark.asyncio
    async def test_non_yml_filename_passes_through(self, converter, make_args, greet_envelope) -> None:
        for config in (".drone.yaml", ".drone.star", "pipeline.json"):
            assert await converter.convert(make_args(greet_envelope, config=config)) is None

    @pytest.mark.asyncio
    async def test_missing_marker_passes_through(self, converter, make_args) -> None:
        args = make_args("kind: pipeline\nname: default\nsteps: []\n")

        assert await converter.convert(args) is None

    @pytest.mark.asyncio
    async def test_invalid_yaml_raises_syntax_error(self, converter, make_args) -> None:
        args = make_args("kind: template\nload: greet.yml\ndata: {name: [\n")

        with pytest.raises(TemplateSyntaxError):
            await converter.convert(args)

    @pytest.mark.asyncio
    async def test_pass_through_skips_store(self, make_args, greet_envelope) -> None:
        store = FailingStore(ConnectionError("down"))
        converter = TemplateConverter(store)

        assert await converter.convert(make_args(greet_envelope, config=".drone.yaml")) is None
        assert store.calls == 0

    @pytest.mark.asyncio
    async def test_unknown_template_not_found(self, converter, make_args) -> None:
        with pytest.raises(TemplateNotFoundError) as exc_info:
            await converter.convert(make_args(envelope("missing.yml")))

        error = exc_info.value
        assert error.code == ErrorCode.TEMPLATE_NOT_FOUND
        assert error.details == {"name": "missing.yml", "namespace": "octocat"}
        assert isinstance(error.__cause__, NoRowsError)

    @pytest.mark.asyncio
    async def test_missing_load_is_not_found(self, converter, make_args) -> None:
        with pytest.raises(TemplateNotFoundError):
            await converter.convert(make_args("kind: template\ndata:\n  name: x\n"))

    @pytest.mark.asyncio
    async def test_namespace_isolation(self, converter, make_args, greet_envelope) -> None:
        assert await converter.convert(make_args(greet_envelope, namespace="octocat")) is not None

        with pytest.raises(TemplateNotFoundError) as exc_info:
            await converter.convert(make_args(greet_envelope, namespace="spaceghost"))

        assert exc_info.value.namespace == "spaceghost"

    @pytest.mark.asyncio
    async def test_same_name_in_two_namespaces(self, make_args, greet_envelope) -> None:
        store = InMemoryTemplateStore(
            [
                Template(name="greet.yml", data="a: {{ name }}\n", namespace="octocat"),
                Template(name="greet.yml", data="b: {{ name }}\n", namespace="spaceghost"),
            ]
        )
        converter = TemplateConverter(store)

        first = await converter.convert(make_args(greet_envelope, namespace="octocat"))
        second = await converter.convert(make_args(greet_envelope, namespace="spaceghost"))

        assert first.data == "a: World\n"
        assert second.data == "b: World\n"

    @pytest.mark.asyncio
    async def test_renders_yaml_template(
        self, converter, make_args, greet_envelope, greet_template
    ) -> None:
        config = await converter.convert(make_args(greet_envelope))

        assert config is not None
        assert "name: World\n" in config.data
        assert "echo hello World\n" in config.data
        assert config.data == greet_template.replace("{{ name }}", "World")
        assert config.data == render_text(
            Template(name="greet.yml", data=greet_template), {"name": "World"}
        )

    @pytest.mark.asyncio
    async def test_renders_yaml_extension(self, make_args) -> None:
        store = InMemoryTemplateStore(
            [Template(name="greet.yaml", data="name: {{ name }}", namespace="octocat")]
        )
        converter = TemplateConverter(store)

        config = await converter.convert(make_args(envelope("greet.yaml", "data:\n  name: x\n")))

        assert config.data == "name: x"

    @pytest.mark.asyncio
    async def test_unsupported_template_type_passes_through(self, converter, make_args) -> None:
        assert await converter.convert(make_args(envelope("notes.txt"))) is None

    @pytest.mark.asyncio
    async def test_conversion_is_idempotent(self, converter, make_args, greet_envelope) -> None:
        args = make_args(greet_envelope)

        first = await converter.convert(args)
        second = await converter.convert(args)

        assert first == second
        assert first.data.encode() == second.data.encode()

    @pytest.mark.asyncio
    async def test_render_errors_propagate_unchanged(self, make_args) -> None:
        from jinja2 import TemplateSyntaxError as JinjaSyntaxError

        store = InMemoryTemplateStore(
            [Template(name="bad.yml", data="name: {{ name ", namespace="octocat")]
        )
        converter = TemplateConverter(store)

        with pytest.raises(JinjaSyntaxError):
            await converter.convert(make_args(envelope("bad.yml", "data:\n  name: x\n")))

    @pytest.mark.asyncio
    async def test_missing_substitution_value_fails(self, converter, make_args) -> None:
        from jinja2 import UndefinedError

        with pytest.raises(UndefinedError):
            await converter.convert(make_args(envelope("greet.yml")))


class TestStoreFailures:
    """Store errors other than not-found are surfaced as raised."""

    @pytest.mark.asyncio
    async def test_lookup_failure_is_not_reclassified(self, make_args, greet_envelope) -> None:
        error = ConnectionError("database unreachable")
        converter = TemplateConverter(FailingStore(error))

        with pytest.raises(ConnectionError) as exc_info:
            await converter.convert(make_args(greet_envelope))

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_lookup_respects_deadline(self, make_args, greet_envelope) -> None:
        converter = TemplateConverter(BlockingStore())

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(converter.convert(make_args(greet_envelope)), timeout=0.05)

    @pytest.mark.asyncio
    async def test_lookup_is_cancellable(self, make_args, greet_envelope) -> None:
        store = BlockingStore()
        converter = TemplateConverter(store)

        task = asyncio.create_task(converter.convert(make_args(greet_envelope)))
        await store.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
