"""Tests for ScaffoldOptions and GenerationContext."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from appforge.scaffolder.context import GenerationContext, ScaffoldOptions


pytestmark = pytest.mark.unit


class TestScaffoldOptions:
    def test_defaults(self):
        options = ScaffoldOptions(project_name="demo")
        assert options.typescript is True
        assert options.mode == "code-router"
        assert options.tailwind is False
        assert options.package_manager == "npm"
        assert options.add_ons == []

    @pytest.mark.parametrize("name", ["", "a/b", "a\\b", ".", ".."])
    def test_rejects_bad_project_names(self, name):
        with pytest.raises(ValidationError):
            ScaffoldOptions(project_name=name)

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValidationError):
            ScaffoldOptions(project_name="demo", mode="hash-router")

    def test_rejects_unknown_package_manager(self):
        with pytest.raises(ValidationError):
            ScaffoldOptions(project_name="demo", package_manager="cargo")


class TestGenerationContext:
    def test_is_frozen(self, make_context):
        context = make_context()
        with pytest.raises(ValidationError):
            context.project_name = "other"

    def test_capabilities(self, make_add_on, registry, make_context):
        make_add_on("shadcn", {"name": "S", "description": "", "phase": "setup"})
        make_add_on("form")
        context = make_context(mode="file-router", add_ons=tuple(registry.resolve(["form", "shadcn"])))
        assert context.capabilities == frozenset({"form", "shadcn"})
        assert context.has("shadcn")
        assert not context.has("start")

    def test_capabilities_empty(self, make_context):
        assert make_context().capabilities == frozenset()

    def test_router_properties(self, make_context):
        assert make_context(mode="file-router").file_router
        assert not make_context(mode="file-router").code_router
        assert make_context(mode="code-router").code_router

    def test_template_values(self, make_add_on, registry, make_context):
        make_add_on("store")
        context = make_context(
            project_name="shop",
            typescript=False,
            mode="file-router",
            tailwind=True,
            package_manager="pnpm",
            add_ons=tuple(registry.resolve(["store"])),
        )
        values = context.template_values()
        assert values["project_name"] == "shop"
        assert values["package_manager"] == "pnpm"
        assert values["typescript"] is False
        assert values["tailwind"] is True
        assert values["file_router"] is True
        assert values["code_router"] is False
        assert values["js"] == "js"
        assert values["jsx"] == "jsx"
        assert values["add_on_enabled"] == {"store": True}
        assert [a.id for a in values["add_ons"]] == ["store"]

    def test_add_ons_keep_order(self, make_add_on, registry, make_context):
        for name in ("a", "b", "c"):
            make_add_on(name)
        context = make_context(mode="file-router", add_ons=tuple(registry.resolve(["b", "c", "a"])))
        assert [a.id for a in context.add_ons] == ["b", "c", "a"]

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValidationError):
            GenerationContext(
                project_name="demo",
                typescript=True,
                mode="other",
                tailwind=False,
                package_manager="npm",
            )

    def test_add_ons_rejected_outside_file_router(self, make_add_on, registry, make_context):
        make_add_on("store")
        store = registry.get("store")
        with pytest.raises(ValidationError, match="file-router"):
            make_context(mode="code-router", add_ons=(store,))

    def test_code_router_without_add_ons(self, make_context):
        assert make_context(mode="code-router", add_ons=()).add_ons == ()
