"""appforge scaffolder -- composes template trees into a new project.

Takes ``ScaffoldOptions`` and renders a TanStack Router project directory from
the bundled template catalog, merging ``package.json`` fragments from the
selected variants and add-ons.

Quick usage::

    from appforge.scaffolder import ProjectGenerator, ScaffoldOptions

    options = ScaffoldOptions(
        project_name="my-app",
        mode="file-router",
        add_ons=["shadcn", "tanstack-query"],
    )
    generator = ProjectGenerator()
    result = await generator.generate(options, "/tmp/output")
"""

from appforge.scaffolder.composer import FileRule, TemplateUnit, TreeComposer
from appforge.scaffolder.context import GenerationContext, ScaffoldOptions
from appforge.scaffolder.generator import ProjectGenerator, ScaffoldResult, ScaffoldState
from appforge.scaffolder.templates import TemplateRenderer

__all__ = [
    "FileRule",
    "GenerationContext",
    "ProjectGenerator",
    "ScaffoldOptions",
    "ScaffoldResult",
    "ScaffoldState",
    "TemplateRenderer",
    "TemplateUnit",
    "TreeComposer",
]
