"""Template lookup, copying and rendering.

Two kinds of templates ship with the generator:

* **Template trees** -- opaque directory subtrees (the monorepo skeleton, one
  per framework, one per agent) copied verbatim into the output tree by the
  :class:`TemplateRegistry`.
* **Text templates** -- Jinja2 ``.j2`` files under ``scaffolder/templates/``
  rendered by the :class:`TemplateRenderer` for the synthesized artefacts
  (ignore files, ``.env.example``, ``.yarnrc.yml``).
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..utils import write_text
from .models import OutputLayout, ScaffoldError, Selection, TemplateSlot


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_PACKAGE_DIR = Path(__file__).resolve().parent.parent
_DEFAULT_TREE_DIR = _PACKAGE_DIR / "template_trees"
_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateNotFound(ScaffoldError):
    """Raised when a symbolic template name has no subtree on disk."""

    def __init__(self, name: str, path: Path) -> None:
        self.name = name
        self.path = path
        super().__init__(f"Template '{name}' not found at {path}")


# ---------------------------------------------------------------------------
# TemplateRegistry
# ---------------------------------------------------------------------------


class TemplateRegistry:
    """Maps symbolic template names to directory subtrees and copies them.

    A template named ``vite`` lives at ``<template_root>/vite``.  Copies
    follow symbolic links (the link targets are copied, not the links) and
    include hidden files.
    """

    def __init__(self, template_root: str | Path | None = None) -> None:
        if template_root is None:
            template_root = _DEFAULT_TREE_DIR
        self.template_root = Path(template_root)

    def path_for(self, name: str) -> Path:
        """Return the subtree for *name*, raising :class:`TemplateNotFound`."""
        path = self.template_root / name
        if not path.is_dir():
            raise TemplateNotFound(name, path)
        return path

    def available(self) -> list[str]:
        """Sorted names of every template subtree under the root."""
        if not self.template_root.is_dir():
            return []
        return sorted(p.name for p in self.template_root.iterdir() if p.is_dir())

    def copy(self, name: str, destination: str | Path) -> Path:
        """Clone the subtree for *name* into *destination*.

        The destination may already exist; files are merged into it and
        same-named files are overwritten.
        """
        source = self.path_for(name)
        dest = Path(destination)
        shutil.copytree(source, dest, symlinks=False, dirs_exist_ok=True)
        return dest

    async def copy_async(self, name: str, destination: str | Path) -> Path:
        """Run :meth:`copy` in a worker thread and wait for it to finish."""
        return await asyncio.to_thread(self.copy, name, destination)

    @staticmethod
    def slots_for(selection: Selection, layout: OutputLayout) -> list[TemplateSlot]:
        """Ordered template slots for *selection* under *layout*."""
        slots = [
            TemplateSlot(template=layout.monorepo_template, destination=""),
            TemplateSlot(template=selection.framework.value, destination=layout.web_dir),
        ]
        for agent in selection.agents:
            slots.append(
                TemplateSlot(
                    template=agent.folder,
                    destination=f"{layout.agents_src_dir}/{agent.folder}",
                )
            )
        return slots


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 text templates for the synthesized artefacts."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["env_assignment"] = _env_assignment_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"gitignore/base.gitignore.j2"``).
            context: Variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _env_assignment_filter(name: str) -> str:
    """``OPENAI_API_KEY`` -> ``OPENAI_API_KEY=""``."""
    return f'{name}=""'
