"""Directory composition.

Creates the project root and copies the template trees into their slots in a
fixed order.  The only all-or-nothing guard is the up-front check that the
destination does not exist yet; after that, a failing step aborts the
remaining steps and leaves the partial tree on disk for inspection.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.markup import escape

from ..utils import console, ensure_dir, print_added
from .models import OutputLayout, ScaffoldError, Selection
from .templates import TemplateRegistry


class DestinationExists(ScaffoldError):
    """Raised when the project directory is already present."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Directory {path.name} already exists.")


class DirectoryComposer:
    """Materialises the template trees for a :class:`Selection`.

    Steps, each awaited before the next:

    1. create the destination root
    2. copy the monorepo skeleton into the root
    3. create the web-app path
    4. copy the framework template into it
    5. ensure the agents-source path
    6. copy each selected agent, in canonical order, into its own folder
    """

    def __init__(self, registry: TemplateRegistry, layout: OutputLayout) -> None:
        self.registry = registry
        self.layout = layout

    @staticmethod
    def destination_for(selection: Selection, parent_dir: str | Path) -> Path:
        return Path(parent_dir) / selection.project_name

    def check_destination(self, selection: Selection, parent_dir: str | Path) -> Path:
        """Return the destination path, raising :class:`DestinationExists` if taken."""
        target = self.destination_for(selection, parent_dir)
        if target.exists() or target.is_symlink():
            raise DestinationExists(target)
        return target

    async def compose(self, selection: Selection, parent_dir: str | Path) -> Path:
        """Create the project tree under *parent_dir* and return its root.

        Raises:
            DestinationExists: Before any write, if the root already exists.
            TemplateNotFound: If a required template subtree is missing.
            OSError: If any copy or mkdir fails; remaining steps are skipped.
        """
        root = self.check_destination(selection, parent_dir)

        await asyncio.to_thread(root.mkdir, parents=True)
        await self.registry.copy_async(self.layout.monorepo_template, root)

        web_dir = self.layout.web_path(root)
        await asyncio.to_thread(ensure_dir, web_dir)
        await self.registry.copy_async(selection.framework.value, web_dir)

        agents_dir = self.layout.agents_src_path(root)
        await asyncio.to_thread(ensure_dir, agents_dir)

        for agent in selection.agents:
            await self.copy_agent(agent.folder, agents_dir)

        return root

    async def copy_agent(self, folder: str, agents_dir: Path) -> Path:
        """Copy one agent template into ``<agents_dir>/<folder>``."""
        dest = agents_dir / folder
        await asyncio.to_thread(ensure_dir, dest)
        await self.registry.copy_async(folder, dest)
        print_added(folder)
        return dest


def describe_agents(selection: Selection) -> str:
    """Human-readable agent line for the pre-generation summary."""
    if selection.include_all_agents:
        return "All pre-built agents"
    if selection.agents:
        return ", ".join(agent.label for agent in selection.agents)
    return "No additional agents selected"


def announce(selection: Selection, root: Path) -> None:
    """Print where the project goes and what it includes."""
    console.print(f"Project will be created at: [green]{escape(str(root))}[/green]\n")
    console.print(f"Framework: [green]{selection.framework.value}[/green]")
    console.print(f"Including: [green]{describe_agents(selection)}[/green]")
    console.print("[yellow]Creating project files...[/yellow]")
