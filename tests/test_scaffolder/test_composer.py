"""Tests for the directory composer.

Covers:
- The destination-exists precondition (nothing written)
- Slot placement for both layouts
- One folder per selected agent, exact names
- Fatal failure of a missing template, partial tree left on disk
"""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from create_agent_chat_app.scaffolder.composer import (
    DestinationExists,
    DirectoryComposer,
    describe_agents,
)
from create_agent_chat_app.scaffolder.models import (
    APPS_LAYOUT,
    FLAT_LAYOUT,
    Agent,
    Framework,
)
from create_agent_chat_app.scaffolder.templates import TemplateNotFound, TemplateRegistry

pytestmark = pytest.mark.unit


def _tree(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*")}


class TestPrecondition:
    async def test_existing_destination_fails_before_writing(
        self, registry, output_dir, make_selection
    ):
        existing = output_dir / "demo"
        existing.mkdir()
        (existing / "mine.txt").write_text("untouched")
        before = _tree(output_dir)

        composer = DirectoryComposer(registry, APPS_LAYOUT)
        with pytest.raises(DestinationExists) as exc_info:
            await composer.compose(make_selection(), output_dir)

        assert exc_info.value.path == existing
        assert _tree(output_dir) == before

    async def test_existing_file_counts_as_destination(
        self, registry, output_dir, make_selection
    ):
        (output_dir / "demo").write_text("a file")
        with pytest.raises(DestinationExists):
            await DirectoryComposer(registry, APPS_LAYOUT).compose(make_selection(), output_dir)

    async def test_second_run_fails(self, registry, output_dir, make_selection):
        composer = DirectoryComposer(registry, APPS_LAYOUT)
        await composer.compose(make_selection(), output_dir)
        snapshot = _tree(output_dir)
        with pytest.raises(DestinationExists):
            await composer.compose(make_selection(), output_dir)
        assert _tree(output_dir) == snapshot

    def test_error_message(self, tmp_path):
        assert str(DestinationExists(tmp_path / "demo")) == "Directory demo already exists."


class TestCompose:
    async def test_apps_layout(self, registry, output_dir, make_selection):
        selection = make_selection(framework=Framework.VITE, agents=[Agent.REACT])
        root = await DirectoryComposer(registry, APPS_LAYOUT).compose(selection, output_dir)

        assert root == output_dir / "demo"
        assert (root / "package.json").is_file()
        assert (root / ".prettierrc").is_file()
        assert (root / "apps" / "web" / "vite.txt").is_file()
        assert (root / "apps" / "web" / ".env.example").is_file()
        assert not (root / "apps" / "web" / "nextjs.txt").exists()
        assert (root / "apps" / "agents" / "src" / "react-agent" / "graph.ts").is_file()
        assert (root / "apps" / "agents" / "src" / "react-agent" / ".agentrc").is_file()

    async def test_flat_layout(self, registry, output_dir, make_selection):
        selection = make_selection(agents=[Agent.MEMORY])
        root = await DirectoryComposer(registry, FLAT_LAYOUT).compose(selection, output_dir)

        assert (root / "web" / "nextjs.txt").is_file()
        assert (root / "src" / "memory-agent" / "graph.ts").is_file()
        assert not (root / "apps").exists()

    @pytest.mark.parametrize(
        "agents",
        [
            combo
            for size in range(len(Agent) + 1)
            for combo in itertools.combinations(Agent.canonical(), size)
        ],
        ids=lambda combo: "+".join(a.value for a in combo) or "none",
    )
    async def test_one_folder_per_selected_agent(
        self, registry, output_dir, make_selection, any_layout, agents
    ):
        selection = make_selection(agents=list(agents))
        root = await DirectoryComposer(registry, any_layout).compose(selection, output_dir)

        agents_dir = any_layout.agents_src_path(root)
        folders = sorted(p.name for p in agents_dir.iterdir() if p.is_dir())
        assert folders == sorted(a.folder for a in agents)

    async def test_research_agent_keeps_nested_graphs(
        self, registry, output_dir, make_selection
    ):
        selection = make_selection(agents=[Agent.RESEARCH])
        root = await DirectoryComposer(registry, APPS_LAYOUT).compose(selection, output_dir)
        assert (
            root / "apps" / "agents" / "src" / "research-agent" / "index-graph" / "graph.ts"
        ).is_file()

    async def test_missing_agent_template_aborts_and_leaves_partial_tree(
        self, template_root, output_dir, make_selection
    ):
        import shutil

        shutil.rmtree(template_root / "memory-agent")
        composer = DirectoryComposer(TemplateRegistry(template_root), APPS_LAYOUT)
        selection = make_selection(agents=[Agent.REACT, Agent.MEMORY, Agent.RETRIEVAL])

        with pytest.raises(TemplateNotFound):
            await composer.compose(selection, output_dir)

        agents_dir = output_dir / "demo" / "apps" / "agents" / "src"
        assert (agents_dir / "react-agent" / "graph.ts").is_file()
        assert not (agents_dir / "retrieval-agent").exists()

    async def test_missing_framework_template(self, template_root, output_dir, make_selection):
        import shutil

        shutil.rmtree(template_root / "vite")
        composer = DirectoryComposer(TemplateRegistry(template_root), APPS_LAYOUT)
        with pytest.raises(TemplateNotFound):
            await composer.compose(make_selection(framework=Framework.VITE), output_dir)
        assert (output_dir / "demo" / "package.json").is_file()


class TestDescribeAgents:
    def test_all(self, make_selection):
        assert describe_agents(make_selection(agents=Agent.canonical())) == "All pre-built agents"

    def test_some(self, make_selection):
        assert describe_agents(make_selection(agents=[Agent.REACT, Agent.RETRIEVAL])) == (
            "ReAct, Retrieval"
        )

    def test_none(self, make_selection):
        assert describe_agents(make_selection(agents=[])) == "No additional agents selected"
