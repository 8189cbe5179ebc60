"""Shared pytest fixtures for the create-agent-chat-app test suite.

Provides reusable fixtures for:
- A miniature template tree root built in a temp directory
- Registries, renderers and layouts
- A Selection factory
- A composed project tree ready for synthesis
- Mock subprocess helpers
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from create_agent_chat_app.scaffolder.models import (
    APPS_LAYOUT,
    FLAT_LAYOUT,
    Agent,
    Framework,
    OutputLayout,
    PackageManager,
    Selection,
)
from create_agent_chat_app.scaffolder.templates import TemplateRegistry, TemplateRenderer


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------

def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _write_json(path: Path, data: dict[str, Any]) -> None:
    _write(path, json.dumps(data, indent=2))


def build_template_root(root: Path) -> Path:
    """Create a small but complete set of template subtrees under *root*."""
    # Monorepo skeleton (nested apps/ layout)
    mono = root / "monorepo"
    _write_json(mono / "package.json", {
        "name": "agent-chat-app",
        "private": True,
        "workspaces": ["apps/*"],
        "scripts": {"dev": "turbo dev"},
        "devDependencies": {"turbo": "^2.4.4"},
        "resolutions": {"left-pad": "1.3.0"},
    })
    _write_json(mono / "langgraph.json", {
        "node_version": "20",
        "graphs": {"existing": "./apps/agents/src/existing/graph.ts:graph"},
        "env": ".env",
    })
    _write_json(mono / "apps" / "agents" / "package.json", {
        "name": "agents",
        "dependencies": {
            "@langchain/core": "^0.3.42",
            "@langchain/anthropic": "^0.2.0",
        },
    })
    _write(mono / "apps" / "agents" / "src" / ".gitkeep", "")
    _write(mono / ".prettierrc", "{}\n")

    # Flat skeleton
    flat = root / "monorepo-flat"
    _write_json(flat / "package.json", {
        "name": "agent-chat-app",
        "dependencies": {"@langchain/langgraph": "^0.2.57"},
    })
    _write_json(flat / "langgraph.json", {"graphs": {}})
    _write(flat / "src" / ".gitkeep", "")

    # Frameworks
    for framework in ("nextjs", "vite"):
        _write_json(root / framework / "package.json", {"name": "web"})
        _write(root / framework / f"{framework}.txt", framework)
        _write(root / framework / ".env.example", "WEB=1\n")

    # Agents
    for agent in Agent.canonical():
        _write(root / agent.folder / "graph.ts", f"// {agent.value}\n")
        _write(root / agent.folder / ".agentrc", agent.value)
    _write(root / "research-agent" / "index-graph" / "graph.ts", "// index\n")

    return root


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """Root directory holding every template subtree."""
    return build_template_root(tmp_path / "templates")


@pytest.fixture
def registry(template_root: Path) -> TemplateRegistry:
    return TemplateRegistry(template_root)


@pytest.fixture
def renderer() -> TemplateRenderer:
    """Renderer over the bundled Jinja2 templates."""
    return TemplateRenderer()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Directory projects are generated into."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture(params=[APPS_LAYOUT, FLAT_LAYOUT], ids=["apps", "flat"])
def any_layout(request: pytest.FixtureRequest) -> OutputLayout:
    return request.param


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------

@pytest.fixture
def make_selection() -> Callable[..., Selection]:
    """Factory for selections with sensible defaults.

    Usage:
        selection = make_selection(agents=[Agent.REACT], package_manager=PackageManager.PNPM)
    """
    def factory(
        project_name: str = "demo",
        package_manager: PackageManager = PackageManager.NPM,
        framework: Framework = Framework.NEXTJS,
        agents: list[Agent] | tuple[Agent, ...] = (Agent.REACT,),
        auto_install: bool = False,
    ) -> Selection:
        return Selection(
            project_name=project_name,
            package_manager=package_manager,
            framework=framework,
            agents=tuple(agents),
            auto_install=auto_install,
            include_all_agents=set(agents) == set(Agent),
        )

    return factory


# ---------------------------------------------------------------------------
# Composed project
# ---------------------------------------------------------------------------

@pytest.fixture
def composed_root(
    template_root: Path, output_dir: Path
) -> Callable[[OutputLayout, str], Path]:
    """Factory copying the raw skeleton + web tree, as the composer would.

    Lets synthesizer tests run against a realistic tree without going
    through the composer.
    """
    def factory(layout: OutputLayout = APPS_LAYOUT, name: str = "demo") -> Path:
        root = output_dir / name
        shutil.copytree(template_root / layout.monorepo_template, root)
        shutil.copytree(template_root / "nextjs", root / layout.web_dir, dirs_exist_ok=True)
        (root / layout.agents_src_dir).mkdir(parents=True, exist_ok=True)
        return root

    return factory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
