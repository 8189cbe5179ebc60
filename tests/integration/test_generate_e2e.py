"""Integration tests generating projects from the bundled template trees.

Runs the full resolve, compose and synthesize sequence for every package
manager, framework and agent subset, then checks the generated configuration
files are well-formed and agree with the selection.

No package manager is invoked; installation is never requested.
"""

from __future__ import annotations

import itertools
import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from create_agent_chat_app.config import GeneratorConfig
from create_agent_chat_app.scaffolder import DestinationExists, ProjectGenerator
from create_agent_chat_app.scaffolder.catalog import (
    AGENT_ENV_VARS,
    AGENT_GRAPHS,
    PACKAGE_MANAGER_VERSIONS,
)
from create_agent_chat_app.scaffolder.models import (
    Agent,
    Framework,
    PackageManager,
    RawAnswers,
)

pytestmark = pytest.mark.integration

AGENT_SUBSETS = [
    combo
    for size in range(len(Agent) + 1)
    for combo in itertools.combinations(Agent.canonical(), size)
]


def _read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _answers(
    manager: PackageManager, framework: Framework, agents: tuple[Agent, ...]
) -> RawAnswers:
    return RawAnswers(
        project_name="e2e-app",
        package_manager=manager,
        framework=framework,
        auto_install=False,
        include_all_agents=False,
        agent_answers={agent: agent in agents for agent in Agent},
    )


# ---------------------------------------------------------------------------
# Every combination, nested layout
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("agents", AGENT_SUBSETS, ids=lambda c: "+".join(a.value for a in c) or "none")
@pytest.mark.parametrize("framework", list(Framework), ids=lambda f: f.value)
@pytest.mark.parametrize("manager", list(PackageManager), ids=lambda m: m.value)
async def test_generate_combination(tmp_path: Path, manager, framework, agents):
    generator = ProjectGenerator(GeneratorConfig(output_dir=tmp_path))
    result = await generator.generate_from_answers(_answers(manager, framework, agents))
    root = result.project_root

    assert result.report.succeeded, [s.error for s in result.report.failed_steps]

    # One folder per selected agent, nothing else
    agents_src = root / "apps" / "agents" / "src"
    assert sorted(p.name for p in agents_src.iterdir() if p.is_dir()) == sorted(
        a.folder for a in agents
    )

    # Root manifest bound to the manager, exactly one override key
    manifest = _read_json(root / "package.json")
    assert manifest["name"] == "e2e-app"
    assert manifest["packageManager"] == PACKAGE_MANAGER_VERSIONS[manager]
    override_key = "overrides" if manager == PackageManager.NPM else "resolutions"
    other_key = "resolutions" if manager == PackageManager.NPM else "overrides"
    assert manifest[override_key]["@langchain/core"] == "^0.3.42"
    assert other_key not in manifest

    # Workspace files
    assert (root / ".yarnrc.yml").exists() == (manager == PackageManager.YARN)
    if manager == PackageManager.PNPM:
        assert "workspaces" not in manifest
        assert yaml.safe_load((root / "pnpm-workspace.yaml").read_text()) == {
            "packages": ["apps/*"]
        }
    else:
        assert manifest["workspaces"] == ["apps/*"]
        assert not (root / "pnpm-workspace.yaml").exists()

    # Sub-package names
    assert _read_json(root / "apps" / "web" / "package.json")["name"] == "e2e-app-web"
    agents_manifest = _read_json(root / "apps" / "agents" / "package.json")
    assert agents_manifest["name"] == "e2e-app-agents"
    assert agents_manifest["dependencies"]["@langchain/core"] == "^0.3.42"

    # Graph registry references files that exist
    graphs = _read_json(root / "langgraph.json")["graphs"]
    expected_ids = {gid for agent in agents for gid in AGENT_GRAPHS[agent]}
    assert set(graphs) == expected_ids
    for ref in graphs.values():
        path, _, export = ref.rpartition(":")
        assert export == "graph"
        assert (root / path).is_file(), ref

    # Env template: preamble then one line per distinct variable
    lines = (root / ".env.example").read_text().splitlines()
    assert lines[:3] == [
        '# LANGSMITH_API_KEY=""',
        '# LANGSMITH_TRACING_V2="true"',
        '# LANGSMITH_PROJECT="default"',
    ]
    names = [line.split("=", 1)[0] for line in lines[4:]]
    expected_names = {name for agent in agents for name in AGENT_ENV_VARS[agent]}
    assert len(names) == len(set(names))
    assert set(names) == expected_names

    # Ignore files
    web_ignore = (root / "apps" / "web" / ".gitignore").read_text()
    assert ("/.next/" in web_ignore) == (framework == Framework.NEXTJS)
    assert "node_modules" in (root / ".gitignore").read_text()


# ---------------------------------------------------------------------------
# Flat layout
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("manager", list(PackageManager), ids=lambda m: m.value)
async def test_generate_flat_layout(tmp_path: Path, manager):
    generator = ProjectGenerator(GeneratorConfig(output_dir=tmp_path, layout="flat"))
    result = await generator.generate_from_answers(
        _answers(manager, Framework.VITE, (Agent.MEMORY, Agent.RESEARCH))
    )
    root = result.project_root

    assert result.report.succeeded
    assert not (root / "apps").exists()
    assert (root / "web" / "index.html").is_file()
    assert (root / "src" / "research-agent" / "index-graph" / "graph.ts").is_file()

    manifest = _read_json(root / "package.json")
    assert manifest["dependencies"]["@langchain/anthropic"] == "^0.3.15"
    assert manifest["dependencies"]["@langchain/core"] == "^0.3.42"
    assert not (root / "pnpm-workspace.yaml").exists()

    graphs = _read_json(root / "langgraph.json")["graphs"]
    for ref in graphs.values():
        assert (root / ref.rpartition(":")[0]).is_file(), ref


# ---------------------------------------------------------------------------
# Second run
# ---------------------------------------------------------------------------


async def test_second_run_leaves_first_project_untouched(tmp_path: Path):
    generator = ProjectGenerator(GeneratorConfig(output_dir=tmp_path))
    answers = _answers(PackageManager.NPM, Framework.NEXTJS, (Agent.REACT,))
    first = await generator.generate_from_answers(answers)
    before = {
        p.relative_to(tmp_path).as_posix(): p.read_bytes()
        for p in tmp_path.rglob("*")
        if p.is_file()
    }

    with pytest.raises(DestinationExists):
        await generator.generate_from_answers(
            _answers(PackageManager.YARN, Framework.VITE, tuple(Agent))
        )

    after = {
        p.relative_to(tmp_path).as_posix(): p.read_bytes()
        for p in tmp_path.rglob("*")
        if p.is_file()
    }
    assert after == before
    assert first.project_root.is_dir()
