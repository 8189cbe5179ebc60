"""Lookup tables driving configuration synthesis.

Everything that varies by package manager, framework or agent lives here as
enum-keyed data so that adding a manager or an agent is a table change.
"""

from __future__ import annotations

from enum import Enum

from .models import Agent, Framework, PackageManager


# ---------------------------------------------------------------------------
# Package managers
# ---------------------------------------------------------------------------

PACKAGE_MANAGER_VERSIONS: dict[PackageManager, str] = {
    PackageManager.NPM: "npm@11.2.1",
    PackageManager.PNPM: "pnpm@10.6.3",
    PackageManager.YARN: "yarn@3.5.1",
}

# Manifest key each manager reads for pinning a transitive dependency across
# all workspaces. Writing the wrong key is a silent no-op.
OVERRIDE_KEYS: dict[PackageManager, str] = {
    PackageManager.NPM: "overrides",
    PackageManager.PNPM: "resolutions",
    PackageManager.YARN: "resolutions",
}

ALL_OVERRIDE_KEYS: frozenset[str] = frozenset(OVERRIDE_KEYS.values())

DEFAULT_OVERRIDE_PINS: dict[str, str] = {
    "@langchain/core": "^0.3.42",
}


class WorkspaceFileShape(str, Enum):
    """What a manager needs besides ``package.json`` to find workspaces."""
    NONE = "none"
    LINKER_CONFIG = "linker-config"
    WORKSPACE_GLOBS = "workspace-globs"


WORKSPACE_FILE_SHAPES: dict[PackageManager, WorkspaceFileShape] = {
    PackageManager.NPM: WorkspaceFileShape.NONE,
    PackageManager.PNPM: WorkspaceFileShape.WORKSPACE_GLOBS,
    PackageManager.YARN: WorkspaceFileShape.LINKER_CONFIG,
}

WORKSPACE_FILE_NAMES: dict[WorkspaceFileShape, str] = {
    WorkspaceFileShape.LINKER_CONFIG: ".yarnrc.yml",
    WorkspaceFileShape.WORKSPACE_GLOBS: "pnpm-workspace.yaml",
}

YARN_NODE_LINKER = "node-modules"


# ---------------------------------------------------------------------------
# Frameworks
# ---------------------------------------------------------------------------

FRAMEWORK_DEV_URLS: dict[Framework, str] = {
    Framework.NEXTJS: "http://localhost:3000",
    Framework.VITE: "http://localhost:5173",
}

FRAMEWORK_GITIGNORE_TEMPLATES: dict[Framework, str] = {
    Framework.NEXTJS: "gitignore/nextjs.gitignore.j2",
    Framework.VITE: "gitignore/vite.gitignore.j2",
}

BASE_GITIGNORE_TEMPLATE = "gitignore/base.gitignore.j2"

LANGGRAPH_SERVER_URL = "http://localhost:2024"


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------

_RETRIEVAL_STACK_DEPENDENCIES: dict[str, str] = {
    "@langchain/anthropic": "^0.3.15",
    "@elastic/elasticsearch": "^8.17.1",
    "@langchain/community": "^0.3.35",
    "@langchain/pinecone": "^0.2.0",
    "@langchain/mongodb": "^0.1.0",
    "mongodb": "^6.14.2",
    "@pinecone-database/pinecone": "^5.1.1",
    "@langchain/cohere": "^0.3.2",
    "@langchain/openai": "^0.4.4",
}

AGENT_DEPENDENCIES: dict[Agent, dict[str, str]] = {
    Agent.REACT: {
        "@langchain/community": "^0.3.35",
        "@langchain/anthropic": "^0.3.15",
    },
    Agent.MEMORY: {
        "@langchain/anthropic": "^0.3.15",
    },
    Agent.RESEARCH: dict(_RETRIEVAL_STACK_DEPENDENCIES),
    Agent.RETRIEVAL: dict(_RETRIEVAL_STACK_DEPENDENCIES),
}


class DependencyTieBreak(str, Enum):
    """How two agents that pin the same dependency differently are reconciled."""
    LAST_WRITER_WINS = "last-writer-wins"
    FIRST_WRITER_WINS = "first-writer-wins"


_RETRIEVAL_STACK_ENV_VARS: list[str] = [
    "ANTHROPIC_API_KEY",
    "ELASTICSEARCH_URL",
    "ELASTICSEARCH_USER",
    "ELASTICSEARCH_PASSWORD",
    "ELASTICSEARCH_API_KEY",
    "MONGODB_URI",
    "PINECONE_API_KEY",
    "PINECONE_ENVIRONMENT",
    "PINECONE_INDEX_NAME",
    "COHERE_API_KEY",
    "OPENAI_API_KEY",
]

AGENT_ENV_VARS: dict[Agent, list[str]] = {
    Agent.REACT: ["TAVILY_API_KEY", "ANTHROPIC_API_KEY"],
    Agent.MEMORY: ["ANTHROPIC_API_KEY"],
    Agent.RESEARCH: list(_RETRIEVAL_STACK_ENV_VARS),
    Agent.RETRIEVAL: list(_RETRIEVAL_STACK_ENV_VARS),
}

# graph id -> module path inside the agent folder, and exported symbol
AGENT_GRAPHS: dict[Agent, dict[str, tuple[str, str]]] = {
    Agent.REACT: {
        "agent": ("graph.ts", "graph"),
    },
    Agent.MEMORY: {
        "memory_agent": ("graph.ts", "graph"),
    },
    Agent.RESEARCH: {
        "research_agent": ("retrieval-graph/graph.ts", "graph"),
        "research_index_graph": ("index-graph/graph.ts", "graph"),
    },
    Agent.RETRIEVAL: {
        "retrieval_agent": ("graph.ts", "graph"),
    },
}

ENV_PREAMBLE: list[str] = [
    '# LANGSMITH_API_KEY=""',
    '# LANGSMITH_TRACING_V2="true"',
    '# LANGSMITH_PROJECT="default"',
]


def dependency_conflicts() -> list[tuple[str, Agent, Agent]]:
    """Return ``(dependency, first_agent, later_agent)`` version disagreements.

    The bundled tables agree on every shared dependency, so the merged
    result does not depend on the tie-break policy.
    """
    seen: dict[str, tuple[Agent, str]] = {}
    conflicts: list[tuple[str, Agent, Agent]] = []
    for agent in Agent.canonical():
        for dep, version in AGENT_DEPENDENCIES[agent].items():
            if dep in seen and seen[dep][1] != version:
                conflicts.append((dep, seen[dep][0], agent))
            seen[dep] = (agent, version)
    return conflicts
