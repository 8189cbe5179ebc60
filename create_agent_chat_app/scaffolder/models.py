"""Data models shared by the scaffolder components.

Pydantic v2 models describing the user's choices (raw and resolved), the
output layout policy, template slots, and the per-step synthesis report.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ScaffoldError(Exception):
    """Base class for every error raised while generating a project."""


class InvalidSelection(ScaffoldError):
    """Raised when the answers cannot produce a usable selection."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PackageManager(str, Enum):
    """JavaScript package managers the generated monorepo can be bound to."""
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"


class Framework(str, Enum):
    """Web framework copied into the web-app slot."""
    NEXTJS = "nextjs"
    VITE = "vite"


class Agent(str, Enum):
    """Prebuilt agents, declared in canonical order."""
    REACT = "react"
    MEMORY = "memory"
    RESEARCH = "research"
    RETRIEVAL = "retrieval"

    @property
    def folder(self) -> str:
        """Template name and destination folder, e.g. ``react-agent``."""
        return f"{self.value}-agent"

    @property
    def label(self) -> str:
        return _AGENT_LABELS[self]

    @classmethod
    def canonical(cls) -> list["Agent"]:
        """All agents in the fixed iteration order."""
        return list(cls)


_AGENT_LABELS: dict[Agent, str] = {
    Agent.REACT: "ReAct",
    Agent.MEMORY: "Memory",
    Agent.RESEARCH: "Research",
    Agent.RETRIEVAL: "Retrieval",
}


class StepStatus(str, Enum):
    """Outcome of a single best-effort synthesis step."""
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Output layout policy
# ---------------------------------------------------------------------------

class OutputLayout(BaseModel):
    """Where each template slot lands inside the generated tree.

    ``apps`` is the nested workspace layout (``apps/web``, ``apps/agents``)
    with one manifest per package; ``flat`` keeps a single root manifest with
    the web app in ``web/`` and agent sources in ``src/``.
    """

    name: str = Field(..., description="Layout identifier")
    version: int = Field(..., ge=1, description="Layout revision")
    monorepo_template: str = Field(default="monorepo", description="Skeleton copied into the root")
    web_dir: str = Field(..., description="Web-app slot, relative to the root")
    agents_package_dir: str = Field(
        default="", description="Agents package directory ('' = project root)"
    )
    agents_src_dir: str = Field(..., description="Directory holding one folder per agent")
    per_package_manifests: bool = Field(default=True)
    workspace_globs: list[str] = Field(default_factory=list)

    def web_path(self, root: Path) -> Path:
        return root / self.web_dir

    def agents_src_path(self, root: Path) -> Path:
        return root / self.agents_src_dir

    def agents_manifest_path(self, root: Path) -> Path:
        """Manifest that receives the injected agent dependencies."""
        if self.agents_package_dir:
            return root / self.agents_package_dir / "package.json"
        return root / "package.json"


APPS_LAYOUT = OutputLayout(
    name="apps",
    version=3,
    web_dir="apps/web",
    agents_package_dir="apps/agents",
    agents_src_dir="apps/agents/src",
    per_package_manifests=True,
    workspace_globs=["apps/*"],
)

FLAT_LAYOUT = OutputLayout(
    name="flat",
    version=1,
    monorepo_template="monorepo-flat",
    web_dir="web",
    agents_package_dir="",
    agents_src_dir="src",
    per_package_manifests=False,
    workspace_globs=[],
)

LAYOUTS: dict[str, OutputLayout] = {
    APPS_LAYOUT.name: APPS_LAYOUT,
    FLAT_LAYOUT.name: FLAT_LAYOUT,
}


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------

class RawAnswers(BaseModel):
    """Possibly partial answers, as collected from prompts or CLI flags.

    ``include_all_agents`` is ``None`` when the master toggle was never
    answered, which keeps "all agents" and "no agents" distinguishable until
    the resolver runs.
    """

    project_name: Optional[str] = None
    package_manager: Optional[PackageManager] = None
    auto_install: Optional[bool] = None
    framework: Optional[Framework] = None
    include_all_agents: Optional[bool] = None
    agent_answers: dict[Agent, bool] = Field(default_factory=dict)


def validate_project_name(name: str | None) -> str:
    """Return the stripped project name or raise :class:`InvalidSelection`.

    The name becomes a single directory under the output directory, so it
    must be one non-empty path component.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidSelection("Project name must not be empty.")
    if "/" in cleaned or "\\" in cleaned:
        raise InvalidSelection(
            f"Project name '{cleaned}' must not contain path separators."
        )
    if cleaned in (".", ".."):
        raise InvalidSelection(f"Project name '{cleaned}' is not a valid directory name.")
    if PurePosixPath(cleaned).is_absolute() or PureWindowsPath(cleaned).is_absolute():
        raise InvalidSelection(f"Project name '{cleaned}' must be a relative name.")
    if "\x00" in cleaned:
        raise InvalidSelection("Project name must not contain NUL characters.")
    return cleaned


class Selection(BaseModel):
    """Canonical, fully-populated user choices driving one generation run.

    The project name is validated on construction and ``agents`` is always
    deduplicated into canonical order, however the model is built.
    :class:`InvalidSelection` propagates unwrapped from the name check.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    package_manager: PackageManager
    auto_install: bool
    framework: Framework
    agents: tuple[Agent, ...] = Field(default=())
    include_all_agents: bool = False

    @field_validator("project_name")
    @classmethod
    def _path_safe_name(cls, value: str) -> str:
        return validate_project_name(value)

    @field_validator("agents")
    @classmethod
    def _canonical_agents(cls, value: tuple[Agent, ...]) -> tuple[Agent, ...]:
        return tuple(agent for agent in Agent.canonical() if agent in value)

    def includes(self, agent: Agent) -> bool:
        return agent in self.agents


class TemplateSlot(BaseModel):
    """A named template subtree and the path it is copied into."""

    template: str
    destination: str = Field(default="", description="Path relative to the project root")


# ---------------------------------------------------------------------------
# Synthesis reporting
# ---------------------------------------------------------------------------

class StepResult(BaseModel):
    """Tagged result of one synthesis step."""

    step: str
    status: StepStatus = StepStatus.OK
    artifacts: list[str] = Field(default_factory=list, description="Files written, root-relative")
    notes: list[str] = Field(default_factory=list)
    error: str = ""


class SynthesisReport(BaseModel):
    """All step results of one synthesis run, in execution order."""

    steps: list[StepResult] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def succeeded(self) -> bool:
        """True when no step failed."""
        return all(s.status != StepStatus.FAILED for s in self.steps)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if s.status == StepStatus.FAILED]

    def get(self, step: str) -> StepResult | None:
        for result in self.steps:
            if result.step == step:
                return result
        return None


class GenerationResult(BaseModel):
    """What a finished generation run produced."""

    project_root: Path
    selection: Selection
    report: SynthesisReport
