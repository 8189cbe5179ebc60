"""Configuration synthesis.

Rewrites the configuration artefacts of an already-composed project tree so
they agree with the :class:`Selection`:

a. identity          -- ``name`` fields of the root and sub-package manifests
b. package-manager   -- ``packageManager`` field and the override pin
c. workspace-file    -- ``.yarnrc.yml`` / ``pnpm-workspace.yaml``
d. agent-dependencies -- per-agent dependency tables merged into the agents manifest
e. graph-registry    -- ``langgraph.json`` graph entries
f. env-template      -- ``.env.example``
g. ignore-files      -- root and web-app ``.gitignore``

Every step is best-effort: a failure is reported, recorded in the
:class:`SynthesisReport` and the next step still runs.  The document
transformations are pure functions at module level; :class:`ConfigSynthesizer`
only does the reading and writing around them.
"""

from __future__ import annotations

import asyncio
import copy
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable

import yaml
from rich.markup import escape

from ..utils import (
    console,
    load_json,
    print_error,
    relative_to_root,
    save_json,
    write_text,
)
from .catalog import (
    AGENT_DEPENDENCIES,
    AGENT_ENV_VARS,
    AGENT_GRAPHS,
    ALL_OVERRIDE_KEYS,
    BASE_GITIGNORE_TEMPLATE,
    DEFAULT_OVERRIDE_PINS,
    ENV_PREAMBLE,
    FRAMEWORK_GITIGNORE_TEMPLATES,
    OVERRIDE_KEYS,
    PACKAGE_MANAGER_VERSIONS,
    WORKSPACE_FILE_NAMES,
    WORKSPACE_FILE_SHAPES,
    YARN_NODE_LINKER,
    DependencyTieBreak,
    WorkspaceFileShape,
)
from .models import (
    OutputLayout,
    Selection,
    StepResult,
    StepStatus,
    SynthesisReport,
)
from .templates import TemplateRenderer


ROOT_MANIFEST = "package.json"
GRAPH_REGISTRY = "langgraph.json"
ENV_TEMPLATE = ".env.example"
GITIGNORE = ".gitignore"


# ---------------------------------------------------------------------------
# Manifest patching
# ---------------------------------------------------------------------------


@dataclass
class ManifestPatch:
    """Partial update of a JSON manifest.

    Top-level keys overwrite, except that two objects under the same key are
    merged key-wise so a template's own dependencies survive alongside
    injected ones.  Keys listed in ``remove`` are deleted first.
    """

    values: dict[str, Any] = field(default_factory=dict)
    remove: tuple[str, ...] = ()

    def apply(self, document: dict[str, Any]) -> dict[str, Any]:
        """Return a patched copy of *document*; the input is not modified."""
        result = copy.deepcopy(document)
        for key in self.remove:
            result.pop(key, None)
        for key, value in self.values.items():
            existing = result.get(key)
            if isinstance(existing, dict) and isinstance(value, dict):
                result[key] = {**existing, **copy.deepcopy(value)}
            else:
                result[key] = copy.deepcopy(value)
        return result


# ---------------------------------------------------------------------------
# Pure transformations
# ---------------------------------------------------------------------------


def identity_patches(
    selection: Selection, layout: OutputLayout
) -> dict[str, ManifestPatch]:
    """Root-relative manifest path -> ``name`` patch."""
    name = selection.project_name
    patches = {ROOT_MANIFEST: ManifestPatch(values={"name": name})}
    if layout.per_package_manifests:
        patches[f"{layout.web_dir}/{ROOT_MANIFEST}"] = ManifestPatch(
            values={"name": f"{name}-web"}
        )
        if layout.agents_package_dir:
            patches[f"{layout.agents_package_dir}/{ROOT_MANIFEST}"] = ManifestPatch(
                values={"name": f"{name}-agents"}
            )
    return patches


def package_manager_patch(
    selection: Selection, pins: dict[str, str] | None = None
) -> ManifestPatch:
    """Bind the root manifest to the chosen manager.

    Writes the pinned ``packageManager`` version and the override pins under
    the manager's override key; the other managers' override keys are removed
    so exactly one of ``overrides``/``resolutions`` remains.
    """
    manager = selection.package_manager
    override_key = OVERRIDE_KEYS[manager]
    return ManifestPatch(
        values={
            "packageManager": PACKAGE_MANAGER_VERSIONS[manager],
            override_key: dict(pins if pins is not None else DEFAULT_OVERRIDE_PINS),
        },
        remove=tuple(sorted(ALL_OVERRIDE_KEYS - {override_key})),
    )


def workspace_globs(manifest: dict[str, Any], layout: OutputLayout) -> list[str]:
    """Workspace globs declared by *manifest*, or the layout's defaults.

    Handles both the array form and the ``{"packages": [...]}`` object form.
    """
    declared = manifest.get("workspaces")
    if isinstance(declared, dict):
        declared = declared.get("packages")
    if isinstance(declared, list) and declared:
        return [str(g) for g in declared]
    return list(layout.workspace_globs)


def render_pnpm_workspace(globs: list[str]) -> str:
    """``pnpm-workspace.yaml`` content listing *globs*."""
    return yaml.safe_dump({"packages": list(globs)}, sort_keys=False, default_flow_style=False)


def merge_agent_dependencies(
    selection: Selection,
    tie_break: DependencyTieBreak = DependencyTieBreak.LAST_WRITER_WINS,
) -> tuple[dict[str, str], list[str]]:
    """Union of the selected agents' dependency tables.

    Returns ``(dependencies, notes)``; a note is produced for every version
    conflict between agents, naming the version that was kept.
    """
    merged: dict[str, str] = {}
    owners: dict[str, str] = {}
    notes: list[str] = []
    for agent in selection.agents:
        for dep, version in AGENT_DEPENDENCIES[agent].items():
            if dep in merged and merged[dep] != version:
                if tie_break == DependencyTieBreak.FIRST_WRITER_WINS:
                    notes.append(
                        f"{dep}: kept {merged[dep]} ({owners[dep]}) over {version} ({agent.folder})"
                    )
                    continue
                notes.append(
                    f"{dep}: {version} ({agent.folder}) replaced {merged[dep]} ({owners[dep]})"
                )
            merged[dep] = version
            owners[dep] = agent.folder
    return merged, notes


def agent_dependency_patch(
    selection: Selection,
    tie_break: DependencyTieBreak = DependencyTieBreak.LAST_WRITER_WINS,
) -> tuple[ManifestPatch, list[str]]:
    deps, notes = merge_agent_dependencies(selection, tie_break)
    return ManifestPatch(values={"dependencies": deps}), notes


def graph_entries(selection: Selection, layout: OutputLayout) -> dict[str, str]:
    """Graph id -> ``./<path>:<export>`` for every selected agent."""
    entries: dict[str, str] = {}
    for agent in selection.agents:
        for graph_id, (module, export) in AGENT_GRAPHS[agent].items():
            entries[graph_id] = f"./{layout.agents_src_dir}/{agent.folder}/{module}:{export}"
    return entries


def add_graphs(
    registry: dict[str, Any], selection: Selection, layout: OutputLayout
) -> dict[str, Any]:
    """Return *registry* with the selected agents' graphs added.

    Existing entries are kept; a missing ``graphs`` mapping is created.
    """
    graphs = registry.get("graphs")
    if graphs is None:
        graphs = {}
    if not isinstance(graphs, dict):
        raise ValueError(f"'graphs' in {GRAPH_REGISTRY} must be an object")
    return ManifestPatch(values={"graphs": {**graphs, **graph_entries(selection, layout)}}).apply(
        registry
    )


def collect_env_vars(selection: Selection) -> list[str]:
    """Deduplicated variable names, first-seen order over the canonical agents."""
    seen: dict[str, None] = {}
    for agent in selection.agents:
        for name in AGENT_ENV_VARS[agent]:
            seen.setdefault(name, None)
    return list(seen)


def render_env_template(renderer: TemplateRenderer, selection: Selection) -> str:
    return renderer.render(
        "env.example.j2",
        {"preamble": ENV_PREAMBLE, "env_vars": collect_env_vars(selection)},
    )


def render_gitignores(
    renderer: TemplateRenderer, selection: Selection
) -> tuple[str, str]:
    """``(root .gitignore, web-app .gitignore)`` contents."""
    base = renderer.render(BASE_GITIGNORE_TEMPLATE, {})
    web = renderer.render(FRAMEWORK_GITIGNORE_TEMPLATES[selection.framework], {})
    return base, web


# ---------------------------------------------------------------------------
# Synthesizer
# ---------------------------------------------------------------------------


StepFn = Callable[[Path, Selection, StepResult], Awaitable[None]]


class ConfigSynthesizer:
    """Applies every synthesis step to a composed project tree."""

    STEPS: tuple[str, ...] = (
        "identity",
        "package-manager",
        "workspace-file",
        "agent-dependencies",
        "graph-registry",
        "env-template",
        "ignore-files",
    )

    def __init__(
        self,
        layout: OutputLayout,
        renderer: TemplateRenderer | None = None,
        override_pins: dict[str, str] | None = None,
        tie_break: DependencyTieBreak = DependencyTieBreak.LAST_WRITER_WINS,
    ) -> None:
        self.layout = layout
        self.renderer = renderer or TemplateRenderer()
        self.override_pins = dict(override_pins if override_pins is not None else DEFAULT_OVERRIDE_PINS)
        self.tie_break = tie_break
        self._step_methods: dict[str, StepFn] = {
            "identity": self.write_identity,
            "package-manager": self.write_package_manager,
            "workspace-file": self.write_workspace_file,
            "agent-dependencies": self.write_agent_dependencies,
            "graph-registry": self.write_graph_registry,
            "env-template": self.write_env_template,
            "ignore-files": self.write_ignore_files,
        }

    async def synthesize(self, root: str | Path, selection: Selection) -> SynthesisReport:
        """Run every step against *root* and return the collected results."""
        root = Path(root)
        report = SynthesisReport()
        for step in self.STEPS:
            report.steps.append(await self.run_step(step, root, selection))
        return report

    async def run_step(self, step: str, root: Path, selection: Selection) -> StepResult:
        """Run one step, converting any exception into a ``failed`` result."""
        result = StepResult(step=step)
        try:
            await self._step_methods[step](root, selection, result)
        except Exception as exc:
            result.status = StepStatus.FAILED
            result.error = f"{type(exc).__name__}: {exc}"
            print_error(f"Error: Failed to write {step} ({escape(str(exc))})")
            console.print(traceback.format_exc(), style="dim", markup=False, highlight=False)
        return result

    # -- Helpers -----------------------------------------------------------

    async def _patch_manifest(
        self, root: Path, relpath: str, patch: ManifestPatch, result: StepResult
    ) -> dict[str, Any]:
        path = root / relpath
        document = await asyncio.to_thread(load_json, path)
        patched = patch.apply(document)
        await save_json(patched, path)
        result.artifacts.append(relpath)
        return patched

    async def _write(self, root: Path, path: Path, content: str, result: StepResult) -> None:
        await asyncio.to_thread(write_text, path, content)
        result.artifacts.append(relative_to_root(path, root))

    # -- Steps -------------------------------------------------------------

    async def write_identity(self, root: Path, selection: Selection, result: StepResult) -> None:
        for relpath, patch in identity_patches(selection, self.layout).items():
            if relpath != ROOT_MANIFEST and not (root / relpath).is_file():
                result.notes.append(f"{relpath} not present, name not set")
                continue
            await self._patch_manifest(root, relpath, patch, result)

    async def write_package_manager(
        self, root: Path, selection: Selection, result: StepResult
    ) -> None:
        patch = package_manager_patch(selection, self.override_pins)
        await self._patch_manifest(root, ROOT_MANIFEST, patch, result)

    async def write_workspace_file(
        self, root: Path, selection: Selection, result: StepResult
    ) -> None:
        shape = WORKSPACE_FILE_SHAPES[selection.package_manager]
        if shape == WorkspaceFileShape.NONE:
            result.status = StepStatus.SKIPPED
            result.notes.append(f"{selection.package_manager.value} reads workspaces from package.json")
            return

        target = root / WORKSPACE_FILE_NAMES[shape]
        if shape == WorkspaceFileShape.LINKER_CONFIG:
            content = self.renderer.render("yarnrc.yml.j2", {"node_linker": YARN_NODE_LINKER})
            await self._write(root, target, content, result)
            return

        manifest = await asyncio.to_thread(load_json, root / ROOT_MANIFEST)
        globs = workspace_globs(manifest, self.layout)
        # The manifest keeps its globs until the workspace file is on disk.
        if globs:
            await self._write(root, target, render_pnpm_workspace(globs), result)
        else:
            result.status = StepStatus.SKIPPED
            result.notes.append("no workspace globs for this layout")
        if "workspaces" in manifest:
            await self._patch_manifest(
                root, ROOT_MANIFEST, ManifestPatch(remove=("workspaces",)), result
            )

    async def write_agent_dependencies(
        self, root: Path, selection: Selection, result: StepResult
    ) -> None:
        patch, notes = agent_dependency_patch(selection, self.tie_break)
        result.notes.extend(notes)
        manifest = self.layout.agents_manifest_path(root)
        await self._patch_manifest(root, relative_to_root(manifest, root), patch, result)

    async def write_graph_registry(
        self, root: Path, selection: Selection, result: StepResult
    ) -> None:
        path = root / GRAPH_REGISTRY
        registry = await asyncio.to_thread(load_json, path)
        updated = add_graphs(registry, selection, self.layout)
        await save_json(updated, path, trailing_newline=True)
        result.artifacts.append(GRAPH_REGISTRY)

    async def write_env_template(
        self, root: Path, selection: Selection, result: StepResult
    ) -> None:
        content = render_env_template(self.renderer, selection)
        await self._write(root, root / ENV_TEMPLATE, content, result)

    async def write_ignore_files(
        self, root: Path, selection: Selection, result: StepResult
    ) -> None:
        base, web = render_gitignores(self.renderer, selection)
        await self._write(root, root / GITIGNORE, base, result)
        await self._write(root, self.layout.web_path(root) / GITIGNORE, web, result)
