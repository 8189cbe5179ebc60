"""create-agent-chat-app configuration.

Typed settings for one generator run.  Pydantic v2 validates them at
construction time; :meth:`GeneratorConfig.from_env` reads the optional
``CACA_*`` environment variables and CLI flags override the result.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .scaffolder.catalog import DEFAULT_OVERRIDE_PINS, DependencyTieBreak
from .scaffolder.models import LAYOUTS, OutputLayout

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class GeneratorConfig(BaseModel):
    """Settings shared by the CLI, the composer and the synthesizer."""

    output_dir: Path = Field(default=Path("."), description="Parent of the project directory")
    templates_dir: Optional[Path] = Field(
        default=None, description="Template tree root (bundled trees when unset)"
    )
    layout: str = Field(default="apps", description="Output layout name")
    default_include_all_agents: bool = Field(
        default=True, description="Default answer of the 'include all agents' question"
    )
    override_pins: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_OVERRIDE_PINS),
        description="Dependencies pinned across all workspaces",
    )
    install_timeout: int = Field(default=1800, ge=10, description="Install timeout in seconds")
    dependency_tie_break: DependencyTieBreak = Field(
        default=DependencyTieBreak.LAST_WRITER_WINS,
        description="Which version wins when two agents pin a dependency differently",
    )

    @field_validator("layout")
    @classmethod
    def _known_layout(cls, value: str) -> str:
        if value not in LAYOUTS:
            raise ValueError(
                f"unknown layout '{value}' (expected one of: {', '.join(sorted(LAYOUTS))})"
            )
        return value

    @property
    def layout_policy(self) -> OutputLayout:
        return LAYOUTS[self.layout]

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            CACA_OUTPUT_DIR, CACA_TEMPLATES_DIR, CACA_LAYOUT,
            CACA_INCLUDE_ALL_AGENTS, CACA_INSTALL_TIMEOUT,
            CACA_DEPENDENCY_TIE_BREAK.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CACA_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["CACA_OUTPUT_DIR"])
        if os.environ.get("CACA_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["CACA_TEMPLATES_DIR"])
        if os.environ.get("CACA_LAYOUT"):
            kwargs["layout"] = os.environ["CACA_LAYOUT"]
        if os.environ.get("CACA_INCLUDE_ALL_AGENTS"):
            kwargs["default_include_all_agents"] = _parse_bool(
                os.environ["CACA_INCLUDE_ALL_AGENTS"], "CACA_INCLUDE_ALL_AGENTS"
            )
        if os.environ.get("CACA_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["CACA_INSTALL_TIMEOUT"])
        if os.environ.get("CACA_DEPENDENCY_TIE_BREAK"):
            kwargs["dependency_tie_break"] = os.environ["CACA_DEPENDENCY_TIE_BREAK"].strip()
        return cls(**kwargs)


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")
