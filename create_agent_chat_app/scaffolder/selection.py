"""Selection resolution.

Turns raw, possibly partial answers into a canonical :class:`Selection` with
every field populated and the agent set expanded to explicit membership.
"""

from __future__ import annotations

from .models import (
    Agent,
    Framework,
    InvalidSelection,
    PackageManager,
    RawAnswers,
    Selection,
    validate_project_name,
)


DEFAULT_PROJECT_NAME = "agent-chat-app"
DEFAULT_PACKAGE_MANAGER = PackageManager.NPM
DEFAULT_FRAMEWORK = Framework.NEXTJS
DEFAULT_AUTO_INSTALL = True


def parse_agent(value: str) -> Agent:
    """Parse ``react`` or ``react-agent`` (case-insensitive) into an :class:`Agent`."""
    key = value.strip().lower()
    if key.endswith("-agent"):
        key = key[: -len("-agent")]
    try:
        return Agent(key)
    except ValueError:
        choices = ", ".join(a.value for a in Agent)
        raise InvalidSelection(f"Unknown agent '{value}' (expected one of: {choices})") from None


def parse_agent_list(value: str) -> dict[Agent, bool]:
    """Parse a comma-separated agent list into explicit per-agent answers.

    Every agent gets an answer, so the result always means "the toggle was
    declined and exactly these were picked".
    """
    picked = {parse_agent(part) for part in value.split(",") if part.strip()}
    return {agent: agent in picked for agent in Agent.canonical()}


def resolve_agents(
    answers: RawAnswers, default_include_all: bool = True
) -> tuple[bool, tuple[Agent, ...]]:
    """Return ``(include_all, agents)`` with agents in canonical order."""
    include_all = answers.include_all_agents
    if include_all is None:
        # Toggle never asked: explicit per-agent answers imply it was declined.
        include_all = default_include_all if not answers.agent_answers else False

    if include_all:
        return True, tuple(Agent.canonical())

    picked = tuple(
        agent for agent in Agent.canonical()
        if answers.agent_answers.get(agent, False)
    )
    return False, picked


def resolve_selection(
    answers: RawAnswers, *, default_include_all: bool = True
) -> Selection:
    """Resolve *answers* into a canonical :class:`Selection`.

    Args:
        answers: Raw answers; missing fields take the documented defaults.
        default_include_all: Value of the "include all agents" toggle when it
            was never answered and no per-agent answers were given.

    Raises:
        InvalidSelection: If the project name is empty or not path-safe.
    """
    name = validate_project_name(
        answers.project_name if answers.project_name is not None else DEFAULT_PROJECT_NAME
    )
    include_all, agents = resolve_agents(answers, default_include_all)

    return Selection(
        project_name=name,
        package_manager=answers.package_manager or DEFAULT_PACKAGE_MANAGER,
        auto_install=(
            DEFAULT_AUTO_INSTALL if answers.auto_install is None else answers.auto_install
        ),
        framework=answers.framework or DEFAULT_FRAMEWORK,
        agents=agents,
        include_all_agents=include_all,
    )
