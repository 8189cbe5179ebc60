"""Interactive question sequence.

Asks the questions in a fixed order and returns :class:`RawAnswers`.  Answers
already supplied (for example by CLI flags) are not asked again.  The
per-agent questions are only asked when "include all agents" is declined.
"""

from __future__ import annotations

from rich.prompt import Confirm, Prompt

from .scaffolder.models import Agent, Framework, PackageManager, RawAnswers
from .scaffolder.selection import DEFAULT_PROJECT_NAME
from .utils import console


def collect_answers(
    preset: RawAnswers | None = None, default_include_all: bool = True
) -> RawAnswers:
    """Prompt for every answer missing from *preset*."""
    answers = preset.model_copy(deep=True) if preset else RawAnswers()

    if answers.project_name is None:
        answers.project_name = Prompt.ask(
            "What is the name of your project?",
            default=DEFAULT_PROJECT_NAME,
            console=console,
        )

    if answers.package_manager is None:
        answers.package_manager = PackageManager(
            Prompt.ask(
                "Which package manager would you like to use?",
                choices=[pm.value for pm in PackageManager],
                default=PackageManager.NPM.value,
                console=console,
            )
        )

    if answers.auto_install is None:
        answers.auto_install = Confirm.ask(
            "Would you like to automatically install dependencies?",
            default=True,
            console=console,
        )

    if answers.framework is None:
        answers.framework = Framework(
            Prompt.ask(
                "Which framework would you like to use?",
                choices=[fw.value for fw in Framework],
                default=Framework.NEXTJS.value,
                console=console,
            )
        )

    if answers.include_all_agents is None and not answers.agent_answers:
        answers.include_all_agents = Confirm.ask(
            "Would you like to include all pre-built agents?",
            default=default_include_all,
            console=console,
        )

    if answers.include_all_agents is False:
        for agent in Agent.canonical():
            if agent not in answers.agent_answers:
                answers.agent_answers[agent] = Confirm.ask(
                    f"Include {agent.label} agent?",
                    default=False,
                    console=console,
                )

    return answers
