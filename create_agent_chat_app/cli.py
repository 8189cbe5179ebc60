"""Command-line entry point.

Usage::

    create-agent-chat-app
    create-agent-chat-app my-app -p pnpm -f vite --agents react,memory --no-install
    python -m create_agent_chat_app my-app --yes
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from rich.markup import escape

from .config import GeneratorConfig
from .installer import install_dependencies
from .prompts import collect_answers
from .scaffolder import (
    DestinationExists,
    Framework,
    GenerationResult,
    PackageManager,
    ProjectGenerator,
    RawAnswers,
    ScaffoldError,
    Selection,
    SynthesisReport,
)
from .scaffolder.catalog import FRAMEWORK_DEV_URLS, LANGGRAPH_SERVER_URL, DependencyTieBreak
from .scaffolder.models import LAYOUTS, StepStatus
from .scaffolder.selection import parse_agent_list
from .utils import (
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    print_welcome,
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-agent-chat-app",
        description="Create a web app + LangGraph agents monorepo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-agent-chat-app\n"
            "  create-agent-chat-app my-app -p pnpm -f vite --agents react,memory\n"
            "  create-agent-chat-app my-app --all-agents --no-install --yes\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", default=None, help="Project directory name")
    parser.add_argument(
        "--package-manager", "-p",
        choices=[pm.value for pm in PackageManager],
        default=None,
        help="Package manager to bind the project to",
    )
    parser.add_argument(
        "--framework", "-f",
        choices=[fw.value for fw in Framework],
        default=None,
        help="Web framework for the web app",
    )
    agents = parser.add_mutually_exclusive_group()
    agents.add_argument(
        "--agents",
        default=None,
        help="Comma-separated agents to include (react, memory, research, retrieval)",
    )
    agents.add_argument(
        "--all-agents", action="store_true", help="Include every pre-built agent"
    )
    agents.add_argument(
        "--no-agents", action="store_true", help="Do not include any pre-built agent"
    )
    parser.add_argument(
        "--install",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Install dependencies after generation",
    )
    parser.add_argument(
        "--layout",
        choices=sorted(LAYOUTS),
        default=None,
        help="Output layout (default: apps)",
    )
    parser.add_argument(
        "--tie-break",
        choices=[t.value for t in DependencyTieBreak],
        default=None,
        help="Which agent's version wins on a dependency conflict (default: last-writer-wins)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Directory the project is created in (default: current directory)",
    )
    parser.add_argument(
        "--templates",
        default=None,
        help="Alternative template tree root",
    )
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Do not prompt; use defaults for anything not given on the command line",
    )
    return parser


def preset_from_args(args: argparse.Namespace) -> RawAnswers:
    """Answers already given on the command line."""
    answers = RawAnswers(
        project_name=args.project_name,
        package_manager=PackageManager(args.package_manager) if args.package_manager else None,
        auto_install=args.install,
        framework=Framework(args.framework) if args.framework else None,
    )
    if args.all_agents:
        answers.include_all_agents = True
    elif args.no_agents:
        answers.include_all_agents = False
        answers.agent_answers = parse_agent_list("")
    elif args.agents is not None:
        answers.include_all_agents = False
        answers.agent_answers = parse_agent_list(args.agents)
    return answers


def config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    """Environment configuration with CLI overrides applied."""
    config = GeneratorConfig.from_env()
    updates: dict[str, Any] = {}
    if args.output is not None:
        updates["output_dir"] = args.output
    if args.templates is not None:
        updates["templates_dir"] = args.templates
    if args.layout is not None:
        updates["layout"] = args.layout
    if args.tie_break is not None:
        updates["dependency_tie_break"] = DependencyTieBreak(args.tie_break)
    if not updates:
        return config
    return GeneratorConfig(**{**config.model_dump(), **updates})


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def start_servers_message(selection: Selection) -> str:
    pm = selection.package_manager.value
    return (
        "Then, start both the web, and LangGraph development servers with one command:\n"
        f"  [cyan]{pm} dev[/cyan]\n\n"
        "This will start the web server at:\n"
        f"  [cyan]{FRAMEWORK_DEV_URLS[selection.framework]}[/cyan]\n\n"
        "And the LangGraph server at:\n"
        f"  [cyan]{LANGGRAPH_SERVER_URL}[/cyan]"
    )


def getting_started_message(selection: Selection, needs_install: bool) -> str:
    lines = ["To get started:", f"  [cyan]cd {escape(selection.project_name)}[/cyan]"]
    if needs_install:
        lines.append(f"  [cyan]{selection.package_manager.value} install[/cyan]")
    return "\n".join(lines) + "\n\n" + start_servers_message(selection)


def print_report(report: SynthesisReport) -> None:
    """List synthesis steps that did not complete."""
    for step in report.steps:
        if step.status == StepStatus.FAILED:
            print_warning(f"  {step.step}: {escape(step.error)}")
        for note in step.notes:
            console.print(f"  [dim]{step.step}: {escape(note)}[/dim]")
    if not report.succeeded:
        print_warning(
            "Some configuration files could not be updated and keep their "
            "template defaults. Fix them by hand before running the project."
        )


def print_outcome(result: GenerationResult, installed: bool | None) -> None:
    """Final instructions; *installed* is ``None`` when no install was attempted."""
    selection = result.selection
    root = escape(str(result.project_root.resolve()))
    if installed is False:
        console.print(
            "\nYour agent chat app has been created, but dependencies could not be "
            "installed automatically.\n"
        )
        console.print(getting_started_message(selection, needs_install=True))
        return

    print_success("\nSuccess!")
    console.print(f"\nYour agent chat app has been created at [green]{root}[/green]\n")
    console.print(getting_started_message(selection, needs_install=installed is None))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run(args: argparse.Namespace) -> GenerationResult:
    """Resolve, generate and optionally install; errors propagate."""
    config = config_from_args(args)
    generator = ProjectGenerator(config)

    preset = preset_from_args(args)
    if args.yes:
        answers = preset
    else:
        print_welcome()
        answers = collect_answers(preset, config.default_include_all_agents)

    selection = generator.resolve(answers)
    result = await generator.generate(selection)

    print_summary_table(
        {
            "Project": selection.project_name,
            "Package manager": selection.package_manager.value,
            "Framework": selection.framework.value,
            "Agents": ", ".join(a.folder for a in selection.agents) or "none",
            "Layout": config.layout,
        },
        title="Generated",
    )
    print_report(result.report)

    installed: bool | None = None
    if selection.auto_install:
        installed = await install_dependencies(
            selection.package_manager, result.project_root, timeout=config.install_timeout
        )
    print_outcome(result, installed)
    return result


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-agent-chat-app``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        asyncio.run(run(args))
    except DestinationExists as exc:
        print_error(f"Error: Directory {escape(exc.path.name)} already exists.")
        sys.exit(1)
    except ScaffoldError as exc:
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)
    except KeyboardInterrupt:
        print_error("Aborted.")
        sys.exit(1)
    except Exception as exc:
        print_error(f"Error: {escape(repr(exc))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
