"""create-agent-chat-app scaffolder -- composes and configures project trees.

This module takes a resolved :class:`Selection` (project name, package
manager, framework and agents), copies the matching template trees into a new
directory and rewrites the manifests, workspace files, ``langgraph.json``,
``.env.example`` and ignore files so the tree is self-consistent.

Quick usage::

    from create_agent_chat_app.config import GeneratorConfig
    from create_agent_chat_app.scaffolder import ProjectGenerator, RawAnswers

    generator = ProjectGenerator(GeneratorConfig(output_dir="/tmp"))
    result = await generator.generate_from_answers(
        RawAnswers(project_name="demo", include_all_agents=True)
    )
"""

from create_agent_chat_app.scaffolder.composer import DestinationExists, DirectoryComposer
from create_agent_chat_app.scaffolder.generator import ProjectGenerator
from create_agent_chat_app.scaffolder.models import (
    Agent,
    Framework,
    GenerationResult,
    OutputLayout,
    PackageManager,
    RawAnswers,
    ScaffoldError,
    Selection,
    SynthesisReport,
)
from create_agent_chat_app.scaffolder.selection import InvalidSelection, resolve_selection
from create_agent_chat_app.scaffolder.synthesizer import ConfigSynthesizer
from create_agent_chat_app.scaffolder.templates import (
    TemplateNotFound,
    TemplateRegistry,
    TemplateRenderer,
)

__all__ = [
    "Agent",
    "ConfigSynthesizer",
    "DestinationExists",
    "DirectoryComposer",
    "Framework",
    "GenerationResult",
    "InvalidSelection",
    "OutputLayout",
    "PackageManager",
    "ProjectGenerator",
    "RawAnswers",
    "ScaffoldError",
    "Selection",
    "SynthesisReport",
    "TemplateNotFound",
    "TemplateRegistry",
    "TemplateRenderer",
    "resolve_selection",
]
