"""Main scaffolding orchestrator.

Resolves raw answers into a :class:`Selection`, composes the template trees
into a new project directory and synthesizes its configuration artefacts.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .composer import DirectoryComposer, announce
from .models import GenerationResult, RawAnswers, Selection
from .selection import resolve_selection
from .synthesizer import ConfigSynthesizer
from .templates import TemplateRegistry, TemplateRenderer

if TYPE_CHECKING:
    from ..config import GeneratorConfig


class ProjectGenerator:
    """Drives one generation run.

    Given a :class:`GeneratorConfig`, wires a template registry, a directory
    composer and a configuration synthesizer for the configured output layout.
    Nothing is kept between runs; the generated tree is the only artefact.
    """

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config
        self.layout = config.layout_policy
        self.registry = TemplateRegistry(config.templates_dir)
        self.renderer = TemplateRenderer()
        self.composer = DirectoryComposer(self.registry, self.layout)
        self.synthesizer = ConfigSynthesizer(
            self.layout,
            renderer=self.renderer,
            override_pins=config.override_pins,
            tie_break=config.dependency_tie_break,
        )

    # -- Public API --------------------------------------------------------

    def resolve(self, answers: RawAnswers) -> Selection:
        return resolve_selection(
            answers, default_include_all=self.config.default_include_all_agents
        )

    def destination_for(self, selection: Selection) -> Path:
        return self.composer.destination_for(selection, self.config.output_dir)

    async def generate(self, selection: Selection) -> GenerationResult:
        """Generate the project for *selection* under the configured output dir.

        Raises:
            DestinationExists: If the project directory already exists; nothing
                is written in that case.
        """
        self.composer.check_destination(selection, self.config.output_dir)
        announce(selection, self.destination_for(selection).resolve())

        project_root = await self.composer.compose(selection, self.config.output_dir)
        report = await self.synthesizer.synthesize(project_root, selection)
        return GenerationResult(
            project_root=project_root, selection=selection, report=report
        )

    async def generate_from_answers(self, answers: RawAnswers) -> GenerationResult:
        """Resolve *answers* and delegate to :meth:`generate`."""
        return await self.generate(self.resolve(answers))
