"""
Prompt builder for the language model calls.

Renders Jinja2 templates for:
- landmark suggestions (system instruction + user prompt)
- the coordinate fallback question
- the tour-guide system prompt returned with every tour
"""

from pathlib import Path
from typing import Sequence

import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from tour_resolver.models.landmark_models import LandmarkCandidate

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

TEMPLATE_NAMES = (
    "suggestion_system_prompt.txt",
    "suggestion_prompt.txt",
    "coordinate_prompt.txt",
    "guide_system_prompt.txt",
)


class PromptBuilder:
    """Render prompt templates from a directory."""

    def __init__(self, templates_dir: Path = DEFAULT_TEMPLATES_DIR, suggestion_count: int = 10):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory holding the four prompt templates
            suggestion_count: Landmarks requested per destination
        """
        self.templates_dir = Path(templates_dir)
        self.suggestion_count = suggestion_count
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,  # plain-text prompts
            undefined=StrictUndefined,
        )
        try:
            self.templates = {name: self.jinja_env.get_template(name) for name in TEMPLATE_NAMES}
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e), templates_dir=str(self.templates_dir))
            raise
        logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))

    def _render(self, template_name: str, **context) -> str:
        return self.templates[template_name].render(**context).strip()

    def build_suggestion_system_prompt(self, destination: str) -> str:
        return self._render("suggestion_system_prompt.txt", destination=destination)

    def build_suggestion_prompt(self, destination: str, count: int | None = None) -> str:
        return self._render(
            "suggestion_prompt.txt",
            destination=destination,
            count=count or self.suggestion_count,
        )

    def build_coordinate_prompt(self, candidate: LandmarkCandidate, destination: str) -> str:
        return self._render(
            "coordinate_prompt.txt",
            name=candidate.name,
            destination=destination,
            description=candidate.description,
        )

    def build_guide_system_prompt(
        self, destination: str, landmarks: Sequence[LandmarkCandidate]
    ) -> str:
        return self._render("guide_system_prompt.txt", destination=destination, landmarks=landmarks)
