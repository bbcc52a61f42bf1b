"""
Name: Prompt Loader

Responsibilities:
  - Load prompt templates from files
  - Support versioning via PROMPT_VERSION env var
  - Cache loaded templates per name

Collaborators:
  - config: prompt_version setting
  - conceptviz/prompts/*.md: Template files ({version}_{name}.md)

Notes:
  - Templates are str.format templates; literal braces are doubled
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict

from ...logger import logger

# R: Directory containing prompt templates
PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent / "prompts"


class PromptLoader:
    """
    R: Load and cache prompt templates by version and name.
    """

    def __init__(self, version: str = "v1", prompts_dir: Path = PROMPTS_DIR):
        """
        Args:
            version: Prompt version (e.g., "v1")
            prompts_dir: Directory holding the templates
        """
        self.version = version
        self._prompts_dir = prompts_dir
        self._templates: Dict[str, str] = {}

    def get_template(self, name: str) -> str:
        """
        R: Get a prompt template, loading from file if needed.

        Raises:
            FileNotFoundError: If template file doesn't exist
        """
        if name not in self._templates:
            self._templates[name] = self._load_template(name)
        return self._templates[name]

    def _load_template(self, name: str) -> str:
        filepath = self._prompts_dir / f"{self.version}_{name}.md"

        if not filepath.exists():
            logger.error(
                f"Prompt template not found: {filepath}",
                extra={"version": self.version, "template": name},
            )
            raise FileNotFoundError(f"Prompt template not found: {filepath}")

        template = filepath.read_text(encoding="utf-8")
        logger.info(
            "Loaded prompt template",
            extra={"version": self.version, "template": name, "chars": len(template)},
        )
        return template

    def format(self, name: str, **values: str) -> str:
        """
        R: Render a template with the given values.

        Args:
            name: Template name (e.g. "format_chunk")
            **values: Placeholder values

        Returns:
            Prompt ready for the LLM
        """
        return self.get_template(name).format(**values)


@lru_cache
def get_prompt_loader() -> PromptLoader:
    """
    R: Get singleton PromptLoader with configured version.
    """
    from ...config import get_settings

    return PromptLoader(version=get_settings().prompt_version)
