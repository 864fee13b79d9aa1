"""File-backed AI brain: personas, core rules and a knowledge base.

Expected layout under the brain root:

    personas/<name>.md
    rules/core.md
    knowledge/**/*.md

Missing files and read failures yield empty results; they are logged,
never raised.
"""

from pathlib import Path
from typing import Optional

import aiofiles

from shared.logging import get_logger
from shared.models import KnowledgeHit

logger = get_logger(__name__)

# Characters kept before and after the first match in a preview
PREVIEW_BEFORE = 100
PREVIEW_AFTER = 200


class BrainLoader:
    """
    Loader for the AI brain directory.

    Responsibilities:
    - Report whether a brain directory is configured
    - Load persona and core rules text
    - Search knowledge files for a query
    """

    def __init__(self, brain_path: Optional[str | Path] = None) -> None:
        self.brain_path = Path(brain_path) if brain_path else None

    def is_available(self) -> bool:
        """Whether the configured brain path is an existing directory."""
        if self.brain_path is None:
            return False
        return self.brain_path.is_dir()

    async def _read_text(self, path: Path) -> str:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()

    async def load_persona(self, name: str = "default") -> str:
        """
        Load a persona by name.

        Args:
            name: Persona file stem under personas/

        Returns:
            Persona text, or an empty string if unavailable
        """
        if not self.is_available():
            logger.warning("Brain not available, returning empty persona")
            return ""

        persona_path = self.brain_path / "personas" / f"{name}.md"
        if not persona_path.is_file():
            logger.warning("Persona file not found", path=str(persona_path))
            return ""

        try:
            content = await self._read_text(persona_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error loading persona", persona=name, error=str(e))
            return ""

        logger.debug("Loaded persona", persona=name)
        return content

    async def load_core_rules(self) -> str:
        """Load rules/core.md, or an empty string if unavailable."""
        if not self.is_available():
            logger.warning("Brain not available, returning empty rules")
            return ""

        rules_path = self.brain_path / "rules" / "core.md"
        if not rules_path.is_file():
            logger.warning("Core rules file not found", path=str(rules_path))
            return ""

        try:
            content = await self._read_text(rules_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error loading core rules", error=str(e))
            return ""

        logger.debug("Loaded core rules")
        return content

    async def search_knowledge(self, query: str) -> list[KnowledgeHit]:
        """
        Case-insensitive search over knowledge/**/*.md.

        Each hit carries the file path relative to the knowledge directory
        and a preview window around the first match.
        """
        if not self.is_available():
            logger.warning("Brain not available, search returned empty results")
            return []

        knowledge_path = self.brain_path / "knowledge"
        if not knowledge_path.is_dir():
            logger.warning("Knowledge directory not found", path=str(knowledge_path))
            return []

        lower_query = query.lower()
        results: list[KnowledgeHit] = []

        for file_path in sorted(knowledge_path.rglob("*.md")):
            if not file_path.is_file():
                continue

            try:
                content = await self._read_text(file_path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Error reading knowledge file", path=str(file_path), error=str(e))
                continue

            match_index = content.lower().find(lower_query)
            if match_index == -1:
                continue

            start = max(0, match_index - PREVIEW_BEFORE)
            end = min(len(content), match_index + PREVIEW_AFTER)
            preview = content[start:end].strip()

            results.append(KnowledgeHit(
                file=file_path.relative_to(knowledge_path).as_posix(),
                preview=f"...{preview}...",
            ))

        logger.debug("Knowledge search finished", query=query, results=len(results))
        return results
