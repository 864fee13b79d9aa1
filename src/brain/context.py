"""System prompt assembly from brain modules."""

from typing import Optional, Sequence

from pydantic import BaseModel, Field

from brain.loader import BrainLoader

DEFAULT_MODULES = ("persona", "rules")
SECTION_SEPARATOR = "\n\n---\n\n"


class BrainContext(BaseModel):
    """Assembled system prompt and the modules that contributed to it."""
    system_prompt: str = ""
    modules: list[str] = Field(default_factory=list)


async def build_brain_system_prompt(
    loader: BrainLoader,
    persona: Optional[str] = None,
    modules: Optional[Sequence[str]] = None,
    knowledge_query: Optional[str] = None
) -> BrainContext:
    """
    Build a system prompt from the requested brain modules.

    Args:
        loader: Brain loader
        persona: Persona name, "default" when omitted
        modules: Any of "persona", "rules", "knowledge"; persona and rules
            when omitted
        knowledge_query: Search query, required for the knowledge module

    Returns:
        The prompt sections joined by a horizontal rule, plus the modules
        that produced a section
    """
    if not loader.is_available():
        return BrainContext()

    modules = list(modules) if modules is not None else list(DEFAULT_MODULES)
    parts: list[str] = []
    used: list[str] = []

    if "persona" in modules:
        persona_text = await loader.load_persona(persona or "default")
        if persona_text:
            parts.append("## Persona\n" + persona_text)
            used.append("persona")

    if "rules" in modules:
        rules = await loader.load_core_rules()
        if rules:
            parts.append("## Rules\n" + rules)
            used.append("rules")

    if "knowledge" in modules and knowledge_query:
        hits = await loader.search_knowledge(knowledge_query)
        if hits:
            knowledge_text = "\n\n".join(f"### {h.file}\n{h.preview}" for h in hits)
            parts.append("## Relevant Knowledge\n" + knowledge_text)
            used.append("knowledge")

    return BrainContext(system_prompt=SECTION_SEPARATOR.join(parts), modules=used)
