"""AI brain: persona, rules and knowledge used as optional system context."""

from brain.loader import BrainLoader
from brain.context import BrainContext, build_brain_system_prompt

__all__ = [
    "BrainLoader",
    "BrainContext",
    "build_brain_system_prompt",
]
