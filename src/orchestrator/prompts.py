"""Prompt templates."""

from typing import Literal, Optional

ReviewFocus = Literal["bugs", "security", "perf", "style", "all"]

REVIEW_FOCUS: dict[str, str] = {
    "bugs": "focus on identifying potential bugs, logical errors, and edge cases",
    "security": "focus on security vulnerabilities, injection attacks, and unsafe patterns",
    "perf": "focus on performance issues, inefficient algorithms, and resource usage",
    "style": "focus on code style, naming conventions, and readability",
    "all": "provide a comprehensive review covering bugs, security, performance, and style",
}


def build_review_prompt(
    code: str,
    language: Optional[str] = None,
    focus: Optional[ReviewFocus] = None
) -> str:
    """Build the code review prompt. Focus defaults to "all"."""
    lang_hint = f" ({language})" if language else ""
    focus_text = REVIEW_FOCUS[focus or "all"]

    return (
        f"Please review the following code{lang_hint}. {focus_text}.\n"
        "\n"
        "```\n"
        f"{code}\n"
        "```\n"
        "\n"
        "Provide constructive feedback with specific examples and suggestions for improvement."
    )
