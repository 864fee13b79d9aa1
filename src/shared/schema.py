"""JSON Schema checks for tool arguments."""

from typing import Any

from jsonschema import Draft7Validator

from shared.errors import ToolValidationError


def schema_errors(data: Any, schema: dict[str, Any]) -> list[str]:
    """
    Collect every violation of a JSON Schema, ordered by location.

    Messages for nested values are prefixed with their dotted path.
    """
    if not schema:
        return []

    found = sorted(Draft7Validator(schema).iter_errors(data), key=lambda e: list(e.path))
    return [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in found
    ]


def check_tool_arguments(tool: str, arguments: Any, schema: dict[str, Any]) -> None:
    """
    Validate tool arguments against the tool's input schema.

    Raises:
        ToolValidationError: Listing every violation
    """
    errors = schema_errors(arguments, schema)
    if errors:
        raise ToolValidationError(
            f"Invalid arguments for {tool}: {'; '.join(errors)}",
            details={"errors": errors}
        )
