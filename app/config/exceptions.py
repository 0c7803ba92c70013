"""Errors raised while assembling the notifier's settings.

Settings come from three places: the YAML file, the environment and, for the
send commands, a JSON payload file. A ConfigurationError names that source and
lists every problem found in it, so a single ``validate-config`` run reports
all of them.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

CONFIG_FILE_HINTS = [
    "Review config.example.yaml for correct format",
    "Verify field types match the expected schema",
]

# pydantic error type -> name shown to operators
_EXPECTED_TYPES = {
    "string_type": "a string",
    "int_type": "an integer",
    "int_parsing": "an integer",
    "float_type": "a number",
    "float_parsing": "a number",
    "bool_type": "true or false",
    "bool_parsing": "true or false",
    "list_type": "a list",
    "dict_type": "a mapping",
    "model_type": "a mapping",
}


class ConfigurationError(Exception):
    """The notifier cannot start with the settings it was given.

    Attributes:
        message: One-line summary
        source: Where the settings came from (file path or "environment")
        errors: One entry per offending setting
        suggestions: Steps that usually fix the problem
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        source: Union[str, Path, None] = None,
    ):
        self.message = message
        self.source = str(source) if source is not None else None
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(self.render())

    @classmethod
    def from_validation_error(
        cls, exc: ValidationError, source: Union[str, Path, None] = None
    ) -> "ConfigurationError":
        """Build the error for a config file that failed model validation."""
        return cls(
            "Configuration validation failed",
            errors=[describe_setting_error(error) for error in exc.errors()],
            suggestions=CONFIG_FILE_HINTS,
            source=source,
        )

    def render(self) -> str:
        """Multi-line text printed by the CLI."""
        headline = f"{self.message} [{self.source}]" if self.source else self.message
        lines = [headline]

        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(lines)


def describe_setting_error(error: Dict[str, Any]) -> str:
    """Turn one pydantic error entry into a line naming the YAML setting."""
    setting = " -> ".join(str(loc) for loc in error["loc"])
    error_type = error["type"]

    if error_type == "missing":
        return f"Missing required setting: {setting}"
    if error_type in _EXPECTED_TYPES:
        return (
            f"Invalid type for '{setting}': expected {_EXPECTED_TYPES[error_type]}, "
            f"got {error.get('input')!r}"
        )
    if "enum" in error_type:
        return f"Invalid value for '{setting}': {error['msg']}"
    return f"{setting}: {error['msg']}"
