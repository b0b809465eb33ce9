"""
JSON Schema validation of landmark suggestions (Draft 7).
"""

import json
from pathlib import Path

import structlog
from jsonschema import Draft7Validator

from tour_resolver.validation.exceptions import SchemaValidationError

logger = structlog.get_logger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "landmark_suggestions.json"


class SuggestionSchemaValidator:
    """Validate parsed suggestions against a JSON Schema file, loaded once."""

    def __init__(self, schema_path: str | Path = DEFAULT_SCHEMA_PATH):
        self.schema_path = Path(schema_path)
        self._validator: Draft7Validator | None = None

    def _get_validator(self) -> Draft7Validator:
        if self._validator is None:
            try:
                with open(self.schema_path, "r", encoding="utf-8") as f:
                    schema = json.load(f)
            except (OSError, ValueError) as e:
                raise SchemaValidationError(f"cannot load schema {self.schema_path}: {e}") from e
            Draft7Validator.check_schema(schema)
            self._validator = Draft7Validator(schema)
            logger.info("Loaded suggestion schema", schema_path=str(self.schema_path))
        return self._validator

    def validate(self, data: dict) -> None:
        """
        Raises:
            SchemaValidationError: listing up to 10 violations
        """
        errors = sorted(self._get_validator().iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            messages = []
            for error in errors[:10]:
                path = ".".join(str(p) for p in error.path) if error.path else "root"
                messages.append(f"{path}: {error.message}")
            raise SchemaValidationError(
                f"suggestions failed schema validation with {len(errors)} error(s)",
                validation_errors=messages,
            )
