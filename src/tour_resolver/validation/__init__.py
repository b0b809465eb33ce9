"""Parsing and schema validation of language model suggestions."""

from tour_resolver.validation.exceptions import JSONParseError, SchemaValidationError, ValidationError
from tour_resolver.validation.json_parse import parse_json_payload
from tour_resolver.validation.schema import SuggestionSchemaValidator

__all__ = [
    "JSONParseError",
    "SchemaValidationError",
    "SuggestionSchemaValidator",
    "ValidationError",
    "parse_json_payload",
]
