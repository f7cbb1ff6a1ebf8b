"""JSON Schema utilities.

Tool input schemas are used to validate arguments and to derive the
input fields a caller has to fill in before calling a tool.
"""

import json
from typing import Any, Optional

from jsonschema import Draft7Validator
from pydantic import BaseModel


class InputField(BaseModel):
    """One top-level argument of a tool, derived from its input schema."""
    name: str
    field_type: str = "string"
    required: bool = False
    description: Optional[str] = None


TRUE_WORDS = {"true", "yes", "1"}
FALSE_WORDS = {"false", "no", "0"}


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = list(validator.iter_errors(data))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def derive_input_fields(schema: dict[str, Any]) -> list[InputField]:
    """
    Derive input fields from an object schema's top-level properties.

    Required fields come first; otherwise property order is kept.
    Properties without a string "type" are treated as strings.
    """
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return []

    required = schema.get("required")
    required_names = {r for r in required if isinstance(r, str)} if isinstance(required, list) else set()

    fields = []
    for name, prop in properties.items():
        prop = prop if isinstance(prop, dict) else {}
        field_type = prop.get("type")
        description = prop.get("description")
        fields.append(InputField(
            name=name,
            field_type=field_type if isinstance(field_type, str) else "string",
            required=name in required_names,
            description=description if isinstance(description, str) else None
        ))

    # sort() is stable, so property order survives within each group
    fields.sort(key=lambda f: not f.required)
    return fields


def coerce_value(field: InputField, raw: str) -> Any:
    """
    Convert user-entered text into the JSON value a field expects.

    Raises:
        ValueError: If the text cannot be read as the field's type
    """
    if field.field_type in ("number", "integer"):
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"'{field.name}' must be a number") from None

    if field.field_type == "boolean":
        word = raw.lower()
        if word in TRUE_WORDS:
            return True
        if word in FALSE_WORDS:
            return False
        raise ValueError(f"'{field.name}' must be true or false")

    if field.field_type in ("array", "object"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            raise ValueError(f"'{field.name}' must be valid JSON") from None

    return raw


def coerce_inputs(fields: list[InputField], raw: dict[str, str]) -> dict[str, Any]:
    """
    Turn a mapping of field name to entered text into tool arguments.

    Empty optional fields are left out. Entries that match no field are
    passed through as strings.

    Raises:
        ValueError: If a required field is empty or a value has the wrong type
    """
    arguments: dict[str, Any] = {}
    known = set()

    for field in fields:
        known.add(field.name)
        value = raw.get(field.name, "").strip()
        if not value:
            if field.required:
                raise ValueError(f"Required field '{field.name}' is empty")
            continue
        arguments[field.name] = coerce_value(field, value)

    for name, value in raw.items():
        if name not in known:
            arguments[name] = value

    return arguments
