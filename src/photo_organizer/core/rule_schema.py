"""JSON schema and validation for rule definitions."""

import json
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

# Range offered by the rule editor. The classification engine itself
# accepts any integer priority.
MIN_EDIT_PRIORITY = 1
MAX_EDIT_PRIORITY = 20

# JSON Schema for rule definitions
RULE_SCHEMA = {
    "type": "object",
    "properties": {
        "include_defaults": {
            "type": "boolean",
            "default": False,
            "description": "Evaluate the built-in rules before the rules in this file"
        },
        "rules": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "pattern", "folder"],
                "additionalProperties": False,
                "properties": {
                    "id": {
                        "type": "string",
                        "minLength": 1,
                        "pattern": r"^[A-Za-z0-9._-]+$",
                        "description": "Stable unique identifier (generated when omitted)"
                    },
                    "name": {
                        "type": "string",
                        "minLength": 1,
                        "description": "Human readable name for the rule"
                    },
                    "pattern": {
                        "type": "string",
                        "minLength": 1,
                        "description": "Case-insensitive regular expression tested against the filename"
                    },
                    "folder": {
                        "type": "string",
                        "minLength": 1,
                        "pattern": r"^[^/\\]+$",
                        "description": "Destination folder name"
                    },
                    "priority": {
                        "type": "integer",
                        "minimum": MIN_EDIT_PRIORITY,
                        "maximum": MAX_EDIT_PRIORITY,
                        "default": MIN_EDIT_PRIORITY,
                        "description": "Priority of the rule (higher values checked first)"
                    },
                    "description": {
                        "type": "string",
                        "description": "Optional description of what the rule does"
                    }
                }
            }
        }
    },
    "required": ["rules"]
}


def validate_rule_json(rule_data: Dict[str, Any]) -> List[str]:
    """Validate a rule definition JSON object.

    Args:
        rule_data: The rule data to validate

    Returns:
        List of validation error messages, empty when the data is valid
    """
    validator = jsonschema.Draft7Validator(RULE_SCHEMA)
    errors = []
    for error in sorted(validator.iter_errors(rule_data), key=lambda e: [str(p) for p in e.absolute_path]):
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        errors.append(f"Validation error at {path}: {error.message}")
    return errors


def validate_rule_file(file_path: Path) -> List[str]:
    """Validate a rule definition JSON file.

    Args:
        file_path: Path to the rule file

    Returns:
        List of validation error messages
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            rule_data = json.load(f)
    except json.JSONDecodeError as e:
        return [f"JSON parsing error: {e.msg} at line {e.lineno}, column {e.colno}"]
    except OSError as e:
        return [f"Error reading file: {e}"]
    return validate_rule_json(rule_data)
