"""
Schema Validation - desired-document validation utilities.

Validates resource documents against the JSON Schema generated from a
resource's declared attributes, plus invariants JSON Schema cannot express.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)


def validate_json_schema(schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate that a generated schema is a valid Draft 7 JSON Schema.

    Args:
        schema: The schema to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        Draft7Validator.check_schema(schema)
        return True, None
    except SchemaError as e:
        logger.debug(f"Rejected schema: {e.message}")
        return False, f"Invalid schema: {e.message}"


def validate_document(
    document: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate a resource document against a JSON Schema.

    Args:
        document: The desired or planned resource document
        schema: The JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    validator = Draft7Validator(schema)
    errors = sorted(
        validator.iter_errors(document), key=lambda e: [str(p) for p in e.path]
    )

    if not errors:
        return True, None

    # Collect all validation errors
    error_messages = []
    for error in errors:
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        error_messages.append(f"{path}: {error.message}")

    logger.debug(f"Document failed validation with {len(errors)} error(s)")
    return False, "; ".join(error_messages)


def validate_scheduling(
    every: Optional[str], cron: Optional[str]
) -> Tuple[bool, Optional[str]]:
    """
    Check that exactly one of ``every`` and ``cron`` is set.

    Empty strings count as unset.

    Returns:
        Tuple of (is_valid, error_message)
    """
    has_every = bool(every)
    has_cron = bool(cron)

    if not has_every and not has_cron:
        return False, "Either 'every' or 'cron' must be specified for task scheduling"

    if has_every and has_cron:
        return False, "Cannot specify both 'every' and 'cron' scheduling options"

    return True, None
