"""
Resource schema declarations.

Each resource type declares its attributes (required, optional, computed,
sensitive) and optional plan modifiers. A declared schema can be rendered as
a Draft 7 JSON Schema for validating desired documents.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ATTRIBUTE_TYPES = ("string", "integer", "number", "boolean", "map", "list")


class PlanModifier(ABC):
    """Adjusts an attribute's planned value from its configured and stored values."""

    description: str = ""

    @abstractmethod
    def modify(self, config_value: Any, state_value: Any, planned_value: Any) -> Any:
        """Return the planned value to use."""
        pass


class UseStateForUnknown(PlanModifier):
    """Keep the stored value when the attribute is not configured."""

    description = "Uses the stored value when the attribute is not configured"

    def modify(self, config_value: Any, state_value: Any, planned_value: Any) -> Any:
        if config_value is None and state_value is not None:
            return state_value
        return planned_value


@dataclass
class Attribute:
    """A single declared attribute of a resource or nested object."""

    type: str
    description: str = ""
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False
    minimum: Optional[int] = None
    # Value planned for an unset element field of a nested list
    default: Any = None
    # Attributes of each element, for lists of objects
    nested: Optional[Dict[str, "Attribute"]] = None
    plan_modifiers: List[PlanModifier] = field(default_factory=list)

    def __post_init__(self):
        if self.type not in ATTRIBUTE_TYPES:
            raise ValueError(f"Unknown attribute type: {self.type}")
        if self.type == "list" and not self.nested:
            raise ValueError("List attributes must declare nested attributes")

    @property
    def configurable(self) -> bool:
        return self.required or self.optional

    def to_json_schema(self) -> Dict[str, Any]:
        if self.type == "map":
            schema: Dict[str, Any] = {
                "type": "object",
                "additionalProperties": {"type": "string"},
            }
        elif self.type == "list":
            schema = {"type": "array", "items": object_schema(self.nested or {})}
        else:
            schema = {"type": self.type}

        if self.minimum is not None:
            schema["minimum"] = self.minimum

        if not self.required:
            schema = {"anyOf": [schema, {"type": "null"}]}
        if self.default is not None:
            schema["default"] = self.default
        if self.description:
            schema["description"] = self.description
        return schema


def object_schema(attributes: Dict[str, Attribute]) -> Dict[str, Any]:
    """Render a set of attributes as a closed JSON Schema object."""
    return {
        "type": "object",
        "properties": {
            name: attribute.to_json_schema() for name, attribute in attributes.items()
        },
        "required": [name for name, attribute in attributes.items() if attribute.required],
        "additionalProperties": False,
    }


@dataclass
class Schema:
    """Declared attributes of one resource type."""

    description: str
    attributes: Dict[str, Attribute]

    def to_json_schema(self) -> Dict[str, Any]:
        schema = object_schema(self.attributes)
        schema["$schema"] = "http://json-schema.org/draft-07/schema#"
        schema["description"] = self.description
        return schema

    def sensitive_attributes(self) -> List[str]:
        return [name for name, attr in self.attributes.items() if attr.sensitive]

    def configurable_attributes(self) -> List[str]:
        return [name for name, attr in self.attributes.items() if attr.configurable]
