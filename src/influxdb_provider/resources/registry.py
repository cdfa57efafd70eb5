"""
Resource Registry - Discovery and registration of resource types.

This module provides the central registry of resource types, handling
built-in registration, entry-point discovery, and instantiation.
"""

import logging
from importlib.metadata import entry_points
from typing import Any, Dict, List, Optional, Type

from influxdb_provider.resources.base import Resource
from influxdb_provider.resources.bucket import BucketResource
from influxdb_provider.resources.check import CheckResource
from influxdb_provider.resources.notification_endpoint import (
    NotificationEndpointResource,
)
from influxdb_provider.resources.notification_rule import NotificationRuleResource
from influxdb_provider.resources.task import TaskResource
from influxdb_provider.validation import validate_json_schema

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "influxdb_provider.resources"


class ResourceRegistry:
    """
    Central registry for resource types.

    Maps resource type names (``influxdb_bucket``, ...) to Resource
    subclasses. Each lookup returns a fresh, unconfigured instance.
    """

    def __init__(self):
        # Registered resource classes (not instantiated)
        self._resources: Dict[str, Type[Resource]] = {}

        # Cached resource metadata to avoid repeated instantiation
        self._resource_info: Dict[str, Dict[str, Any]] = {}

    def register_resource(self, resource_class: Type[Resource]) -> None:
        """
        Register a resource class.

        Args:
            resource_class: The Resource subclass to register

        Raises:
            ValueError: If the resource's schema is not a valid JSON Schema
        """
        temp_instance = resource_class()
        type_name = temp_instance.type_name
        schema = temp_instance.schema()

        is_valid, error = validate_json_schema(schema.to_json_schema())
        if not is_valid:
            raise ValueError(f"Resource '{type_name}' has an invalid schema: {error}")

        if type_name in self._resources:
            logger.warning(f"Overwriting existing resource type: {type_name}")

        self._resources[type_name] = resource_class
        self._resource_info[type_name] = {
            "type_name": type_name,
            "description": schema.description,
            "attributes": list(schema.attributes.keys()),
        }
        logger.info(f"Registered resource type: {type_name}")

    def get_resource(self, type_name: str) -> Resource:
        """
        Get a new resource instance.

        Args:
            type_name: The resource type name

        Returns:
            An unconfigured Resource instance

        Raises:
            ValueError: If the type name is not registered
        """
        if type_name not in self._resources:
            available = ", ".join(self._resources.keys()) or "none"
            raise ValueError(
                f"Unknown resource type: {type_name}. Available types: {available}"
            )
        return self._resources[type_name]()

    def list_resource_types(self) -> List[str]:
        """List all registered resource type names."""
        return list(self._resources.keys())

    def resource_classes(self) -> List[Type[Resource]]:
        """Registered resource classes, in registration order."""
        return list(self._resources.values())

    def has_resource_type(self, type_name: str) -> bool:
        """Check if a resource type is registered."""
        return type_name in self._resources

    def get_resource_info(self, type_name: str) -> Optional[Dict[str, Any]]:
        """
        Get information about a registered resource type.

        Returns:
            Dictionary with 'type_name', 'description' and 'attributes',
            or None if not found
        """
        return self._resource_info.get(type_name)


# Global registry instance
_registry: Optional[ResourceRegistry] = None


def get_registry() -> ResourceRegistry:
    """Get the global resource registry singleton."""
    global _registry
    if _registry is None:
        _registry = ResourceRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (mainly for testing)."""
    global _registry
    _registry = None


def builtin_resources() -> List[Type[Resource]]:
    """The resource types that ship with the provider."""
    return [
        BucketResource,
        TaskResource,
        CheckResource,
        NotificationEndpointResource,
        NotificationRuleResource,
    ]


def register_builtin_resources(
    registry: Optional[ResourceRegistry] = None,
) -> ResourceRegistry:
    """
    Register the built-in resource types and discover additional ones
    via entry points.

    Args:
        registry: Registry to populate; defaults to the global one
    """
    if registry is None:
        registry = get_registry()

    for resource_class in builtin_resources():
        registry.register_resource(resource_class)

    # Discover and register third-party resource types via entry points
    discovered = entry_points(group=ENTRY_POINT_GROUP)
    for ep in discovered:
        try:
            resource_class = ep.load()
            registry.register_resource(resource_class)
        except Exception as e:
            logger.warning(f"Could not load resource type {ep.name}: {e}")

    return registry
