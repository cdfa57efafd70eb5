"""
Resource types for the InfluxDB provider.

Each resource reconciles one kind of InfluxDB object (bucket, task, check,
notification endpoint, notification rule) against its declared state.
"""

from influxdb_provider.resources.base import (
    Diagnostic,
    Diagnostics,
    Resource,
    ResourceModel,
    ResourceResponse,
    Severity,
)
from influxdb_provider.resources.bucket import BucketResource
from influxdb_provider.resources.check import CheckResource
from influxdb_provider.resources.notification_endpoint import (
    NotificationEndpointResource,
)
from influxdb_provider.resources.notification_rule import NotificationRuleResource
from influxdb_provider.resources.registry import ResourceRegistry, get_registry
from influxdb_provider.resources.task import TaskResource

__all__ = [
    "Diagnostic",
    "Diagnostics",
    "Resource",
    "ResourceModel",
    "ResourceResponse",
    "Severity",
    "BucketResource",
    "CheckResource",
    "NotificationEndpointResource",
    "NotificationRuleResource",
    "TaskResource",
    "ResourceRegistry",
    "get_registry",
]
