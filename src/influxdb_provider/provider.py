"""
InfluxDB provider - metadata, provider schema, and connection configuration.

The provider resolves connection settings once and hands the resulting
ProviderData to every resource it creates. The connection context is never
global; several providers with independent contexts can coexist. Only the
registry of resource classes is shared, and it holds no connection state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from influxdb_provider.client import InfluxDBClient
from influxdb_provider.config import ENV_TOKEN, ENV_URL, ProviderConfig
from influxdb_provider.context import ProviderData
from influxdb_provider.resources.base import PROVIDER_TYPE_NAME, Diagnostics, Resource
from influxdb_provider.resources.registry import (
    ResourceRegistry,
    get_registry,
    register_builtin_resources,
)
from influxdb_provider.schema import Attribute, Schema

logger = logging.getLogger(__name__)

MISSING_SETTING_DETAIL = (
    "The provider cannot create the InfluxDB client as there is a missing or "
    "empty value for the InfluxDB {label}. Set the {key} value in the "
    "configuration or use the {env} environment variable. If either is "
    "already set, ensure the value is not empty."
)


@dataclass
class ConfigureResponse:
    """Result of configuring the provider."""

    provider_data: Optional[ProviderData] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class InfluxDBProvider:
    """Provider for InfluxDB v2 management resources."""

    def __init__(
        self, version: str = "dev", registry: Optional[ResourceRegistry] = None
    ):
        self.version = version
        self.registry = registry if registry is not None else get_registry()
        if not self.registry.list_resource_types():
            register_builtin_resources(self.registry)

    def metadata(self) -> str:
        return PROVIDER_TYPE_NAME

    def schema(self) -> Schema:
        return Schema(
            description="Manage InfluxDB buckets, tasks, checks and notifications",
            attributes={
                "url": Attribute("string", "InfluxDB URL", optional=True),
                "token": Attribute(
                    "string", "InfluxDB Token", optional=True, sensitive=True
                ),
                "org": Attribute("string", "InfluxDB Organization", optional=True),
                "bucket": Attribute("string", "Default InfluxDB Bucket", optional=True),
            },
        )

    def configure(self, config: Optional[Dict[str, Any]] = None) -> ConfigureResponse:
        """
        Resolve connection settings and build the shared context.

        Declared values take precedence over the INFLUXDB_* environment
        variables. Missing URL and token are both reported, and no client
        is built when either is missing.
        """
        response = ConfigureResponse()
        settings = ProviderConfig.resolve(config)

        missing = settings.validate()
        if "url" in missing:
            response.diagnostics.add_error(
                "Missing InfluxDB URL",
                MISSING_SETTING_DETAIL.format(label="URL", key="url", env=ENV_URL),
            )
        if "token" in missing:
            response.diagnostics.add_error(
                "Missing InfluxDB Token",
                MISSING_SETTING_DETAIL.format(
                    label="Token", key="token", env=ENV_TOKEN
                ),
            )
        if response.diagnostics.has_error():
            return response

        client = InfluxDBClient(settings.url, settings.token)
        response.provider_data = ProviderData(
            client=client,
            org=settings.org,
            bucket=settings.bucket,
            url=settings.url,
            token=settings.token,
        )
        logger.info(f"Configured InfluxDB provider for {settings.url}")
        return response

    def resources(self) -> List[Type[Resource]]:
        return self.registry.resource_classes()

    def new_resource(
        self, type_name: str, provider_data: Optional[ProviderData] = None
    ) -> Resource:
        """
        Instantiate a registered resource type by name and configure it.

        Raises:
            ValueError: If no resource type has that name
        """
        resource = self.registry.get_resource(type_name)
        resource.configure(provider_data)
        return resource
