"""
InfluxDB provider.

Declarative management of InfluxDB v2 buckets, tasks, checks, notification
endpoints and notification rules.
"""

from influxdb_provider.client import InfluxDBClient
from influxdb_provider.config import CLIConfig, ProviderConfig
from influxdb_provider.context import ProviderData
from influxdb_provider.provider import ConfigureResponse, InfluxDBProvider

__version__ = "0.1.0"

__all__ = [
    "InfluxDBClient",
    "CLIConfig",
    "ProviderConfig",
    "ProviderData",
    "ConfigureResponse",
    "InfluxDBProvider",
]
