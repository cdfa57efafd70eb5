"""
Connection context shared by every resource.

Built once when the provider is configured and lent read-only to each
resource for the duration of a lifecycle call.
"""

from dataclasses import dataclass, field

from influxdb_provider.client import InfluxDBClient


@dataclass(frozen=True)
class ProviderData:
    """Resolved connection settings plus the client built from them."""

    client: InfluxDBClient
    org: str = ""
    bucket: str = ""
    url: str = ""
    token: str = field(default="", repr=False)  # Never log token
