"""
Configuration module for the InfluxDB provider.

Connection settings are declared in provider configuration and fall back to
environment variables. Declared values always take precedence.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

ENV_URL = "INFLUXDB_URL"
ENV_TOKEN = "INFLUXDB_TOKEN"
ENV_ORG = "INFLUXDB_ORG"
ENV_BUCKET = "INFLUXDB_BUCKET"

DEFAULT_STATE_FILE = "influxctl.state.json"


@dataclass
class ProviderConfig:
    """InfluxDB connection settings."""

    url: str = ""
    token: str = field(default="", repr=False)  # Never log token
    org: str = ""
    bucket: str = ""

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            url=os.getenv(ENV_URL, ""),
            token=os.getenv(ENV_TOKEN, ""),
            org=os.getenv(ENV_ORG, ""),
            bucket=os.getenv(ENV_BUCKET, ""),
        )

    @classmethod
    def resolve(cls, declared: Optional[Dict[str, Any]] = None):
        """
        Resolve settings from declared configuration with environment fallback.

        A declared value that is not None overrides the environment, even
        when it is an empty string.

        Args:
            declared: Provider configuration block (url, token, org, bucket)

        Returns:
            The resolved ProviderConfig
        """
        resolved = cls.from_env()
        overrides = {
            key: str(value)
            for key, value in (declared or {}).items()
            if key in ("url", "token", "org", "bucket") and value is not None
        }
        return replace(resolved, **overrides)

    def validate(self) -> List[str]:
        """Return the names of required settings that resolved to empty."""
        missing = []
        if not self.url:
            missing.append("url")
        if not self.token:
            missing.append("token")
        return missing


@dataclass
class CLIConfig:
    """Developer CLI configuration."""

    state_file: str = DEFAULT_STATE_FILE
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            state_file=os.getenv("INFLUXCTL_STATE_FILE", DEFAULT_STATE_FILE),
            log_level=os.getenv("LOG_LEVEL", "WARNING"),
        )
