"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from influxdb_provider.context import ProviderData
from influxdb_provider.models import Organization, User

ORG_ID = "0123456789abcdef"
USER_ID = "fedcba9876543210"


@pytest.fixture
def mock_client():
    """Create a mock InfluxDBClient with async sub-APIs."""
    client = MagicMock()
    client.request = AsyncMock()

    org = Organization(id=ORG_ID, name="org1")
    client.organizations.resolve = AsyncMock(return_value=org)
    client.organizations.find_by_id = AsyncMock(return_value=org)
    client.organizations.find_by_name = AsyncMock(return_value=org)

    client.users.me = AsyncMock(return_value=User(id=USER_ID, name="admin"))

    for api in (client.buckets, client.tasks):
        api.create = AsyncMock()
        api.update = AsyncMock()
        api.delete = AsyncMock()
    client.buckets.find_by_id = AsyncMock()
    client.tasks.get_by_id = AsyncMock()
    return client


@pytest.fixture
def provider_data(mock_client):
    """Connection context wrapping the mock client."""
    return ProviderData(
        client=mock_client,
        org="org1",
        bucket="default",
        url="http://localhost:8086",
        token="test-token",
    )


@pytest.fixture
def configured(provider_data):
    """Factory configuring a resource instance with the mock context."""

    def _configure(resource):
        diagnostics = resource.configure(provider_data)
        assert not diagnostics.has_error()
        return resource

    return _configure
