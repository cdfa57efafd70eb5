"""Unit tests for the generic resource lifecycle in resources/base.py."""

import pytest
from unittest.mock import AsyncMock

from influxdb_provider.errors import APIError, NotFoundError, TransportError
from influxdb_provider.resources.base import Diagnostics, Severity
from influxdb_provider.resources.bucket import BucketResource
from influxdb_provider.resources.check import CheckResource
from influxdb_provider.resources.task import TaskResource


class TestDiagnostics:
    def test_add_and_filter(self):
        diagnostics = Diagnostics()
        diagnostics.add_warning("W", "warn")
        assert diagnostics.has_error() is False
        diagnostics.add_error("E", "err")
        assert diagnostics.has_error() is True
        assert [d.summary for d in diagnostics.errors()] == ["E"]
        assert [d.summary for d in diagnostics.warnings()] == ["W"]
        assert diagnostics[0].severity == Severity.WARNING

    def test_str(self):
        diagnostics = Diagnostics()
        diagnostics.add_error("Create - API Error", "boom")
        assert str(diagnostics[0]) == "error: Create - API Error: boom"


class TestMetadataAndConfigure:
    def test_type_names(self):
        assert BucketResource().metadata() == "influxdb_bucket"
        assert TaskResource().type_name == "influxdb_task"
        assert BucketResource().metadata("influx") == "influx_bucket"

    def test_configure_none_is_noop(self):
        resource = BucketResource()
        diagnostics = resource.configure(None)
        assert len(diagnostics) == 0
        assert resource.configured is False

    def test_configure_wrong_type(self):
        resource = BucketResource()
        diagnostics = resource.configure({"url": "http://x"})
        assert diagnostics.has_error()
        assert diagnostics[0].summary == "Unexpected Resource Configure Type"
        assert "dict" in diagnostics[0].detail
        assert resource.configured is False

    def test_configure(self, provider_data):
        resource = BucketResource()
        assert len(resource.configure(provider_data)) == 0
        assert resource.configured is True
        assert resource.client is provider_data.client


@pytest.mark.asyncio
class TestUnconfigured:
    """An unconfigured resource refuses every operation without I/O."""

    async def test_create(self):
        response = await BucketResource().create({"name": "b1"})
        assert response.success is False
        assert response.state is None
        assert response.diagnostics[0].summary == "Create - Unconfigured Resource"

    async def test_read(self):
        response = await BucketResource().read({"id": "1"})
        assert response.diagnostics[0].summary == "Read - Unconfigured Resource"

    async def test_update_reports_once(self):
        response = await BucketResource().update({"name": "b1"}, {"id": "1"})
        assert len(response.diagnostics) == 1
        assert response.diagnostics[0].summary == "Update - Unconfigured Resource"

    async def test_delete(self):
        response = await BucketResource().delete({"id": "1"})
        assert response.diagnostics[0].summary == "Delete - Unconfigured Resource"


@pytest.mark.asyncio
class TestLifecycle:
    async def test_validation_error_makes_no_calls(self, configured, mock_client):
        resource = configured(BucketResource())
        response = await resource.create({"name": "b1", "retention_seconds": -1})
        assert response.success is False
        assert response.diagnostics[0].summary == "Create - Validation Error"
        mock_client.organizations.resolve.assert_not_called()
        mock_client.buckets.create.assert_not_called()

    async def test_unknown_attribute_rejected(self, configured, mock_client):
        resource = configured(BucketResource())
        response = await resource.create({"name": "b1", "colour": "red"})
        assert response.diagnostics[0].summary == "Create - Validation Error"
        assert "colour" in response.diagnostics[0].detail

    async def test_api_error_becomes_diagnostic(self, configured, mock_client):
        mock_client.buckets.create.side_effect = APIError(422, "bad bucket")
        resource = configured(BucketResource())
        response = await resource.create({"name": "b1"})
        assert response.state is None
        assert response.diagnostics[0].summary == "Create - API Error"
        assert response.diagnostics[0].detail == (
            "Unable to create bucket: InfluxDB API returned status 422: bad bucket"
        )

    async def test_transport_error_on_read(self, configured, mock_client):
        mock_client.buckets.find_by_id.side_effect = TransportError("refused")
        resource = configured(BucketResource())
        response = await resource.read({"id": "b-1", "name": "b1"})
        assert response.removed is False
        assert response.diagnostics[0].summary == "Read - HTTP Error"

    async def test_read_not_found_removes(self, configured, mock_client):
        mock_client.buckets.find_by_id.side_effect = NotFoundError()
        resource = configured(BucketResource())
        response = await resource.read({"id": "b-1", "name": "b1"})
        assert response.removed is True
        assert response.state is None
        assert response.success is True
        assert response.diagnostics[0].summary == "Read - Resource Not Found"

    async def test_delete_not_found_is_success(self, configured, mock_client):
        mock_client.buckets.delete.side_effect = NotFoundError()
        resource = configured(BucketResource())
        response = await resource.delete({"id": "b-1"})
        assert response.success is True
        assert len(response.diagnostics) == 0

    async def test_delete_error(self, configured, mock_client):
        mock_client.buckets.delete.side_effect = APIError(500, "oops")
        resource = configured(BucketResource())
        response = await resource.delete({"id": "b-1"})
        assert response.diagnostics[0].summary == "Delete - API Error"

    async def test_update_requires_prior_id(self, configured, mock_client):
        resource = configured(BucketResource())
        response = await resource.update({"name": "b1"}, {"name": "b1"})
        assert response.diagnostics[0].summary == "Update - Missing ID"
        mock_client.buckets.update.assert_not_called()

    async def test_org_lookup_error(self, configured, mock_client):
        from influxdb_provider.errors import OrganizationNotFoundError

        mock_client.organizations.resolve = AsyncMock(
            side_effect=OrganizationNotFoundError("nope")
        )
        resource = configured(BucketResource())
        response = await resource.create({"name": "b1", "org": "nope"})
        assert response.diagnostics[0].summary == "Create - Lookup Error"
        assert "Unable to find organization 'nope'" in response.diagnostics[0].detail


@pytest.mark.asyncio
class TestImport:
    async def test_import_seeds_id(self, configured):
        resource = configured(BucketResource())
        response = await resource.import_state("0a1b2c3d4e5f6a7b")
        assert response.success
        assert response.state["id"] == "0a1b2c3d4e5f6a7b"
        assert response.state["name"] is None

    async def test_import_requires_id(self, configured):
        resource = configured(BucketResource())
        response = await resource.import_state("")
        assert response.diagnostics[0].summary == "Import - Missing ID"


class TestPlan:
    def test_configured_values_win(self):
        resource = BucketResource()
        state = {"id": "b-1", "name": "old", "org": "org1", "retention_seconds": 60}
        planned = resource.plan({"name": "new"}, state)
        assert planned == {
            "id": "b-1",
            "name": "new",
            "org": "org1",
            "description": None,
            "retention_seconds": 60,
        }

    def test_computed_only_config_ignored(self):
        planned = BucketResource().plan({"name": "b", "id": "forced"}, None)
        assert planned["id"] is None

    def test_has_changes(self):
        resource = BucketResource()
        state = {
            "id": "b-1",
            "name": "b1",
            "org": "org1",
            "description": None,
            "retention_seconds": 0,
        }
        assert resource.has_changes(resource.plan({"name": "b1"}, state), state) is False
        assert resource.has_changes(resource.plan({"name": "b2"}, state), state) is True

    def test_nested_unset_fields_take_default(self):
        planned = CheckResource().plan(
            {
                "name": "c",
                "query": "q",
                "every": "1m",
                "type": "threshold",
                "thresholds": [
                    {"type": "greater", "value": 1, "level": "WARN"},
                    {"type": "greater", "value": 2, "level": "CRIT", "all_values": True},
                ],
            }
        )
        assert [t["all_values"] for t in planned["thresholds"]] == [False, True]

    def test_flux_whitespace_keeps_state(self):
        resource = TaskResource()
        state = {"id": "t-1", "name": "t", "flux": "a\n|> b", "every": "1h"}
        planned = resource.plan(
            {"name": "t", "flux": "  a\n\n  |> b\n", "every": "1h"}, state
        )
        assert planned["flux"] == "a\n|> b"
        assert resource.has_changes(planned, state) is False
