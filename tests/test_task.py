"""Unit tests for the task resource."""

import pytest

from influxdb_provider.errors import ValidationError
from influxdb_provider.models import Task
from influxdb_provider.resources.task import TaskModel, TaskResource, format_timestamp

ORG_ID = "0123456789abcdef"

PREAMBLE = 'option task = {name: "cpu", every: 1h}'
BODY = 'from(bucket: "b")\n  |> range(start: -1h)'


@pytest.fixture
def stored_state():
    return {
        "id": "t-1",
        "name": "cpu",
        "org": "org1",
        "description": None,
        "flux": BODY,
        "status": "active",
        "every": "1h",
        "cron": None,
        "offset": None,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }


class TestFormatTimestamp:
    def test_strips_fractional_seconds(self):
        assert format_timestamp("2024-01-01T12:30:45.123456Z") == "2024-01-01T12:30:45Z"

    def test_whole_seconds_unchanged(self):
        assert format_timestamp("2024-01-01T12:30:45Z") == "2024-01-01T12:30:45Z"

    def test_empty(self):
        assert format_timestamp(None) is None
        assert format_timestamp("") is None


@pytest.mark.asyncio
class TestTaskValidation:
    async def test_both_schedules_rejected(self, configured, mock_client):
        resource = configured(TaskResource())
        response = await resource.create(
            {"name": "cpu", "flux": BODY, "every": "1h", "cron": "0 * * * *"}
        )
        assert response.success is False
        assert response.diagnostics[0].summary == "Validation Error"
        assert "Cannot specify both" in response.diagnostics[0].detail
        mock_client.organizations.resolve.assert_not_called()
        mock_client.tasks.create.assert_not_called()

    async def test_no_schedule_rejected(self, configured, mock_client):
        resource = configured(TaskResource())
        response = await resource.create({"name": "cpu", "flux": BODY})
        assert response.success is False
        assert "Either 'every' or 'cron'" in response.diagnostics[0].detail
        mock_client.tasks.create.assert_not_called()

    async def test_update_validates_schedule(self, configured, mock_client, stored_state):
        resource = configured(TaskResource())
        plan = dict(stored_state, cron="0 * * * *")
        response = await resource.update(plan, stored_state)
        assert response.success is False
        mock_client.tasks.get_by_id.assert_not_called()
        mock_client.tasks.update.assert_not_called()

    async def test_validate_raises_on_both_schedules(self):
        with pytest.raises(ValidationError, match="Cannot specify both") as excinfo:
            TaskResource().validate(TaskModel(every="1h", cron="0 * * * *"))
        assert excinfo.value.summary == "Validation Error"

    async def test_flux_required(self, configured):
        resource = configured(TaskResource())
        response = await resource.create({"name": "cpu", "every": "1h"})
        assert response.diagnostics[0].summary == "Create - Validation Error"


@pytest.mark.asyncio
class TestTaskCreate:
    async def test_create(self, configured, mock_client):
        mock_client.tasks.create.return_value = Task(
            id="t-1",
            org_id=ORG_ID,
            name="cpu",
            flux=f"{PREAMBLE}\n\n{BODY}",
            status="active",
            every="1h",
            created_at="2024-01-01T00:00:00.123Z",
        )
        resource = configured(TaskResource())

        response = await resource.create({"name": "cpu", "flux": BODY, "every": "1h"})

        assert response.success
        state = response.state
        assert state["id"] == "t-1"
        assert state["org"] == "org1"
        assert state["flux"] == BODY
        assert state["status"] == "active"
        assert state["every"] == "1h"
        assert state["cron"] is None
        assert state["created_at"] == "2024-01-01T00:00:00Z"
        # Falls back to created_at when the server reports no update time
        assert state["updated_at"] == "2024-01-01T00:00:00Z"

        sent = mock_client.tasks.create.call_args.args[0]
        assert sent.org_id == ORG_ID
        assert sent.status == "active"
        assert sent.flux == BODY

    async def test_create_strips_declared_preamble(self, configured, mock_client):
        mock_client.tasks.create.return_value = Task(id="t-1", name="cpu")
        resource = configured(TaskResource())

        response = await resource.create(
            {"name": "cpu", "flux": f"{PREAMBLE}\n{BODY}", "cron": "0 * * * *"}
        )

        sent = mock_client.tasks.create.call_args.args[0]
        assert sent.flux == BODY
        assert sent.cron == "0 * * * *"
        assert sent.every is None
        assert response.state["flux"] == BODY

    async def test_create_inactive(self, configured, mock_client):
        mock_client.tasks.create.return_value = Task(
            id="t-1", name="cpu", status="inactive"
        )
        resource = configured(TaskResource())

        response = await resource.create(
            {"name": "cpu", "flux": BODY, "every": "1h", "status": "inactive"}
        )

        assert mock_client.tasks.create.call_args.args[0].status == "inactive"
        assert response.state["status"] == "inactive"


@pytest.mark.asyncio
class TestTaskRead:
    async def test_read_strips_preamble(self, configured, mock_client, stored_state):
        mock_client.tasks.get_by_id.return_value = Task(
            id="t-1",
            org_id=ORG_ID,
            name="cpu",
            flux=f"{PREAMBLE}\n\n{BODY}\n",
            status="active",
            every="1h",
            created_at="2024-06-01T00:00:00Z",
            updated_at="2024-06-02T00:00:00Z",
        )
        resource = configured(TaskResource())

        response = await resource.read(stored_state)

        assert response.state["flux"] == BODY

    async def test_read_keeps_timestamps(self, configured, mock_client, stored_state):
        mock_client.tasks.get_by_id.return_value = Task(
            id="t-1",
            name="cpu",
            flux=BODY,
            every="1h",
            created_at="2024-06-01T00:00:00Z",
            updated_at="2024-06-02T00:00:00Z",
        )
        resource = configured(TaskResource())

        response = await resource.read(stored_state)

        assert response.state["created_at"] == "2024-01-01T00:00:00Z"
        assert response.state["updated_at"] == "2024-01-01T00:00:00Z"
        assert response.state["org"] == "org1"

    async def test_read_refreshes_remote_fields(
        self, configured, mock_client, stored_state
    ):
        mock_client.tasks.get_by_id.return_value = Task(
            id="t-1",
            name="cpu-renamed",
            flux=BODY,
            status="inactive",
            cron="0 * * * *",
            description="edited in UI",
        )
        resource = configured(TaskResource())

        response = await resource.read(stored_state)

        assert response.state["name"] == "cpu-renamed"
        assert response.state["status"] == "inactive"
        assert response.state["every"] is None
        assert response.state["cron"] == "0 * * * *"
        assert response.state["description"] == "edited in UI"

    async def test_read_missing_status_defaults_active(
        self, configured, mock_client, stored_state
    ):
        mock_client.tasks.get_by_id.return_value = Task(
            id="t-1", name="cpu", flux=BODY, every="1h"
        )
        resource = configured(TaskResource())
        response = await resource.read(stored_state)
        assert response.state["status"] == "active"


@pytest.mark.asyncio
class TestTaskUpdate:
    async def test_update_splices_preamble(self, configured, mock_client, stored_state):
        mock_client.tasks.get_by_id.return_value = Task(
            id="t-1",
            org_id=ORG_ID,
            name="cpu",
            flux=f"{PREAMBLE}\n\n{BODY}",
            every="1h",
        )
        mock_client.tasks.update.return_value = Task(
            id="t-1", name="cpu", updated_at="2024-02-01T10:00:00.987654Z"
        )
        resource = configured(TaskResource())
        new_body = 'from(bucket: "c")\n  |> range(start: -5m)'
        plan = resource.plan(
            {"name": "cpu", "flux": new_body, "every": "1h"}, stored_state
        )

        response = await resource.update(plan, stored_state)

        assert response.success
        sent = mock_client.tasks.update.call_args.args[0]
        assert sent.id == "t-1"
        assert sent.flux == f"{PREAMBLE} {new_body}"
        assert sent.every == "1h"
        assert sent.cron is None
        assert sent.status == "active"

        state = response.state
        assert state["flux"] == new_body
        assert state["created_at"] == "2024-01-01T00:00:00Z"
        assert state["updated_at"] == "2024-02-01T10:00:00Z"
        assert state["org"] == "org1"

    async def test_update_stores_body_without_declared_preamble(
        self, configured, mock_client, stored_state
    ):
        mock_client.tasks.get_by_id.return_value = Task(
            id="t-1", org_id=ORG_ID, name="cpu", flux=f"{PREAMBLE}\n\n{BODY}"
        )
        mock_client.tasks.update.return_value = Task(id="t-1", name="cpu")
        resource = configured(TaskResource())
        new_body = 'from(bucket: "c")\n  |> range(start: -5m)'
        plan = resource.plan(
            {"name": "cpu", "flux": f"{PREAMBLE}\n{new_body}", "every": "1h"},
            stored_state,
        )

        response = await resource.update(plan, stored_state)

        assert mock_client.tasks.update.call_args.args[0].flux == (
            f"{PREAMBLE} {new_body}"
        )
        assert response.state["flux"] == new_body

    async def test_update_without_server_timestamp(
        self, configured, mock_client, stored_state
    ):
        mock_client.tasks.get_by_id.return_value = Task(id="t-1", flux=BODY)
        mock_client.tasks.update.return_value = Task(id="t-1")
        resource = configured(TaskResource())
        plan = resource.plan(
            {"name": "cpu", "flux": BODY, "every": "2h"}, stored_state
        )

        response = await resource.update(plan, stored_state)

        assert response.state["updated_at"] == "2024-01-01T00:00:00Z"
        assert response.state["every"] == "2h"
        assert mock_client.tasks.update.call_args.args[0].flux == BODY

    async def test_update_switches_to_cron(self, configured, mock_client, stored_state):
        mock_client.tasks.get_by_id.return_value = Task(id="t-1", flux=BODY)
        mock_client.tasks.update.return_value = Task(id="t-1")
        resource = configured(TaskResource())
        plan = resource.plan(
            {"name": "cpu", "flux": BODY, "cron": "*/5 * * * *"}, stored_state
        )

        response = await resource.update(plan, stored_state)

        sent = mock_client.tasks.update.call_args.args[0]
        assert sent.cron == "*/5 * * * *"
        assert sent.every is None
        assert response.state["every"] is None

    async def test_update_not_found(self, configured, mock_client, stored_state):
        from influxdb_provider.errors import NotFoundError

        mock_client.tasks.get_by_id.side_effect = NotFoundError()
        resource = configured(TaskResource())

        response = await resource.update(stored_state, stored_state)

        assert response.success is False
        assert response.diagnostics[0].summary == "Update - API Error"


@pytest.mark.asyncio
class TestTaskDelete:
    async def test_delete(self, configured, mock_client, stored_state):
        resource = configured(TaskResource())
        response = await resource.delete(stored_state)
        assert response.success
        mock_client.tasks.delete.assert_awaited_once_with("t-1")
