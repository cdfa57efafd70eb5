"""
Task resource - scheduled Flux tasks.

A task runs either on a fixed interval (``every``) or on a cron schedule
(``cron``), never both. InfluxDB keeps the schedule as an ``option task``
preamble inside the stored query; state only ever holds the body after that
preamble, and updates splice the new body behind the preamble the server
already has.
"""

import logging
import re
from typing import Any, Optional

from influxdb_provider.errors import ValidationError
from influxdb_provider.flux import (
    flux_equivalent,
    splice_option_task,
    strip_option_task,
)
from influxdb_provider.models import Task
from influxdb_provider.resources.base import Diagnostics, Resource, ResourceModel
from influxdb_provider.schema import (
    Attribute,
    PlanModifier,
    Schema,
    UseStateForUnknown,
)
from influxdb_provider.validation import validate_scheduling

logger = logging.getLogger(__name__)

DEFAULT_TASK_STATUS = "active"

FRACTIONAL_SECONDS = re.compile(r"(T\d{2}:\d{2}:\d{2})\.\d+")


class FluxNormalizationModifier(PlanModifier):
    """Keep the stored query when the configured one differs only in whitespace."""

    description = "Normalizes flux whitespace for comparison"

    def modify(self, config_value: Any, state_value: Any, planned_value: Any) -> Any:
        if config_value is None or state_value is None:
            return planned_value
        if flux_equivalent(config_value, state_value):
            return state_value
        return planned_value


def format_timestamp(value: Optional[str]) -> Optional[str]:
    """Render an API timestamp as RFC 3339 with whole seconds."""
    if not value:
        return None
    return FRACTIONAL_SECONDS.sub(r"\1", value)


class TaskModel(ResourceModel):
    name: Optional[str] = None
    org: Optional[str] = None
    description: Optional[str] = None
    flux: Optional[str] = None
    status: Optional[str] = None
    every: Optional[str] = None
    cron: Optional[str] = None
    offset: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TaskResource(Resource):
    """InfluxDB task resource."""

    type_suffix = "task"
    display_name = "task"
    model = TaskModel

    def schema(self) -> Schema:
        return Schema(
            description="InfluxDB task resource",
            attributes={
                "id": Attribute(
                    "string",
                    "Task ID",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "name": Attribute("string", "Task name", required=True),
                "org": Attribute(
                    "string",
                    "Organization name or ID. If not provided, uses the provider default.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "description": Attribute("string", "Task description", optional=True),
                "flux": Attribute(
                    "string",
                    "Flux script to execute",
                    required=True,
                    plan_modifiers=[FluxNormalizationModifier()],
                ),
                "status": Attribute(
                    "string",
                    "Task status (active or inactive). Defaults to active.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "every": Attribute(
                    "string",
                    "Duration-based schedule (e.g., '1h', '30m'). "
                    "Either 'every' or 'cron' must be specified.",
                    optional=True,
                ),
                "cron": Attribute(
                    "string",
                    "Cron-based schedule (e.g., '0 */1 * * *'). "
                    "Either 'every' or 'cron' must be specified.",
                    optional=True,
                ),
                "offset": Attribute(
                    "string", "Optional time offset for scheduling", optional=True
                ),
                "created_at": Attribute(
                    "string",
                    "Task creation timestamp",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "updated_at": Attribute(
                    "string",
                    "Task last update timestamp",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
            },
        )

    def validate(self, data: TaskModel) -> None:
        is_valid, error = validate_scheduling(data.every, data.cron)
        if not is_valid:
            raise ValidationError(error)

    async def _create(self, data: TaskModel, diagnostics: Diagnostics) -> TaskModel:
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)

        task = Task(
            name=data.name,
            org_id=org.id,
            flux=strip_option_task(data.flux),
            description=data.description,
            status=data.status or DEFAULT_TASK_STATUS,
            every=data.every or None,
            cron=data.cron or None,
            offset=data.offset or None,
        )
        created = await self.client.tasks.create(task)

        created_at = format_timestamp(created.created_at)
        return TaskModel(
            id=created.id,
            name=created.name or data.name,
            # Keep the org reference as given to avoid a spurious diff
            org=org_name,
            description=(
                created.description
                if created.description is not None
                else data.description
            ),
            flux=task.flux,
            status=created.status or DEFAULT_TASK_STATUS,
            every=created.every or task.every,
            cron=created.cron or task.cron,
            offset=created.offset or task.offset,
            created_at=created_at,
            updated_at=format_timestamp(created.updated_at) or created_at,
        )

    async def _read(self, data: TaskModel, diagnostics: Diagnostics) -> TaskModel:
        task = await self.client.tasks.get_by_id(data.id)

        # id, org, created_at and updated_at stay as stored: they only change
        # through this provider's own Create/Update calls
        return data.model_copy(
            update={
                "name": task.name,
                "description": task.description,
                "flux": strip_option_task(task.flux),
                "status": task.status or DEFAULT_TASK_STATUS,
                "every": task.every,
                "cron": task.cron,
                "offset": task.offset,
            }
        )

    async def _update(
        self, data: TaskModel, prior: TaskModel, diagnostics: Diagnostics
    ) -> TaskModel:
        current = await self.client.tasks.get_by_id(data.id)

        task = Task(
            id=data.id,
            org_id=current.org_id,
            name=data.name,
            flux=splice_option_task(current.flux, data.flux),
            description=data.description,
            status=data.status,
            every=data.every or None,
            cron=data.cron or None,
            offset=data.offset or None,
            created_at=current.created_at,
            updated_at=current.updated_at,
        )
        updated = await self.client.tasks.update(task)

        result = data.model_copy(
            update={
                "id": prior.id,
                "org": prior.org,
                "flux": strip_option_task(data.flux),
                "created_at": prior.created_at,
            }
        )
        if updated.updated_at:
            result.updated_at = format_timestamp(updated.updated_at)
        return result

    async def _delete(self, data: TaskModel, diagnostics: Diagnostics) -> None:
        await self.client.tasks.delete(data.id)
