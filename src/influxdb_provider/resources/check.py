"""
Check resource - threshold and deadman monitoring checks.

Checks are managed over raw REST calls to ``/api/v2/checks``. Update
resubmits the whole desired check by ID instead of patching individual
fields, so omitting an optional field clears it remotely.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from influxdb_provider.client import parse_model
from influxdb_provider.models import APIModel
from influxdb_provider.resources.base import Diagnostics, Resource, ResourceModel
from influxdb_provider.schema import Attribute, Schema, UseStateForUnknown

logger = logging.getLogger(__name__)

CHECKS_ENDPOINT = "/api/v2/checks"

DEFAULT_CHECK_STATUS = "active"
DEFAULT_CHECK_OFFSET = "0s"


class CheckQuery(APIModel):
    text: str = ""


class CheckThreshold(APIModel):
    type: str
    value: float = 0.0
    level: str
    all_values: Optional[bool] = Field(None, alias="allValues")


class CheckAPI(APIModel):
    """Check document as exchanged with the API."""

    id: Optional[str] = None
    name: str
    org_id: Optional[str] = Field(None, alias="orgID")
    description: Optional[str] = None
    query: CheckQuery = Field(default_factory=CheckQuery)
    status: Optional[str] = None
    every: Optional[str] = None
    offset: Optional[str] = None
    status_message_template: Optional[str] = Field(
        None, alias="statusMessageTemplate"
    )
    thresholds: List[CheckThreshold] = Field(default_factory=list)
    type: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")


class ThresholdModel(BaseModel):
    type: str
    value: float
    level: str
    all_values: Optional[bool] = None


class CheckModel(ResourceModel):
    name: Optional[str] = None
    org: Optional[str] = None
    description: Optional[str] = None
    query: Optional[str] = None
    status: Optional[str] = None
    every: Optional[str] = None
    offset: Optional[str] = None
    status_message_template: Optional[str] = None
    type: Optional[str] = None
    thresholds: Optional[List[ThresholdModel]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CheckResource(Resource):
    """InfluxDB check resource for monitoring and alerting."""

    type_suffix = "check"
    display_name = "check"
    model = CheckModel

    def schema(self) -> Schema:
        return Schema(
            description="InfluxDB check resource for monitoring and alerting",
            attributes={
                "id": Attribute(
                    "string",
                    "Check ID",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "name": Attribute("string", "Check name", required=True),
                "org": Attribute(
                    "string",
                    "Organization name or ID. If not provided, uses the provider default.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "description": Attribute("string", "Check description", optional=True),
                "query": Attribute(
                    "string", "Flux query to execute for the check", required=True
                ),
                "status": Attribute(
                    "string",
                    "Check status (active or inactive). Defaults to active.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "every": Attribute(
                    "string",
                    "Duration between check executions (e.g., '1m', '5m', '1h')",
                    required=True,
                ),
                "offset": Attribute(
                    "string",
                    "Optional offset for check execution timing. Defaults to '0s'.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "status_message_template": Attribute(
                    "string", "Template for status messages", optional=True
                ),
                "type": Attribute(
                    "string", "Check type ('threshold' or 'deadman').", required=True
                ),
                "thresholds": Attribute(
                    "list",
                    "Threshold definitions for the check",
                    optional=True,
                    nested={
                        "type": Attribute(
                            "string",
                            "Threshold comparison type (greater, lesser, equal, etc.)",
                            required=True,
                        ),
                        "value": Attribute(
                            "number", "Threshold value to compare against", required=True
                        ),
                        "level": Attribute(
                            "string", "Alert level (CRIT, WARN, INFO, OK)", required=True
                        ),
                        "all_values": Attribute(
                            "boolean",
                            "Whether to apply threshold to all values. Defaults to false.",
                            optional=True,
                            computed=True,
                            default=False,
                        ),
                    },
                ),
                "created_at": Attribute(
                    "string",
                    "Check creation timestamp",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "updated_at": Attribute(
                    "string",
                    "Check last update timestamp",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
            },
        )

    def _build_payload(
        self, data: CheckModel, org_id: str, apply_defaults: bool
    ) -> CheckAPI:
        """Assemble the full check document from desired state."""
        status = data.status
        offset = data.offset
        if apply_defaults:
            status = status or DEFAULT_CHECK_STATUS
            offset = offset or DEFAULT_CHECK_OFFSET

        return CheckAPI(
            id=data.id,
            name=data.name,
            org_id=org_id,
            description=data.description,
            query=CheckQuery(text=data.query or ""),
            status=status,
            every=data.every,
            offset=offset,
            status_message_template=data.status_message_template,
            type=data.type,
            thresholds=[
                CheckThreshold(
                    type=threshold.type,
                    value=threshold.value,
                    level=threshold.level,
                    all_values=bool(threshold.all_values),
                )
                for threshold in data.thresholds or []
            ],
        )

    @staticmethod
    def _to_model(check: CheckAPI, org: Optional[str]) -> CheckModel:
        return CheckModel(
            id=check.id,
            name=check.name,
            org=org,
            description=check.description,
            query=check.query.text,
            status=check.status,
            every=check.every,
            offset=check.offset,
            status_message_template=check.status_message_template,
            type=check.type,
            thresholds=[
                ThresholdModel(
                    type=threshold.type,
                    value=threshold.value,
                    level=threshold.level,
                    all_values=bool(threshold.all_values),
                )
                for threshold in check.thresholds
            ],
            created_at=check.created_at,
            updated_at=check.updated_at,
        )

    async def _create(self, data: CheckModel, diagnostics: Diagnostics) -> CheckModel:
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)

        payload = self._build_payload(data, org.id, apply_defaults=True).to_request()
        logger.debug(f"Sending check payload: {payload}")

        body = await self.client.request("POST", CHECKS_ENDPOINT, body=payload)
        created = parse_model(CheckAPI, body)

        # Keep the org reference as given to avoid a spurious diff
        return self._to_model(created, org_name)

    async def _read(self, data: CheckModel, diagnostics: Diagnostics) -> CheckModel:
        body = await self.client.request("GET", f"{CHECKS_ENDPOINT}/{data.id}")
        check = parse_model(CheckAPI, body)

        org = data.org
        if check.org_id:
            org = await self.org_display_name(check.org_id)
        return self._to_model(check, org)

    async def _update(
        self, data: CheckModel, prior: CheckModel, diagnostics: Diagnostics
    ) -> CheckModel:
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)

        payload = self._build_payload(data, org.id, apply_defaults=False).to_request()
        logger.debug(f"Sending check payload: {payload}")

        body = await self.client.request(
            "PATCH", f"{CHECKS_ENDPOINT}/{data.id}", body=payload
        )
        updated = parse_model(CheckAPI, body)
        return self._to_model(updated, org_name)

    async def _delete(self, data: CheckModel, diagnostics: Diagnostics) -> None:
        await self.client.request("DELETE", f"{CHECKS_ENDPOINT}/{data.id}")
