"""
Notification rule resource - routes check statuses to an endpoint.

The API requires an owner for every rule; it is resolved on each Create and
Update as the currently authenticated user rather than taken from
configuration. Update is a full replace (HTTP PUT) of the rule.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from influxdb_provider.client import parse_model
from influxdb_provider.models import APIModel
from influxdb_provider.resources.base import Diagnostics, Resource, ResourceModel
from influxdb_provider.schema import Attribute, Schema, UseStateForUnknown

logger = logging.getLogger(__name__)

RULES_ENDPOINT = "/api/v2/notificationRules"


class StatusRule(APIModel):
    current_level: str = Field(alias="currentLevel")
    previous_level: Optional[str] = Field(None, alias="previousLevel")


class TagRule(APIModel):
    key: str
    value: str
    operator: str


class NotificationRuleRequest(APIModel):
    """Body for create (POST) and full replace (PUT, with id)."""

    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: str
    type: str
    endpoint_id: str = Field(alias="endpointID")
    owner_id: str = Field(alias="ownerID")
    every: str
    offset: Optional[str] = None
    message_template: Optional[str] = Field(None, alias="messageTemplate")
    status_rules: List[StatusRule] = Field(default_factory=list, alias="statusRules")
    tag_rules: Optional[List[TagRule]] = Field(None, alias="tagRules")
    org_id: str = Field(alias="orgID")


class NotificationRuleResponse(APIModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    status: str = ""
    type: str = ""
    endpoint_id: str = Field("", alias="endpointID")
    every: Optional[str] = None
    offset: Optional[str] = None
    message_template: Optional[str] = Field(None, alias="messageTemplate")
    status_rules: List[StatusRule] = Field(default_factory=list, alias="statusRules")
    tag_rules: List[TagRule] = Field(default_factory=list, alias="tagRules")
    org_id: Optional[str] = Field(None, alias="orgID")


class StatusRuleModel(BaseModel):
    current_level: str
    previous_level: Optional[str] = None


class TagRuleModel(BaseModel):
    key: str
    value: str
    operator: str


class NotificationRuleModel(ResourceModel):
    name: Optional[str] = None
    org: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    endpoint_id: Optional[str] = None
    every: Optional[str] = None
    offset: Optional[str] = None
    message_template: Optional[str] = None
    status_rules: Optional[List[StatusRuleModel]] = None
    tag_rules: Optional[List[TagRuleModel]] = None


class NotificationRuleResource(Resource):
    """InfluxDB notification rule resource."""

    type_suffix = "notification_rule"
    display_name = "notification rule"
    model = NotificationRuleModel

    def schema(self) -> Schema:
        return Schema(
            description="InfluxDB notification rule resource",
            attributes={
                "id": Attribute(
                    "string",
                    "Notification rule ID",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "name": Attribute("string", "Notification rule name", required=True),
                "org": Attribute(
                    "string",
                    "Organization name or ID. If not provided, uses the provider default.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "description": Attribute(
                    "string", "Notification rule description", optional=True
                ),
                "status": Attribute(
                    "string",
                    "Status of the notification rule (active, inactive)",
                    required=True,
                ),
                "type": Attribute(
                    "string",
                    "Type of the notification rule (http, slack, pagerduty)",
                    required=True,
                ),
                "endpoint_id": Attribute(
                    "string",
                    "ID of the notification endpoint to send notifications to",
                    required=True,
                ),
                "every": Attribute(
                    "string", "Check frequency (e.g., '1m', '5m')", required=True
                ),
                "offset": Attribute(
                    "string", "Offset duration before checking", required=True
                ),
                "message_template": Attribute(
                    "string", "Template for the notification message", optional=True
                ),
                "status_rules": Attribute(
                    "list",
                    "Rules based on check status levels",
                    optional=True,
                    nested={
                        "current_level": Attribute(
                            "string",
                            "Current status level (OK, INFO, WARN, CRIT)",
                            required=True,
                        ),
                        "previous_level": Attribute(
                            "string",
                            "Previous status level (OK, INFO, WARN, CRIT)",
                            optional=True,
                        ),
                    },
                ),
                "tag_rules": Attribute(
                    "list",
                    "Rules based on tag values",
                    optional=True,
                    nested={
                        "key": Attribute("string", "Tag key", required=True),
                        "value": Attribute("string", "Tag value", required=True),
                        "operator": Attribute(
                            "string",
                            "Operator for comparison "
                            "(equal, notEqual, equalRegex, notEqualRegex)",
                            required=True,
                        ),
                    },
                ),
            },
        )

    async def _resolve_ids(self, data: NotificationRuleModel):
        """Resolve the org reference and the owning (authenticated) user."""
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)
        owner = await self.client.users.me()
        return org_name, org.id, owner.id

    @staticmethod
    def _build_request(
        data: NotificationRuleModel, org_id: str, owner_id: str
    ) -> Dict[str, Any]:
        request = NotificationRuleRequest(
            id=data.id,
            name=data.name,
            description=data.description,
            status=data.status,
            type=data.type,
            endpoint_id=data.endpoint_id,
            owner_id=owner_id,
            every=data.every,
            offset=data.offset or "",
            message_template=data.message_template,
            status_rules=[
                StatusRule(
                    current_level=rule.current_level,
                    previous_level=rule.previous_level or None,
                )
                for rule in data.status_rules or []
            ],
            tag_rules=[
                TagRule(key=rule.key, value=rule.value, operator=rule.operator)
                for rule in data.tag_rules or []
            ]
            or None,
            org_id=org_id,
        )
        return request.to_request()

    async def _create(
        self, data: NotificationRuleModel, diagnostics: Diagnostics
    ) -> NotificationRuleModel:
        org_name, org_id, owner_id = await self._resolve_ids(data)

        body = await self.client.request(
            "POST",
            RULES_ENDPOINT,
            body=self._build_request(data, org_id, owner_id),
            expected_status=(201,),
        )
        rule = parse_model(NotificationRuleResponse, body)

        return data.model_copy(
            update={
                "id": rule.id,
                "org": org_name,
                "status": rule.status,
                "type": rule.type,
            }
        )

    async def _read(
        self, data: NotificationRuleModel, diagnostics: Diagnostics
    ) -> NotificationRuleModel:
        body = await self.client.request(
            "GET", f"{RULES_ENDPOINT}/{data.id}", expected_status=(200,)
        )
        rule = parse_model(NotificationRuleResponse, body)

        update: Dict[str, Any] = {
            "id": rule.id,
            "name": rule.name,
            "status": rule.status,
            "type": rule.type,
            "endpoint_id": rule.endpoint_id,
        }
        if rule.description is not None:
            update["description"] = rule.description
        if rule.every is not None:
            update["every"] = rule.every
        if rule.offset is not None:
            update["offset"] = rule.offset
        if rule.message_template is not None:
            update["message_template"] = rule.message_template
        if rule.status_rules:
            update["status_rules"] = [
                StatusRuleModel(
                    current_level=status_rule.current_level,
                    previous_level=status_rule.previous_level or None,
                )
                for status_rule in rule.status_rules
            ]
        if rule.tag_rules:
            update["tag_rules"] = [
                TagRuleModel(
                    key=tag_rule.key, value=tag_rule.value, operator=tag_rule.operator
                )
                for tag_rule in rule.tag_rules
            ]
        return data.model_copy(update=update)

    async def _update(
        self,
        data: NotificationRuleModel,
        prior: NotificationRuleModel,
        diagnostics: Diagnostics,
    ) -> NotificationRuleModel:
        org_name, org_id, owner_id = await self._resolve_ids(data)

        body = await self.client.request(
            "PUT",
            f"{RULES_ENDPOINT}/{data.id}",
            body=self._build_request(data, org_id, owner_id),
            expected_status=(200,),
        )
        rule = parse_model(NotificationRuleResponse, body)

        # Rule lists, offset and message template stay as declared
        update: Dict[str, Any] = {
            "name": rule.name,
            "status": rule.status,
            "type": rule.type,
            "org": org_name,
        }
        if rule.every is not None:
            update["every"] = rule.every
        return data.model_copy(update=update)

    async def _delete(
        self, data: NotificationRuleModel, diagnostics: Diagnostics
    ) -> None:
        await self.client.request(
            "DELETE", f"{RULES_ENDPOINT}/{data.id}", expected_status=(204,)
        )
