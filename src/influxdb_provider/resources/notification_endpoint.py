"""
Notification endpoint resource - HTTP, Slack and PagerDuty targets.

Create always registers the endpoint as active, POST, no auth; only Update
forwards a caller's status, method and auth method. Token, basic-auth
credentials, headers and description are accepted in configuration but not
transmitted; a warning names any such field that is set. Secrets are kept
as declared and never filled in from API responses.
"""

import logging
from typing import Dict, List, Optional

from pydantic import AliasChoices, Field

from influxdb_provider.client import parse_model
from influxdb_provider.models import APIModel
from influxdb_provider.resources.base import Diagnostics, Resource, ResourceModel
from influxdb_provider.schema import Attribute, Schema, UseStateForUnknown

logger = logging.getLogger(__name__)

ENDPOINTS_ENDPOINT = "/api/v2/notificationEndpoints"

DEFAULT_ENDPOINT_STATUS = "active"
DEFAULT_ENDPOINT_METHOD = "POST"
DEFAULT_ENDPOINT_AUTH_METHOD = "none"

UNTRANSMITTED_FIELDS = ("description", "token", "username", "password", "headers")
CREATE_ONLY_DEFAULTS = {
    "status": DEFAULT_ENDPOINT_STATUS,
    "method": DEFAULT_ENDPOINT_METHOD,
    "auth_method": DEFAULT_ENDPOINT_AUTH_METHOD,
}


class NotificationEndpointRequest(APIModel):
    name: str
    type: str
    url: str
    status: str
    method: str
    auth_method: str = Field(alias="authMethod")
    org_id: str = Field(alias="orgID")


class NotificationEndpointResponse(APIModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    status: str = ""
    type: str = ""
    url: str = ""
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    method: str = ""
    auth_method: str = Field(
        "", validation_alias=AliasChoices("authMethod", "auth_method")
    )
    headers: Optional[Dict[str, str]] = None
    org_id: Optional[str] = Field(None, alias="orgID")


class NotificationEndpointModel(ResourceModel):
    name: Optional[str] = None
    org: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    url: Optional[str] = None
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    method: Optional[str] = None
    auth_method: Optional[str] = None
    headers: Optional[Dict[str, str]] = None


class NotificationEndpointResource(Resource):
    """InfluxDB notification endpoint resource."""

    type_suffix = "notification_endpoint"
    display_name = "notification endpoint"
    model = NotificationEndpointModel

    def schema(self) -> Schema:
        return Schema(
            description="InfluxDB notification endpoint resource",
            attributes={
                "id": Attribute(
                    "string",
                    "Notification endpoint ID",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "name": Attribute(
                    "string", "Notification endpoint name", required=True
                ),
                "org": Attribute(
                    "string",
                    "Organization name or ID. If not provided, uses the provider default.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "description": Attribute(
                    "string", "Notification endpoint description", optional=True
                ),
                "status": Attribute(
                    "string",
                    "Status of the notification endpoint (active, inactive)",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "type": Attribute(
                    "string",
                    "Type of notification endpoint (http, slack, pagerduty, etc.)",
                    required=True,
                ),
                "url": Attribute(
                    "string", "URL of the notification endpoint", required=True
                ),
                "token": Attribute(
                    "string",
                    "Authentication token (for endpoints that require it)",
                    optional=True,
                    sensitive=True,
                ),
                "username": Attribute(
                    "string", "Username for basic authentication", optional=True
                ),
                "password": Attribute(
                    "string",
                    "Password for basic authentication",
                    optional=True,
                    sensitive=True,
                ),
                "method": Attribute(
                    "string",
                    "HTTP method to use (POST, PUT, etc.)",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "auth_method": Attribute(
                    "string",
                    "Authentication method (none, basic, bearer)",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "headers": Attribute(
                    "map",
                    "Additional headers to send with the request",
                    optional=True,
                ),
            },
        )

    def _warn_untransmitted(
        self, stage: str, fields: List[str], diagnostics: Diagnostics
    ) -> None:
        if not fields:
            return
        names = ", ".join(fields)
        logger.warning(f"{self.type_name} fields not sent on {stage.lower()}: {names}")
        diagnostics.add_warning(
            f"{stage} - Fields Not Transmitted",
            f"The following notification endpoint fields are accepted but not "
            f"sent to InfluxDB on {stage.lower()}: {names}",
        )

    def _unsent_fields(self, data: NotificationEndpointModel) -> List[str]:
        return [name for name in UNTRANSMITTED_FIELDS if getattr(data, name)]

    async def _create(
        self, data: NotificationEndpointModel, diagnostics: Diagnostics
    ) -> NotificationEndpointModel:
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)

        request = NotificationEndpointRequest(
            name=data.name,
            type=data.type,
            url=data.url,
            status=DEFAULT_ENDPOINT_STATUS,
            method=DEFAULT_ENDPOINT_METHOD,
            auth_method=DEFAULT_ENDPOINT_AUTH_METHOD,
            org_id=org.id,
        )
        unsent = self._unsent_fields(data) + [
            name
            for name, default in CREATE_ONLY_DEFAULTS.items()
            if getattr(data, name) not in (None, default)
        ]
        self._warn_untransmitted("Create", unsent, diagnostics)

        body = await self.client.request(
            "POST",
            ENDPOINTS_ENDPOINT,
            body=request.to_request(),
            expected_status=(201,),
        )
        endpoint = parse_model(NotificationEndpointResponse, body)

        return data.model_copy(
            update={
                "id": endpoint.id,
                "org": org_name,
                "status": endpoint.status,
                "method": endpoint.method,
                "auth_method": endpoint.auth_method,
            }
        )

    async def _read(
        self, data: NotificationEndpointModel, diagnostics: Diagnostics
    ) -> NotificationEndpointModel:
        body = await self.client.request(
            "GET", f"{ENDPOINTS_ENDPOINT}/{data.id}", expected_status=(200,)
        )
        endpoint = parse_model(NotificationEndpointResponse, body)

        update = {
            "name": endpoint.name,
            "status": endpoint.status,
            "type": endpoint.type,
            "url": endpoint.url,
            "method": endpoint.method,
        }
        if endpoint.description is not None:
            update["description"] = endpoint.description
        if endpoint.auth_method:
            update["auth_method"] = endpoint.auth_method
        if endpoint.headers:
            update["headers"] = dict(endpoint.headers)
        return data.model_copy(update=update)

    async def _update(
        self,
        data: NotificationEndpointModel,
        prior: NotificationEndpointModel,
        diagnostics: Diagnostics,
    ) -> NotificationEndpointModel:
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)

        request = NotificationEndpointRequest(
            name=data.name,
            type=data.type,
            url=data.url,
            status=data.status or DEFAULT_ENDPOINT_STATUS,
            method=data.method or DEFAULT_ENDPOINT_METHOD,
            auth_method=data.auth_method or DEFAULT_ENDPOINT_AUTH_METHOD,
            org_id=org.id,
        )
        self._warn_untransmitted("Update", self._unsent_fields(data), diagnostics)

        body = await self.client.request(
            "PATCH",
            f"{ENDPOINTS_ENDPOINT}/{data.id}",
            body=request.to_request(),
            expected_status=(200,),
        )
        endpoint = parse_model(NotificationEndpointResponse, body)

        return data.model_copy(
            update={
                "org": org_name,
                "status": endpoint.status,
                "method": endpoint.method,
                "auth_method": endpoint.auth_method,
            }
        )

    async def _delete(
        self, data: NotificationEndpointModel, diagnostics: Diagnostics
    ) -> None:
        await self.client.request(
            "DELETE", f"{ENDPOINTS_ENDPOINT}/{data.id}", expected_status=(204,)
        )
