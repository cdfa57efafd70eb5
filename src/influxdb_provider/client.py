"""
InfluxDB HTTP client - JSON-over-HTTP access to the v2 management API.

``InfluxDBClient.request`` is the single call path: it encodes the body,
attaches ``Authorization: Token <token>`` and JSON headers, and maps the
response status onto the error taxonomy. Typed sub-APIs for organizations,
users, buckets and tasks are built on top of it.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

import aiohttp
import pydantic

from influxdb_provider.errors import (
    APIError,
    InfluxDBError,
    NotFoundError,
    OrganizationNotFoundError,
    SerializationError,
    TransportError,
    UserLookupError,
)
from influxdb_provider.flux import build_option_task_header, strip_option_task
from influxdb_provider.models import APIModel, Bucket, Organization, Task, User

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=APIModel)

# InfluxDB object IDs are 16 lowercase hex characters
ID_PATTERN = re.compile(r"^[0-9a-f]{16}$")


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a decoded response document into an API model."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise SerializationError(
            f"Unable to parse {model.__name__} response: {e}"
        ) from e


class InfluxDBClient:
    """
    Thin async client for the InfluxDB v2 HTTP API.

    Holds only the endpoint URL and token; a fresh aiohttp session is opened
    per request so the client can be shared across concurrent calls.
    """

    def __init__(self, url: str, token: str):
        self.url = url.rstrip("/")
        self._token = token
        self.organizations = OrganizationsAPI(self)
        self.users = UsersAPI(self)
        self.buckets = BucketsAPI(self)
        self.tasks = TasksAPI(self)

    def __repr__(self) -> str:
        return f"InfluxDBClient(url={self.url!r})"

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for InfluxDB API requests."""
        return {
            "Authorization": f"Token {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
        expected_status: Optional[Iterable[int]] = None,
    ) -> Any:
        """
        Make a request to the InfluxDB API.

        Args:
            method: HTTP method
            endpoint: Path below the server URL, e.g. ``/api/v2/checks``
            body: JSON-serializable request body
            params: Query string parameters
            expected_status: Accepted status codes; defaults to any 2xx

        Returns:
            The decoded JSON response, or None for an empty body

        Raises:
            NotFoundError: On HTTP 404
            APIError: On any other unexpected status
            TransportError: When the server cannot be reached
            SerializationError: When the body or response is not valid JSON
        """
        data = None
        if body is not None:
            try:
                data = json.dumps(body)
            except (TypeError, ValueError) as e:
                raise SerializationError(
                    f"failed to marshal request body: {e}"
                ) from e

        url = f"{self.url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    data=data,
                    params=params,
                ) as response:
                    status = response.status
                    text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"failed to make request: {e}") from e

        logger.debug(f"{method} {url} -> {status}")

        if status == 404:
            raise NotFoundError(text)

        if expected_status is not None:
            ok = status in tuple(expected_status)
        else:
            ok = 200 <= status < 300
        if not ok:
            raise APIError(status, text)

        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"failed to decode response body: {e}") from e


class OrganizationsAPI:
    """Organization lookups."""

    def __init__(self, client: InfluxDBClient):
        self._client = client

    async def find_by_name(self, name: str) -> Organization:
        try:
            data = await self._client.request(
                "GET", "/api/v2/orgs", params={"org": name}
            )
        except NotFoundError as e:
            raise OrganizationNotFoundError(name) from e

        orgs = (data or {}).get("orgs") or []
        for org in orgs:
            if org.get("name") == name:
                return parse_model(Organization, org)
        raise OrganizationNotFoundError(name)

    async def find_by_id(self, org_id: str) -> Organization:
        try:
            data = await self._client.request("GET", f"/api/v2/orgs/{org_id}")
        except NotFoundError as e:
            raise OrganizationNotFoundError(org_id) from e
        return parse_model(Organization, data)

    async def resolve(self, reference: str) -> Organization:
        """
        Resolve an organization reference given as a name or an ID.

        Names are tried first; a reference shaped like an ID falls back to a
        lookup by ID.
        """
        try:
            return await self.find_by_name(reference)
        except OrganizationNotFoundError:
            if not ID_PATTERN.match(reference):
                raise
        return await self.find_by_id(reference)


class UsersAPI:
    """Current user lookup."""

    def __init__(self, client: InfluxDBClient):
        self._client = client

    async def me(self) -> User:
        try:
            data = await self._client.request("GET", "/api/v2/me")
            return parse_model(User, data)
        except InfluxDBError as e:
            raise UserLookupError(f"Unable to get current user: {e}") from e


class BucketsAPI:
    """Bucket CRUD."""

    def __init__(self, client: InfluxDBClient):
        self._client = client

    async def create(self, bucket: Bucket) -> Bucket:
        data = await self._client.request(
            "POST", "/api/v2/buckets", body=bucket.to_request()
        )
        return parse_model(Bucket, data)

    async def find_by_id(self, bucket_id: str) -> Bucket:
        data = await self._client.request("GET", f"/api/v2/buckets/{bucket_id}")
        return parse_model(Bucket, data)

    async def update(self, bucket: Bucket) -> Bucket:
        body = bucket.model_dump(
            by_alias=True, exclude_none=True, exclude={"id", "org_id"}
        )
        data = await self._client.request(
            "PATCH", f"/api/v2/buckets/{bucket.id}", body=body
        )
        return parse_model(Bucket, data)

    async def delete(self, bucket_id: str) -> None:
        await self._client.request(
            "DELETE", f"/api/v2/buckets/{bucket_id}", expected_status=(204,)
        )


class TasksAPI:
    """Task CRUD."""

    def __init__(self, client: InfluxDBClient):
        self._client = client

    async def create(self, task: Task) -> Task:
        """
        Create a task.

        The schedule travels inside the query: an ``option task`` header is
        generated from name/every/cron/offset and prepended to the body.
        """
        header = build_option_task_header(
            task.name, every=task.every, cron=task.cron, offset=task.offset
        )
        body = {
            "orgID": task.org_id,
            "flux": f"{header}\n\n{strip_option_task(task.flux)}",
            "status": task.status,
            "description": task.description,
        }
        body = {key: value for key, value in body.items() if value is not None}
        data = await self._client.request("POST", "/api/v2/tasks", body=body)
        return parse_model(Task, data)

    async def get_by_id(self, task_id: str) -> Task:
        data = await self._client.request("GET", f"/api/v2/tasks/{task_id}")
        return parse_model(Task, data)

    async def update(self, task: Task) -> Task:
        body: Dict[str, Any] = {
            "name": task.name,
            "flux": task.flux,
            "status": task.status,
            "description": task.description,
            "offset": task.offset,
        }
        if task.every:
            body["every"] = task.every
        else:
            body["cron"] = task.cron
        body = {key: value for key, value in body.items() if value is not None}
        data = await self._client.request(
            "PATCH", f"/api/v2/tasks/{task.id}", body=body
        )
        return parse_model(Task, data)

    async def delete(self, task_id: str) -> None:
        await self._client.request(
            "DELETE", f"/api/v2/tasks/{task_id}", expected_status=(204,)
        )
