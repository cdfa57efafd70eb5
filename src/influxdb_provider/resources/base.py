"""
Resource Base - generic lifecycle for InfluxDB resource types.

Every resource type implements the same contract: Metadata, Schema,
Configure, and the Create/Read/Update/Delete/Import lifecycle. This module
holds the shared machinery (diagnostics, document validation, plan
computation, error-to-diagnostic conversion); subclasses only map between
their state model and the management API.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type

import pydantic
from pydantic import BaseModel, ConfigDict

from influxdb_provider.client import InfluxDBClient
from influxdb_provider.context import ProviderData
from influxdb_provider.errors import (
    InfluxDBError,
    LookupFailedError,
    NotFoundError,
    ValidationError,
)
from influxdb_provider.models import Organization
from influxdb_provider.schema import Attribute, Schema
from influxdb_provider.validation import validate_document

logger = logging.getLogger(__name__)

PROVIDER_TYPE_NAME = "influxdb"


class Severity(Enum):
    """Diagnostic severities."""

    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A single error or warning reported to the caller."""

    severity: Severity
    summary: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.severity.value}: {self.summary}: {self.detail}"


class Diagnostics(list):
    """Ordered list of diagnostics produced by one call."""

    def add_error(self, summary: str, detail: str = "") -> None:
        self.append(Diagnostic(Severity.ERROR, summary, detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        self.append(Diagnostic(Severity.WARNING, summary, detail))

    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self)

    def errors(self) -> List[Diagnostic]:
        return [d for d in self if d.severity == Severity.ERROR]

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self if d.severity == Severity.WARNING]


@dataclass
class ResourceResponse:
    """Result of a lifecycle call."""

    state: Optional[Dict[str, Any]] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    # Set by Read when the remote object is gone
    removed: bool = False

    @property
    def success(self) -> bool:
        return not self.diagnostics.has_error()


class ResourceModel(BaseModel):
    """Base for stored-state models."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None

    def to_state(self) -> Dict[str, Any]:
        return self.model_dump()


class Resource(ABC):
    """
    Abstract base class for resource types.

    Subclasses declare ``type_suffix``, ``display_name`` and ``model``,
    provide ``schema()``, and implement the ``_create``/``_read``/
    ``_update``/``_delete`` hooks. Hooks raise InfluxDBError subclasses;
    the public lifecycle methods convert them into diagnostics and never
    return state for a failed mutation.
    """

    type_suffix: str = ""
    display_name: str = "resource"
    model: Type[ResourceModel] = ResourceModel

    def __init__(self):
        self._provider_data: Optional[ProviderData] = None

    # Contract

    def metadata(self, provider_type_name: str = PROVIDER_TYPE_NAME) -> str:
        """Resource type name, e.g. ``influxdb_bucket``."""
        return f"{provider_type_name}_{self.type_suffix}"

    @property
    def type_name(self) -> str:
        return self.metadata()

    @abstractmethod
    def schema(self) -> Schema:
        """Declared attributes of this resource type."""
        pass

    def configure(self, provider_data: Any) -> Diagnostics:
        """
        Receive the shared connection context.

        A None context is ignored; the runtime may configure resources
        before the provider itself has been configured.
        """
        diagnostics = Diagnostics()
        if provider_data is None:
            return diagnostics

        if not isinstance(provider_data, ProviderData):
            diagnostics.add_error(
                "Unexpected Resource Configure Type",
                f"Expected ProviderData, got: {type(provider_data).__name__}. "
                "Please report this issue to the provider developers.",
            )
            return diagnostics

        self._provider_data = provider_data
        return diagnostics

    @property
    def configured(self) -> bool:
        return self._provider_data is not None

    @property
    def client(self) -> InfluxDBClient:
        return self._provider_data.client

    # Plan

    def plan(
        self, config: Dict[str, Any], state: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Compute the planned document from configuration and stored state.

        Configured values win; otherwise the attribute's plan modifiers decide
        (``UseStateForUnknown`` keeps the stored value), else it is null.
        """
        state = state or {}
        planned: Dict[str, Any] = {}
        for name, attribute in self.schema().attributes.items():
            config_value = config.get(name) if attribute.configurable else None
            if attribute.nested and isinstance(config_value, list):
                config_value = [
                    self._plan_element(attribute.nested, item)
                    if isinstance(item, dict)
                    else item
                    for item in config_value
                ]
            state_value = state.get(name)
            value = config_value
            for modifier in attribute.plan_modifiers:
                value = modifier.modify(config_value, state_value, value)
            planned[name] = value
        return planned

    @staticmethod
    def _plan_element(
        nested: Dict[str, Attribute], item: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Fill unset fields of one list element with their declared defaults."""
        element = {}
        for key, attribute in nested.items():
            value = item.get(key)
            element[key] = attribute.default if value is None else value
        return element

    def has_changes(
        self, planned: Dict[str, Any], state: Optional[Dict[str, Any]]
    ) -> bool:
        """True when any configurable attribute differs from stored state."""
        state = state or {}
        return any(
            planned.get(name) != state.get(name)
            for name in self.schema().configurable_attributes()
        )

    # Lifecycle

    async def create(self, plan: Dict[str, Any]) -> ResourceResponse:
        response = ResourceResponse()
        data = self._prepare("Create", plan, response.diagnostics, validate=True)
        if data is None:
            return response

        try:
            created = await self._create(data, response.diagnostics)
        except InfluxDBError as e:
            self._report("Create", "create", e, response.diagnostics)
            return response

        logger.info(f"Created {self.type_name} {created.id}")
        response.state = created.to_state()
        return response

    async def read(self, state: Dict[str, Any]) -> ResourceResponse:
        response = ResourceResponse()
        data = self._prepare("Read", state, response.diagnostics)
        if data is None:
            return response

        try:
            refreshed = await self._read(data, response.diagnostics)
        except NotFoundError:
            logger.warning(f"{self.type_name} {data.id} not found, removing from state")
            response.diagnostics.add_warning(
                "Read - Resource Not Found",
                f"{self.display_name.capitalize()} not found, removing from state",
            )
            response.removed = True
            return response
        except InfluxDBError as e:
            self._report("Read", "read", e, response.diagnostics)
            return response

        response.state = refreshed.to_state()
        return response

    async def update(
        self, plan: Dict[str, Any], state: Dict[str, Any]
    ) -> ResourceResponse:
        response = ResourceResponse()
        data = self._prepare("Update", plan, response.diagnostics, validate=True)
        if data is None:
            return response
        prior = self._prepare("Update", state, response.diagnostics)
        if prior is None:
            return response

        if not prior.id:
            response.diagnostics.add_error(
                "Update - Missing ID",
                f"Cannot update {self.display_name} without an ID from current state",
            )
            return response
        data.id = prior.id

        try:
            updated = await self._update(data, prior, response.diagnostics)
        except InfluxDBError as e:
            self._report("Update", "update", e, response.diagnostics)
            return response

        logger.info(f"Updated {self.type_name} {updated.id}")
        response.state = updated.to_state()
        return response

    async def delete(self, state: Dict[str, Any]) -> ResourceResponse:
        response = ResourceResponse()
        data = self._prepare("Delete", state, response.diagnostics)
        if data is None:
            return response

        try:
            await self._delete(data, response.diagnostics)
        except NotFoundError:
            logger.info(f"{self.type_name} {data.id} already deleted")
            return response
        except InfluxDBError as e:
            self._report("Delete", "delete", e, response.diagnostics)
            return response

        logger.info(f"Deleted {self.type_name} {data.id}")
        return response

    async def import_state(self, resource_id: str) -> ResourceResponse:
        """Seed state with just the ID; a following Read fills in the rest."""
        response = ResourceResponse()
        if not resource_id:
            response.diagnostics.add_error(
                "Import - Missing ID", "An import ID must be provided"
            )
            return response
        response.state = self.model(id=resource_id).to_state()
        return response

    # Hooks

    def validate(self, data: ResourceModel) -> None:
        """
        Check invariants the JSON Schema cannot express.

        Raises:
            ValidationError: If the desired document violates one
        """
        pass

    @abstractmethod
    async def _create(
        self, data: ResourceModel, diagnostics: Diagnostics
    ) -> ResourceModel:
        pass

    @abstractmethod
    async def _read(self, data: ResourceModel, diagnostics: Diagnostics) -> ResourceModel:
        pass

    @abstractmethod
    async def _update(
        self, data: ResourceModel, prior: ResourceModel, diagnostics: Diagnostics
    ) -> ResourceModel:
        pass

    @abstractmethod
    async def _delete(self, data: ResourceModel, diagnostics: Diagnostics) -> None:
        pass

    # Helpers

    def org_reference(self, org: Optional[str]) -> str:
        """The declared org reference, or the provider default."""
        return org or self._provider_data.org

    async def resolve_org(self, reference: str) -> Organization:
        if not reference:
            raise LookupFailedError(
                "No organization specified and the provider has no default org"
            )
        return await self.client.organizations.resolve(reference)

    async def org_display_name(self, org_id: str) -> str:
        org = await self.client.organizations.find_by_id(org_id)
        return org.name

    def _prepare(
        self,
        stage: str,
        document: Optional[Dict[str, Any]],
        diagnostics: Diagnostics,
        validate: bool = False,
    ) -> Optional[ResourceModel]:
        """Check configuration, validate and parse a document into the model."""
        if not self.configured:
            diagnostics.add_error(
                f"{stage} - Unconfigured Resource",
                "The provider has not been configured with a valid InfluxDB "
                "URL and token",
            )
            return None

        document = document or {}
        if validate:
            is_valid, error = validate_document(
                document, self.schema().to_json_schema()
            )
            if not is_valid:
                diagnostics.add_error(f"{stage} - Validation Error", error)
                return None

        try:
            data = self.model.model_validate(document)
        except pydantic.ValidationError as e:
            diagnostics.add_error(
                f"{stage} - Parse Error", f"Unable to parse {self.display_name}: {e}"
            )
            return None

        if validate:
            try:
                self.validate(data)
            except ValidationError as e:
                diagnostics.add_error(e.summary, e.message)
                return None
        return data

    def _report(
        self, stage: str, verb: str, error: InfluxDBError, diagnostics: Diagnostics
    ) -> None:
        logger.error(f"{stage} failed for {self.type_name}: {error}")
        diagnostics.add_error(
            f"{stage} - {error.summary}",
            f"Unable to {verb} {self.display_name}: {error.message}",
        )
