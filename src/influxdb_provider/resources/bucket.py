"""
Bucket resource - InfluxDB data buckets.

Buckets are managed through the typed buckets API. Retention is exposed as a
single ``retention_seconds`` value; 0 means infinite retention.
"""

import logging
from typing import List, Optional

from influxdb_provider.models import Bucket, RetentionRule
from influxdb_provider.resources.base import Diagnostics, Resource, ResourceModel
from influxdb_provider.schema import Attribute, Schema, UseStateForUnknown

logger = logging.getLogger(__name__)


class BucketModel(ResourceModel):
    name: Optional[str] = None
    org: Optional[str] = None
    description: Optional[str] = None
    retention_seconds: Optional[int] = None


def retention_rules_for(retention_seconds: Optional[int]) -> List[RetentionRule]:
    """Build the retention rule list; an unset value means infinite (0)."""
    return [RetentionRule(every_seconds=retention_seconds or 0)]


def retention_seconds_from(rules: List[RetentionRule]) -> int:
    """Retention of the first rule, or 0 (infinite) when there are none."""
    if rules:
        return rules[0].every_seconds
    return 0


class BucketResource(Resource):
    """InfluxDB bucket resource."""

    type_suffix = "bucket"
    display_name = "bucket"
    model = BucketModel

    def schema(self) -> Schema:
        return Schema(
            description="InfluxDB bucket resource",
            attributes={
                "id": Attribute(
                    "string",
                    "Bucket ID",
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "name": Attribute("string", "Bucket name", required=True),
                "org": Attribute(
                    "string",
                    "Organization name or ID. If not provided, uses the provider default.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[UseStateForUnknown()],
                ),
                "description": Attribute(
                    "string", "Bucket description", optional=True
                ),
                "retention_seconds": Attribute(
                    "integer",
                    "Data retention period in seconds. 0 means infinite retention. "
                    "Defaults to 0 (infinite).",
                    optional=True,
                    computed=True,
                    minimum=0,
                    plan_modifiers=[UseStateForUnknown()],
                ),
            },
        )

    async def _create(self, data: BucketModel, diagnostics: Diagnostics) -> BucketModel:
        org_name = self.org_reference(data.org)
        org = await self.resolve_org(org_name)

        bucket = Bucket(
            name=data.name,
            org_id=org.id,
            description=data.description,
            retention_rules=retention_rules_for(data.retention_seconds),
        )
        created = await self.client.buckets.create(bucket)

        return BucketModel(
            id=created.id,
            name=created.name,
            # Keep the org reference as given to avoid a spurious diff
            org=org_name,
            description=(
                created.description
                if created.description is not None
                else data.description
            ),
            retention_seconds=retention_seconds_from(created.retention_rules),
        )

    async def _read(self, data: BucketModel, diagnostics: Diagnostics) -> BucketModel:
        bucket = await self.client.buckets.find_by_id(data.id)

        org = data.org
        if bucket.org_id:
            org = await self.org_display_name(bucket.org_id)

        return BucketModel(
            id=data.id,
            name=bucket.name,
            org=org,
            description=bucket.description,
            retention_seconds=retention_seconds_from(bucket.retention_rules),
        )

    async def _update(
        self, data: BucketModel, prior: BucketModel, diagnostics: Diagnostics
    ) -> BucketModel:
        bucket = Bucket(
            id=data.id,
            name=data.name,
            description=data.description,
            retention_rules=retention_rules_for(data.retention_seconds),
        )
        updated = await self.client.buckets.update(bucket)

        return BucketModel(
            id=data.id,
            name=updated.name,
            # Org is not mutable through this path
            org=prior.org,
            description=(
                updated.description
                if updated.description is not None
                else data.description
            ),
            retention_seconds=retention_seconds_from(updated.retention_rules),
        )

    async def _delete(self, data: BucketModel, diagnostics: Diagnostics) -> None:
        await self.client.buckets.delete(data.id)
