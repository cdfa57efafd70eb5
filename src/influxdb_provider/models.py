"""
Typed models for the InfluxDB v2 management API.

These mirror the JSON documents exchanged with the organizations, users,
buckets and tasks endpoints. Field aliases carry the API's camelCase keys.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class APIModel(BaseModel):
    """Base for API documents: populate by field name or alias, ignore extras."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_request(self) -> Dict[str, Any]:
        """Serialize for a request body, dropping unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Organization(APIModel):
    id: str
    name: str
    description: Optional[str] = None


class User(APIModel):
    id: str
    name: Optional[str] = None
    status: Optional[str] = None


class RetentionRule(APIModel):
    type: str = "expire"
    every_seconds: int = Field(0, alias="everySeconds", ge=0)
    shard_group_duration_seconds: Optional[int] = Field(
        None, alias="shardGroupDurationSeconds"
    )


class Bucket(APIModel):
    id: Optional[str] = None
    name: str
    org_id: Optional[str] = Field(None, alias="orgID")
    description: Optional[str] = None
    retention_rules: List[RetentionRule] = Field(
        default_factory=list, alias="retentionRules"
    )


class Task(APIModel):
    id: Optional[str] = None
    org_id: Optional[str] = Field(None, alias="orgID")
    name: str = ""
    description: Optional[str] = None
    flux: str = ""
    status: Optional[str] = None
    every: Optional[str] = None
    cron: Optional[str] = None
    offset: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
