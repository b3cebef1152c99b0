"""API request/response schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from factgraph.models.enums import AccessMode
from factgraph.models.facts import Fact


class HealthResponse(BaseModel):
    status: str
    version: str


class RetractFactBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organization: str | None = None
    source: str | None = None
    access_mode: AccessMode | None = Field(default=None, alias="accessMode")
    acl: list[UUID] = Field(default_factory=list)
    comment: str | None = None


class FactResponse(BaseModel):
    data: Fact


class Message(BaseModel):
    type: str
    message: str
    messageTemplate: str | None = None
    field: str | None = None
    parameter: str | None = None


class ErrorResponse(BaseModel):
    messages: list[Message]
