from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TemplateFieldRead(BaseModel):
    name: str
    label: str
    field_type: str
    required: bool
    repeatable: bool
    repeat_source: str | None = None
    marker_pattern: str | None = None
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class TemplateRead(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    category: str | None = None
    has_source_document: bool = False
    created_at: datetime
    fields: list[TemplateFieldRead] = []

    model_config = ConfigDict(from_attributes=True)


class DetectedField(BaseModel):
    field_name: str
    field_label: str
    field_type: str
    required: bool = True
    display_order: int


class DetectVariablesResponse(BaseModel):
    variables: list[str]
    fields: list[DetectedField]
