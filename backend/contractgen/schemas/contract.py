from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class GenerateContractRequest(BaseModel):
    template_id: UUID
    data: dict[str, str | None] = Field(default_factory=dict, description="Answers keyed by field name")


class GenerateContractResponse(BaseModel):
    contract_id: UUID
    contract_number: str
    version: int
    content: str
    docx_path: str | None = None
    pdf_path: str | None = None
    degraded: bool = False
    errors: dict[str, str] = Field(default_factory=dict)


class SaveContentRequest(BaseModel):
    content: str = Field(..., min_length=1)
    change_description: str | None = None


class VersionSavedResponse(BaseModel):
    version_id: UUID
    version: int
    docx_path: str | None = None
    pdf_path: str | None = None
    degraded: bool = False
    errors: dict[str, str] = Field(default_factory=dict)


class DocumentVersionRead(BaseModel):
    id: UUID
    version: int
    change_description: str
    created_by: UUID
    created_at: datetime
    is_current: bool

    model_config = ConfigDict(from_attributes=True)


class EditableContentRead(BaseModel):
    content: str | None
    version: int
    change_description: str

    model_config = ConfigDict(from_attributes=True)


class ContractRead(BaseModel):
    id: UUID
    contract_number: str
    template_id: UUID
    title: str | None
    status: str
    content: str
    docx_path: str | None
    pdf_path: str | None
    generated_by: UUID
    owner_id: UUID | None
    created_at: datetime
    updated_at: datetime
    current_version: DocumentVersionRead | None = None

    model_config = ConfigDict(from_attributes=True)


class PruneArtifactsRequest(BaseModel):
    keep: int | None = Field(default=None, ge=0)


class PruneArtifactsResponse(BaseModel):
    removed: list[str]
