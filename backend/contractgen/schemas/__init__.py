"""Pydantic schemas package."""
from contractgen.schemas.contract import (
    ContractRead,
    DocumentVersionRead,
    EditableContentRead,
    GenerateContractRequest,
    GenerateContractResponse,
    PruneArtifactsRequest,
    PruneArtifactsResponse,
    SaveContentRequest,
    VersionSavedResponse,
)
from contractgen.schemas.template import (
    DetectedField,
    DetectVariablesResponse,
    TemplateFieldRead,
    TemplateRead,
)

__all__ = [
    "ContractRead",
    "DetectedField",
    "DetectVariablesResponse",
    "DocumentVersionRead",
    "EditableContentRead",
    "GenerateContractRequest",
    "GenerateContractResponse",
    "PruneArtifactsRequest",
    "PruneArtifactsResponse",
    "SaveContentRequest",
    "TemplateFieldRead",
    "TemplateRead",
    "VersionSavedResponse",
]
