from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from contractgen.api.v1.dependencies import get_current_actor, get_db, get_version_chain
from contractgen.core.security import Actor
from contractgen.schemas.contract import (
    ContractRead,
    DocumentVersionRead,
    GenerateContractRequest,
    GenerateContractResponse,
    PruneArtifactsRequest,
    PruneArtifactsResponse,
    SaveContentRequest,
    VersionSavedResponse,
)
from contractgen.services import contracts as contract_service
from contractgen.services.versions import VersionChain

logger = logging.getLogger(__name__)

router = APIRouter()

MEDIA_TYPES = {
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
}


@router.post("/generate", response_model=GenerateContractResponse, status_code=201)
async def generate_contract(
    payload: GenerateContractRequest,
    db: Session = Depends(get_db),
    chain: VersionChain = Depends(get_version_chain),
    actor: Actor = Depends(get_current_actor),
) -> GenerateContractResponse:
    outcome = await chain.create_initial(db, payload.template_id, payload.data, actor)
    return GenerateContractResponse(
        contract_id=outcome.contract.id,
        contract_number=outcome.contract.contract_number,
        version=outcome.version.version,
        content=outcome.contract.content,
        docx_path=outcome.contract.docx_path,
        pdf_path=outcome.contract.pdf_path,
        degraded=outcome.degraded,
        errors=outcome.errors,
    )


@router.get("/{contract_id}", response_model=ContractRead)
async def read_contract(
    contract_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ContractRead:
    contract = contract_service.get_contract(db, contract_id)
    payload = ContractRead.model_validate(contract, from_attributes=True)
    current = contract_service.get_current_version(db, contract_id)
    if current:
        payload.current_version = DocumentVersionRead.model_validate(current, from_attributes=True)
    return payload


@router.put("/{contract_id}/content", response_model=VersionSavedResponse)
async def save_contract_content(
    contract_id: UUID,
    payload: SaveContentRequest,
    db: Session = Depends(get_db),
    chain: VersionChain = Depends(get_version_chain),
    actor: Actor = Depends(get_current_actor),
) -> VersionSavedResponse:
    outcome = await chain.save_edit(db, contract_id, payload.content, payload.change_description, actor)
    return VersionSavedResponse(
        version_id=outcome.version.id,
        version=outcome.version.version,
        docx_path=outcome.version.docx_path,
        pdf_path=outcome.version.pdf_path,
        degraded=outcome.degraded,
        errors=outcome.errors,
    )


@router.get("/{contract_id}/versions", response_model=list[DocumentVersionRead])
async def list_versions(
    contract_id: UUID,
    db: Session = Depends(get_db),
    chain: VersionChain = Depends(get_version_chain),
    actor: Actor = Depends(get_current_actor),
):
    return chain.list_versions(db, contract_id)


@router.get("/{contract_id}/download/{kind}")
async def download_artifact(
    contract_id: UUID,
    kind: Literal["docx", "pdf"],
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> FileResponse:
    contract = contract_service.get_contract(db, contract_id)
    stored = contract.docx_path if kind == "docx" else contract.pdf_path
    if not stored or not Path(stored).is_file():
        raise HTTPException(status_code=404, detail=f"{kind.upper()} file not found")
    return FileResponse(
        stored,
        media_type=MEDIA_TYPES[kind],
        filename=f"contrato_{contract.contract_number}.{kind}",
    )


@router.post("/{contract_id}/artifacts/prune", response_model=PruneArtifactsResponse)
async def prune_artifacts(
    contract_id: UUID,
    payload: PruneArtifactsRequest,
    db: Session = Depends(get_db),
    chain: VersionChain = Depends(get_version_chain),
    actor: Actor = Depends(get_current_actor),
) -> PruneArtifactsResponse:
    removed = chain.prune_artifacts(db, contract_id, payload.keep)
    logger.info("Pruned %d artifact(s) of contract %s", len(removed), contract_id)
    return PruneArtifactsResponse(removed=removed)
