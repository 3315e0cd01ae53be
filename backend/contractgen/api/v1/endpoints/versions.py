from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from contractgen.api.v1.dependencies import get_current_actor, get_db, get_version_chain
from contractgen.core.security import Actor
from contractgen.schemas.contract import EditableContentRead, VersionSavedResponse
from contractgen.services import contracts as contract_service
from contractgen.services.versions import VersionChain

router = APIRouter()


@router.get("/{version_id}/editable", response_model=EditableContentRead)
async def read_editable_content(
    version_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> EditableContentRead:
    version = contract_service.get_version(db, version_id)
    return EditableContentRead(
        content=version.editable_content or version.content,
        version=version.version,
        change_description=version.change_description,
    )


@router.post("/{version_id}/restore", response_model=VersionSavedResponse)
async def restore_version(
    version_id: UUID,
    db: Session = Depends(get_db),
    chain: VersionChain = Depends(get_version_chain),
    actor: Actor = Depends(get_current_actor),
) -> VersionSavedResponse:
    outcome = await chain.restore(db, version_id, actor)
    return VersionSavedResponse(
        version_id=outcome.version.id,
        version=outcome.version.version,
        docx_path=outcome.version.docx_path,
        pdf_path=outcome.version.pdf_path,
        degraded=outcome.degraded,
        errors=outcome.errors,
    )
