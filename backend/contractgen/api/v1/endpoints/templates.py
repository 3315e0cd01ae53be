from __future__ import annotations

import logging
from uuid import UUID
from zipfile import BadZipFile

from docx.opc.exceptions import PackageNotFoundError
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from contractgen.api.v1.dependencies import get_current_actor, get_db
from contractgen.core.security import Actor
from contractgen.schemas.template import DetectedField, DetectVariablesResponse, TemplateRead
from contractgen.services import contracts as contract_service
from contractgen.services import template_analysis
from contractgen.services.markers import canonical_marker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[TemplateRead])
async def list_templates(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return contract_service.list_active_templates(db)


@router.get("/{template_id}", response_model=TemplateRead)
async def read_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return contract_service.get_template(db, template_id)


@router.post("/detect-variables", response_model=DetectVariablesResponse)
async def detect_variables(
    file: UploadFile | None = File(default=None),
    content: str | None = Form(default=None),
    actor: Actor = Depends(get_current_actor),
) -> DetectVariablesResponse:
    if file is not None:
        try:
            text = template_analysis.docx_text(await file.read())
        except (PackageNotFoundError, BadZipFile, ValueError, KeyError) as exc:
            raise HTTPException(status_code=400, detail="File is not a valid Word document") from exc
        finally:
            await file.close()
    elif content is not None:
        text = content
    else:
        raise HTTPException(status_code=400, detail="Provide a .docx file or template content")

    detected = template_analysis.detect_variables(text)
    logger.info("Detected %d template variables", len(detected))
    return DetectVariablesResponse(
        variables=[canonical_marker(item.name) for item in detected],
        fields=[
            DetectedField(
                field_name=item.name,
                field_label=item.label,
                field_type=item.field_type,
                required=item.required,
                display_order=item.display_order,
            )
            for item in detected
        ],
    )
