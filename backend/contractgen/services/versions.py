from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contractgen.core.exceptions import GenerationFailure, NotFoundFailure, PersistenceFailure
from contractgen.core.security import Actor
from contractgen.models.contract import Contract, DocumentVersion
from contractgen.services import contracts as contract_service
from contractgen.services.audit import AuditEvent, AuditSink, emit_quietly
from contractgen.services.documents import Artifact, DocumentPipeline
from contractgen.services.renderer import TemplateRenderer, TemplateSpec
from contractgen.services.sequence import SequenceAllocator, current_period, format_contract_number

logger = logging.getLogger(__name__)

INITIAL_DESCRIPTION = "Versión inicial generada automáticamente"
EDITED_TITLE = "Contrato editado"
RESTORED_TITLE = "Contrato restaurado"


@dataclass
class ArtifactPaths:
    docx_path: str | None = None
    pdf_path: str | None = None
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class VersionOutcome:
    contract: Contract
    version: DocumentVersion
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


def _path(artifact: Artifact | None) -> str | None:
    return artifact.path if artifact else None


class VersionChain:
    """
    Creates, edits and restores the versions of a contract.

    Versions are append-only: an edit adds ``current + 1``, a restore adds
    ``max + 1`` with the target's content, and exactly one version is current
    once an operation commits. Artifact generation failures degrade the new
    version (null paths) instead of failing the operation.
    """

    def __init__(
        self,
        allocator: SequenceAllocator,
        renderer: TemplateRenderer,
        pipeline: DocumentPipeline,
        audit: AuditSink | None = None,
        *,
        number_prefix: str = "CON",
        number_padding: int = 4,
        period_provider: Callable[[], str] = current_period,
        retention: int = 5,
    ):
        self.allocator = allocator
        self.renderer = renderer
        self.pipeline = pipeline
        self.audit = audit
        self.number_prefix = number_prefix
        self.number_padding = number_padding
        self.period_provider = period_provider
        self.retention = retention
        self._pending_audit: set[asyncio.Future] = set()

    async def create_initial(
        self, db: Session, template_id: UUID, answers: Mapping[str, str], actor: Actor
    ) -> VersionOutcome:
        template = contract_service.get_template(db, template_id)
        spec = TemplateSpec.from_model(template)
        rendered = self.renderer.render(spec, answers)

        period = self.period_provider()
        sequence = self.allocator.allocate(actor.owner_id, period)
        contract_number = format_contract_number(
            period, sequence, prefix=self.number_prefix, padding=self.number_padding
        )
        logger.info("Generating contract %s from template %s", contract_number, template.id)

        paths = await self._generate(
            contract_number, rendered.content, rendered.answers, spec.source_ref, template.name
        )

        contract = Contract(
            contract_number=contract_number,
            template_id=template.id,
            title=template.name,
            content=rendered.content,
            docx_path=paths.docx_path,
            pdf_path=paths.pdf_path,
            status="active",
            generated_by=actor.user_id,
            owner_id=actor.owner_id,
        )
        version = DocumentVersion(
            contract=contract,
            version=1,
            content=rendered.content,
            editable_content=rendered.content,
            docx_path=paths.docx_path,
            pdf_path=paths.pdf_path,
            created_by=actor.user_id,
            change_description=INITIAL_DESCRIPTION,
            is_current=True,
        )
        with self._persisting(db):
            db.add(contract)
            db.commit()

        self._audit(
            AuditEvent(
                action="contract_generated",
                entity_type="contract",
                entity_id=contract.id,
                user_id=actor.user_id,
                details={
                    "contract_number": contract_number,
                    "template_id": str(template.id),
                    "template_name": template.name,
                    "fields_count": len(rendered.answers),
                    "documents_generated": not paths.errors,
                },
            ),
        )
        return VersionOutcome(contract=contract, version=version, errors=paths.errors)

    async def save_edit(
        self,
        db: Session,
        contract_id: UUID,
        content: str,
        description: str | None,
        actor: Actor,
    ) -> VersionOutcome:
        contract = contract_service.get_contract(db, contract_id)
        prior = contract_service.get_current_version(db, contract_id)
        if prior is None:
            raise NotFoundFailure("Current version of contract", contract_id)

        paths = await self._generate(contract.contract_number, content, {}, None, EDITED_TITLE)
        number = prior.version + 1

        with self._persisting(db):
            prior.is_current = False
            db.flush()
            version = self._append(
                db,
                contract,
                number=number,
                content=content,
                editable_content=content,
                description=description or f"Versión {number}",
                paths=paths,
                actor=actor,
            )
            db.commit()

        logger.info("Contract %s edited: version %s", contract.contract_number, number)
        self._audit(
            AuditEvent("contract_edited", "contract", contract.id, actor.user_id, {"version": number}),
        )
        return VersionOutcome(contract=contract, version=version, errors=paths.errors)

    async def restore(self, db: Session, version_id: UUID, actor: Actor) -> VersionOutcome:
        target = contract_service.get_version(db, version_id)
        contract = contract_service.get_contract(db, target.contract_id)

        paths = await self._generate(contract.contract_number, target.content, {}, None, RESTORED_TITLE)

        with self._persisting(db):
            contract_service.clear_current_flags(db, contract.id)
            number = contract_service.max_version_number(db, contract.id) + 1
            version = self._append(
                db,
                contract,
                number=number,
                content=target.content,
                editable_content=target.editable_content,
                description=f"Restaurado desde versión {target.version}",
                paths=paths,
                actor=actor,
            )
            db.commit()

        logger.info(
            "Contract %s restored from version %s as version %s",
            contract.contract_number,
            target.version,
            number,
        )
        self._audit(
            AuditEvent(
                "contract_restored",
                "contract",
                contract.id,
                actor.user_id,
                {"version": number, "restored_from": target.version},
            ),
        )
        return VersionOutcome(contract=contract, version=version, errors=paths.errors)

    def list_versions(self, db: Session, contract_id: UUID) -> list[DocumentVersion]:
        contract_service.get_contract(db, contract_id)
        return contract_service.list_contract_versions(db, contract_id)

    def prune_artifacts(self, db: Session, contract_id: UUID, keep: int | None = None) -> list[str]:
        contract = contract_service.get_contract(db, contract_id)
        return self.pipeline.artifacts.prune(
            contract.contract_number, self.retention if keep is None else keep
        )

    async def flush_audit(self) -> None:
        """Wait for audit events still being handed to the sink."""
        if self._pending_audit:
            await asyncio.gather(*list(self._pending_audit), return_exceptions=True)

    def _audit(self, event: AuditEvent) -> None:
        # sinks may block on a broker; emit from a worker thread and move on
        if self.audit is None:
            return
        future = asyncio.get_running_loop().run_in_executor(None, emit_quietly, self.audit, event)
        self._pending_audit.add(future)
        future.add_done_callback(self._pending_audit.discard)

    def _append(
        self,
        db: Session,
        contract: Contract,
        *,
        number: int,
        content: str,
        editable_content: str | None,
        description: str,
        paths: ArtifactPaths,
        actor: Actor,
    ) -> DocumentVersion:
        version = DocumentVersion(
            contract_id=contract.id,
            version=number,
            content=content,
            editable_content=editable_content,
            docx_path=paths.docx_path,
            pdf_path=paths.pdf_path,
            created_by=actor.user_id,
            change_description=description,
            is_current=True,
        )
        db.add(version)
        contract.content = content
        contract.docx_path = paths.docx_path
        contract.pdf_path = paths.pdf_path
        return version

    async def _generate(
        self,
        identity: str,
        content: str,
        answers: Mapping[str, str],
        source_ref: str | None,
        title: str,
    ) -> ArtifactPaths:
        try:
            artifacts = await self.pipeline.generate(
                identity, content, answers, source_ref=source_ref, title=title
            )
        except GenerationFailure as exc:
            logger.error("Continuing without documents for %s: %s", identity, exc)
            return ArtifactPaths(errors=exc.errors or {"documents": str(exc)})
        return ArtifactPaths(
            docx_path=_path(artifacts.structured),
            pdf_path=_path(artifacts.paginated),
            errors=artifacts.errors,
        )

    @staticmethod
    @contextmanager
    def _persisting(db: Session) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Persistence failure")
            raise PersistenceFailure(str(exc)) from exc
