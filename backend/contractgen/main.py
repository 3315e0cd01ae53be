import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from contractgen.api.v1.api import api_router
from contractgen.core.config import Settings, get_settings
from contractgen.core.exceptions import NotFoundFailure, PersistenceFailure, ValidationFailure
from contractgen.core.logging import configure_logging
from contractgen.db.session import build_engine, build_session_factory
from contractgen.services.audit import AuditSink, build_audit_sink
from contractgen.services.documents import ArtifactStore, DocumentPipeline, SourceStore
from contractgen.services.renderer import TemplateRenderer
from contractgen.services.sequence import SequenceAllocator
from contractgen.services.versions import VersionChain

logger = logging.getLogger(__name__)


def build_version_chain(
    settings: Settings, session_factory: sessionmaker, audit: AuditSink | None = None
) -> VersionChain:
    """Wire the long-lived generation components around one storage handle."""
    pipeline = DocumentPipeline(
        ArtifactStore(settings.DOCUMENTS_DIR, prefix=settings.ARTIFACT_PREFIX),
        SourceStore(settings.TEMPLATES_DIR),
        title_keyword=settings.TITLE_KEYWORD,
    )
    return VersionChain(
        SequenceAllocator(session_factory),
        TemplateRenderer(),
        pipeline,
        audit if audit is not None else build_audit_sink(settings.AUDIT_BACKEND),
        number_prefix=settings.CONTRACT_NUMBER_PREFIX,
        number_padding=settings.CONTRACT_NUMBER_PADDING,
        retention=settings.ARTIFACT_RETENTION,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": "Faltan campos requeridos", "missing_fields": exc.missing_fields},
        )

    @app.exception_handler(NotFoundFailure)
    async def not_found_handler(request: Request, exc: NotFoundFailure) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
        logger.error("Persistence failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
    audit: AuditSink | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    if session_factory is None:
        session_factory = build_session_factory(build_engine(settings.DATABASE_URL))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.version_chain.flush_audit()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.version_chain = build_version_chain(settings, session_factory, audit)

    @app.get("/healthz", tags=["health"])
    def root_health() -> dict[str, str]:
        """Basic health endpoint."""
        return {"status": "ok"}

    _register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
