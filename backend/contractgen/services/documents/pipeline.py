"""
Dual-format artifact generation.

A strategy is picked once per call: when the template's original Word
document can be read, both artifacts are derived from that package so its
formatting survives; otherwise a minimal document is composed from the
rendered text. The .docx and .pdf are produced concurrently, each into its
own file, and a call only fails when neither could be written.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from contractgen.core.exceptions import GenerationFailure, SourceUnavailableFailure
from contractgen.services.documents.artifacts import Artifact, ArtifactStore, SourceStore
from contractgen.services.documents.docx_writer import build_basic_document, fill_package
from contractgen.services.documents.markup import (
    docx_to_html,
    html_to_formatted_text,
    strip_markup,
)
from contractgen.services.documents.pdf_writer import (
    ContractPDF,
    layout_basic,
    layout_formatted_text,
    write_pdf,
)

logger = logging.getLogger(__name__)

STRUCTURED = "docx"
PAGINATED = "pdf"


@dataclass(frozen=True)
class GenerationRequest:
    identity: str
    content: str
    answers: Mapping[str, str] = field(default_factory=dict)
    title: str = ""


@dataclass
class GeneratedArtifacts:
    structured: Artifact | None
    paginated: Artifact | None
    strategy: str
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


class GenerationStrategy(ABC):
    name: str

    @abstractmethod
    def write_structured(self, request: GenerationRequest, path: str) -> None:
        ...

    @abstractmethod
    def write_paginated(self, request: GenerationRequest, path: str) -> None:
        ...


class TemplatePreservingStrategy(GenerationStrategy):
    """Fill the original Word package in place and paginate from it."""

    name = "template"

    def __init__(self, source: bytes, title_keyword: str = "CONTRATO"):
        self.source = source
        self.title_keyword = title_keyword

    def write_structured(self, request: GenerationRequest, path: str) -> None:
        fill_package(self.source, request.answers).save(path)

    def write_paginated(self, request: GenerationRequest, path: str) -> None:
        # the package is re-filled in memory so this task shares nothing with
        # the structured one
        document = fill_package(self.source, request.answers)
        formatted = html_to_formatted_text(docx_to_html(document))
        pdf = ContractPDF()
        layout_formatted_text(pdf, formatted, self.title_keyword)
        write_pdf(pdf, path)


class BasicStrategy(GenerationStrategy):
    """Compose minimal documents straight from the rendered content."""

    name = "basic"

    def write_structured(self, request: GenerationRequest, path: str) -> None:
        document = build_basic_document(request.identity, request.title, strip_markup(request.content))
        document.save(path)

    def write_paginated(self, request: GenerationRequest, path: str) -> None:
        pdf = ContractPDF()
        layout_basic(pdf, request.identity, request.title, strip_markup(request.content, keep_newlines=True))
        write_pdf(pdf, path)


class DocumentPipeline:
    def __init__(
        self,
        artifacts: ArtifactStore,
        sources: SourceStore,
        title_keyword: str = "CONTRATO",
    ):
        self.artifacts = artifacts
        self.sources = sources
        self.title_keyword = title_keyword

    def select_strategy(self, source_ref: str | None) -> GenerationStrategy:
        if not source_ref:
            return BasicStrategy()
        try:
            source = self.sources.read(source_ref)
        except SourceUnavailableFailure as exc:
            logger.warning("%s; falling back to basic generation", exc)
            return BasicStrategy()
        return TemplatePreservingStrategy(source, self.title_keyword)

    async def generate(
        self,
        identity: str,
        content: str,
        answers: Mapping[str, str] | None = None,
        source_ref: str | None = None,
        title: str = "",
    ) -> GeneratedArtifacts:
        request = GenerationRequest(
            identity=identity, content=content, answers=dict(answers or {}), title=title
        )
        strategy = self.select_strategy(source_ref)
        logger.info("Generating artifacts for %s with %s strategy", identity, strategy.name)

        results = await asyncio.gather(
            asyncio.to_thread(self._produce, strategy.write_structured, request, STRUCTURED),
            asyncio.to_thread(self._produce, strategy.write_paginated, request, PAGINATED),
            return_exceptions=True,
        )

        produced: dict[str, Artifact | None] = {}
        errors: dict[str, str] = {}
        for kind, result in zip((STRUCTURED, PAGINATED), results):
            if isinstance(result, BaseException):
                logger.error("Failed to generate %s for %s: %s", kind, identity, result, exc_info=result)
                errors[kind] = str(result) or type(result).__name__
                produced[kind] = None
            else:
                produced[kind] = result

        if produced[STRUCTURED] is None and produced[PAGINATED] is None:
            raise GenerationFailure(f"No artifacts could be generated for {identity}", errors)

        return GeneratedArtifacts(
            structured=produced[STRUCTURED],
            paginated=produced[PAGINATED],
            strategy=strategy.name,
            errors=errors,
        )

    def _produce(
        self,
        writer: Callable[[GenerationRequest, str], None],
        request: GenerationRequest,
        extension: str,
    ) -> Artifact:
        artifact = self.artifacts.reserve(request.identity, extension)
        try:
            writer(request, artifact.path)
        except Exception:
            self.artifacts.discard(artifact)
            raise
        logger.info("Generated %s", artifact.filename)
        return artifact
