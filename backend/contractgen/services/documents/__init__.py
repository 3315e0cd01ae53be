"""Structured (.docx) and paginated (.pdf) contract artifact generation."""
from contractgen.services.documents.artifacts import Artifact, ArtifactStore, SourceStore
from contractgen.services.documents.pipeline import (
    BasicStrategy,
    DocumentPipeline,
    GeneratedArtifacts,
    GenerationStrategy,
    TemplatePreservingStrategy,
)

__all__ = [
    "Artifact",
    "ArtifactStore",
    "BasicStrategy",
    "DocumentPipeline",
    "GeneratedArtifacts",
    "GenerationStrategy",
    "SourceStore",
    "TemplatePreservingStrategy",
]
