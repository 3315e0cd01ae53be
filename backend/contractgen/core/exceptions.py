from collections.abc import Sequence


class DocumentEngineError(Exception):
    """Base class for document generation errors."""


class ValidationFailure(DocumentEngineError):
    """Raised when required template fields are missing from the answers."""

    def __init__(self, missing_fields: Sequence[str]):
        self.missing_fields = list(missing_fields)
        super().__init__("Faltan campos requeridos: " + ", ".join(self.missing_fields))


class NotFoundFailure(DocumentEngineError):
    """Raised when a template, contract or version does not exist."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class SourceUnavailableFailure(DocumentEngineError):
    """Raised when an original template document cannot be read."""

    def __init__(self, reference: str | None, reason: str = "missing"):
        self.reference = reference
        super().__init__(f"Source document {reference!r} unavailable: {reason}")


class GenerationFailure(DocumentEngineError):
    """Raised when no artifact could be produced for a generation call."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        self.errors = dict(errors or {})
        super().__init__(message)


class PersistenceFailure(DocumentEngineError):
    """Raised when the store rejects a read or write."""
