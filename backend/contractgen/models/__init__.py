"""ORM models."""

# Import all models so they are registered with SQLAlchemy
from contractgen.models.activity import ActivityLog  # noqa
from contractgen.models.contract import Contract, DocumentVersion  # noqa
from contractgen.models.sequence import SequenceCounter  # noqa
from contractgen.models.template import ContractTemplate, TemplateField  # noqa

__all__ = [
    "ActivityLog",
    "Contract",
    "ContractTemplate",
    "DocumentVersion",
    "SequenceCounter",
    "TemplateField",
]
