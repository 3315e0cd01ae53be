"""Import all models here for Alembic migrations."""
from contractgen.db.base_class import Base  # noqa: F401
from contractgen.models.activity import ActivityLog  # noqa: F401
from contractgen.models.contract import Contract, DocumentVersion  # noqa: F401
from contractgen.models.sequence import SequenceCounter  # noqa: F401
from contractgen.models.template import ContractTemplate, TemplateField  # noqa: F401
