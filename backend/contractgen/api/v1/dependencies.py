from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from contractgen.core.security import get_current_actor
from contractgen.services.versions import VersionChain


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a database session from the application's session factory."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_version_chain(request: Request) -> VersionChain:
    return request.app.state.version_chain


__all__ = ["get_db", "get_current_actor", "get_version_chain"]
