"""Identity primitives supplied by the authentication layer."""

from dataclasses import dataclass
from uuid import UUID

from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class Actor:
    user_id: UUID
    owner_id: UUID | None = None


async def get_current_actor(
    x_user_id: str | None = Header(default=None),
    x_owner_id: str | None = Header(default=None),
) -> Actor:
    """Resolve the acting user from headers set by the upstream auth gateway.

    The identifiers are trusted as given; only their shape is checked.
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        user_id = UUID(x_user_id)
        owner_id = UUID(x_owner_id) if x_owner_id else None
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Malformed identity headers"
        ) from exc
    return Actor(user_id=user_id, owner_id=owner_id)
