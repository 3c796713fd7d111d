"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.database import init_db

ADMIN_ROLES = frozenset({"admin", "superadmin"})
READER_ROLES = ADMIN_ROLES | {"manager"}


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract tenant ID from header."""
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required",
        )
    try:
        return UUID(x_tenant_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Tenant-ID format",
        )


@dataclass(frozen=True)
class Actor:
    """Caller identity as resolved by the upstream auth layer."""

    tenant_id: UUID
    user_id: UUID | None
    role: str


async def get_actor(
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Extract the acting user and role from headers."""
    user_id = None
    if x_actor_id:
        try:
            user_id = UUID(x_actor_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid X-Actor-ID format",
            )
    return Actor(
        tenant_id=tenant_id,
        user_id=user_id,
        role=(x_actor_role or "").strip().lower(),
    )


async def require_reader(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    """Require a role allowed to read payroll data."""
    if actor.role not in READER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Manager or admin access required",
        )
    return actor


async def require_admin(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    """Require a role allowed to change payroll data."""
    if actor.role not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
ReaderActor = Annotated[Actor, Depends(require_reader)]
AdminActor = Annotated[Actor, Depends(require_admin)]
