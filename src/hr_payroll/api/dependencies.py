"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.database import init_db
from hr_payroll.errors import Unauthorized
from hr_payroll.models import User
from hr_payroll.services.rbac import Actor, RoleHierarchy


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_actor(
    db: DbSession,
    x_user_id: Annotated[int | None, Header()] = None,
) -> Actor:
    """Resolve the authenticated user from the X-User-ID header.

    Login and session handling happen upstream; by the time a request
    reaches this service the gateway has set the header.
    """
    if x_user_id is None:
        raise Unauthorized("X-User-ID header is required")
    user = await db.get(User, x_user_id)
    if user is None or not user.status:
        raise Unauthorized("Unknown or inactive user", {"user_id": x_user_id})
    return Actor(user_id=user.id, role=RoleHierarchy.parse(user.role))


# Type aliases for cleaner dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
