"""Admin user lookup and role management."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import String, cast, or_, select

from zeclub.db.models import User
from zeclub.db.search import LIKE_ESCAPE, contains_pattern
from zeclub.errors import ClubValidationError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ADMIN_ROLE = "admin"
SEARCH_LIMIT = 20


async def search_users(db: AsyncSession, query: str, limit: int = SEARCH_LIMIT) -> list[User]:
    """Case-insensitive partial match on name, email or ZE tag."""
    query = query.strip()
    if not query:
        return []
    pattern = contains_pattern(query)
    result = await db.execute(
        select(User)
        .where(or_(
            User.name.ilike(pattern, escape=LIKE_ESCAPE),
            User.email.ilike(pattern, escape=LIKE_ESCAPE),
            User.ze_tag.ilike(pattern, escape=LIKE_ESCAPE),
        ))
        .order_by(User.id.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_admins(db: AsyncSession) -> list[User]:
    """Users holding the admin role, oldest account first."""
    # roles is a JSON list; its text form contains the quoted role name
    result = await db.execute(
        select(User)
        .where(cast(User.roles, String).like(f'%"{ADMIN_ROLE}"%'))
        .order_by(User.created_at.asc(), User.id.asc())
    )
    return [u for u in result.scalars() if u.is_admin]


async def set_admin_role(db: AsyncSession, user_id: int, action: str, acting_admin_id: int) -> User:
    """Grant (``add``) or revoke (``remove``) the admin role."""
    if action not in ("add", "remove"):
        raise ClubValidationError("Action must be 'add' or 'remove'")
    if action == "remove" and user_id == acting_admin_id:
        raise ClubValidationError("You cannot remove your own admin role.")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")

    roles = list(user.roles or [])
    if action == "add" and ADMIN_ROLE not in roles:
        roles.append(ADMIN_ROLE)
    elif action == "remove":
        roles = [r for r in roles if r != ADMIN_ROLE]
    # Reassign so the JSON column is flagged dirty
    user.roles = roles
    await db.flush()

    logger.info("admin_role_changed", user_id=user_id, action=action, by=acting_admin_id)
    return user
