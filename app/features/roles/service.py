"""
Role management operations.

Permission sets are always written as a whole: create_role takes the initial
set, replace_role_permissions swaps it for a new one. Every ID is checked
before anything changes.
"""
from typing import Any, Optional
from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.features.permissions.service import get_permissions_by_ids
from app.features.roles.models import Role, RoleLevel
from app.features.roles.schemas import RoleCreate, RoleUpdate
from app.utils import get_logger


log = get_logger(__name__)


def _parse_level(value: Any) -> RoleLevel:
    level = RoleLevel.parse(value)
    if level is None:
        allowed = ", ".join(lvl.value for lvl in RoleLevel)
        raise ValidationError(f"Role level must be one of: {allowed}", field="level")
    return level


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(Role.id).where(Role.name == name)
    if exclude_id:
        stmt = stmt.where(Role.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ValidationError(f"Role '{name}' already exists", field="name")


async def _reload(db: AsyncSession, role_id: str) -> Role:
    result = await db.execute(
        select(Role).where(Role.id == role_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_role(db: AsyncSession, role_id: str) -> Role:
    role = await db.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role", role_id)
    return role


async def list_roles(
    db: AsyncSession,
    level: Optional[RoleLevel] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Role]:
    stmt = select(Role)
    if level:
        stmt = stmt.where(Role.level == level)
    if is_active is not None:
        stmt = stmt.where(Role.is_active == is_active)
    if search:
        stmt = stmt.where(Role.name.ilike(f"%{search}%"))
    # Highest level first, then by name
    level_rank = case({lvl: lvl.rank for lvl in RoleLevel}, value=Role.level)
    stmt = stmt.order_by(level_rank.desc(), Role.name).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_role(db: AsyncSession, data: RoleCreate) -> Role:
    """
    Create a role with its initial permission set.

    Raises:
        ValidationError: If the level is unknown, the name is taken, or any
            permission ID does not resolve
    """
    level = _parse_level(data.level)
    await _ensure_name_free(db, data.name)
    permissions = await get_permissions_by_ids(db, data.permission_ids)

    role = Role(name=data.name, description=data.description, level=level)
    role.permissions = permissions
    db.add(role)
    await db.flush()

    log.info("Created role %s (%s) with %d permissions", role.name, level.value, len(permissions))
    return await _reload(db, role.id)


async def update_role(db: AsyncSession, role_id: str, data: RoleUpdate) -> Role:
    role = await get_role(db, role_id)
    update_data = data.model_dump(exclude_unset=True)

    for key in ("name", "level", "is_active"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(f"{key} must not be null", field=key)
    if "level" in update_data:
        update_data["level"] = _parse_level(update_data["level"])
    if "name" in update_data:
        await _ensure_name_free(db, update_data["name"], exclude_id=role.id)

    for key, value in update_data.items():
        setattr(role, key, value)

    await db.flush()
    return await _reload(db, role.id)


async def get_role_permission_ids(db: AsyncSession, role_id: str) -> list[str]:
    role = await get_role(db, role_id)
    return [p.id for p in role.permissions]


async def replace_role_permissions(db: AsyncSession, role_id: str, permission_ids: list[str]) -> Role:
    """
    Replace the complete permission set of a role.

    Duplicate IDs collapse. An empty list clears the role. Nothing is applied
    when the role or any permission ID is unknown.

    Raises:
        NotFoundError: If the role does not exist
        ValidationError: If any permission ID does not resolve
    """
    role = await get_role(db, role_id)
    permissions = await get_permissions_by_ids(db, permission_ids)

    role.permissions = permissions
    await db.flush()

    log.info("Replaced permissions of role %s: %d permissions", role.name, len(permissions))
    return await _reload(db, role.id)
