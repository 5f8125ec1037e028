"""
Permission catalog operations.
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.features.modules.models import Module
from app.features.permissions.models import Permission, PermissionAction, PermissionName
from app.features.permissions.schemas import PermissionCreate, PermissionUpdate
from app.utils import get_logger


log = get_logger(__name__)


async def _ensure_name_free(
    db: AsyncSession, module_id: str, name: str, exclude_id: Optional[str] = None
) -> None:
    stmt = select(Permission.id).where(Permission.module_id == module_id, Permission.name == name)
    if exclude_id:
        stmt = stmt.where(Permission.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ValidationError(f"Permission '{name}' already exists in this module", field="name")


async def get_permission(db: AsyncSession, permission_id: str) -> Permission:
    permission = await db.get(Permission, permission_id)
    if permission is None:
        raise NotFoundError("Permission", permission_id)
    return permission


async def list_permissions(
    db: AsyncSession,
    module_id: Optional[str] = None,
    action: Optional[PermissionAction] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Permission]:
    stmt = select(Permission)
    if module_id:
        stmt = stmt.where(Permission.module_id == module_id)
    if action:
        stmt = stmt.where(Permission.action == action)
    if search:
        stmt = stmt.where(Permission.name.ilike(f"%{search}%"))
    if is_active is not None:
        stmt = stmt.where(Permission.is_active == is_active)
    stmt = stmt.order_by(Permission.name, Permission.id).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_permissions_by_ids(db: AsyncSession, permission_ids: list[str]) -> list[Permission]:
    """
    Resolve a list of permission IDs, collapsing duplicates.

    Raises:
        ValidationError: If any ID does not reference an existing permission
    """
    wanted = list(dict.fromkeys(permission_ids))
    if not wanted:
        return []
    result = await db.execute(select(Permission).where(Permission.id.in_(wanted)))
    found = {p.id: p for p in result.scalars().all()}
    missing = [pid for pid in wanted if pid not in found]
    if missing:
        raise ValidationError(
            f"Unknown permission IDs: {', '.join(missing)}",
            field="permissionIds",
            missing=missing,
        )
    return [found[pid] for pid in wanted]


async def create_permission(db: AsyncSession, data: PermissionCreate) -> Permission:
    """
    Create a permission inside a module.

    Raises:
        NotFoundError: If the module does not exist or is inactive
        ValidationError: If the name is malformed or already used in the module
    """
    name = PermissionName(data.name)

    module = await db.get(Module, data.module_id)
    if module is None or not module.is_active:
        raise NotFoundError("Module", data.module_id, message="Active module not found")

    await _ensure_name_free(db, module.id, name)

    permission = Permission(
        name=str(name),
        module=module,
        action=data.action,
        description=data.description,
    )
    db.add(permission)
    await db.flush()
    await db.refresh(permission)

    log.info("Created permission %s in module %s", permission.name, module.code)
    return permission


async def update_permission(db: AsyncSession, permission_id: str, data: PermissionUpdate) -> Permission:
    """Update a permission. Renames are re-checked against the owning module."""
    permission = await get_permission(db, permission_id)
    update_data = data.model_dump(exclude_unset=True)

    if "name" in update_data:
        if update_data["name"] is None:
            raise ValidationError("Permission name must not be empty", field="name")
        update_data["name"] = str(PermissionName(update_data["name"]))
        await _ensure_name_free(db, permission.module_id, update_data["name"], exclude_id=permission.id)
    if "is_active" in update_data and update_data["is_active"] is None:
        raise ValidationError("is_active must not be null", field="is_active")

    for key, value in update_data.items():
        setattr(permission, key, value)

    await db.flush()
    await db.refresh(permission)
    return permission
