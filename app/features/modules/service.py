"""
Module registry operations.
"""
from typing import Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.features.modules.models import Module
from app.features.modules.schemas import ModuleCreate, ModuleUpdate
from app.utils import get_logger


log = get_logger(__name__)


def _normalize_code(code: str) -> str:
    normalized = code.strip().upper()
    if not normalized:
        raise ValidationError("Module code must not be empty", field="code")
    return normalized


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(Module.id).where(Module.code == code)
    if exclude_id:
        stmt = stmt.where(Module.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ValidationError(f"Module with code '{code}' already exists", field="code")


async def get_module(db: AsyncSession, module_id: str) -> Module:
    module = await db.get(Module, module_id)
    if module is None:
        raise NotFoundError("Module", module_id)
    return module


async def list_modules(
    db: AsyncSession,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Module]:
    stmt = select(Module)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Module.name.ilike(pattern), Module.code.ilike(pattern)))
    if is_active is not None:
        stmt = stmt.where(Module.is_active == is_active)
    stmt = stmt.order_by(Module.code).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_modules_with_permissions(db: AsyncSession) -> list[Module]:
    """Every module with its permissions (loaded eagerly by the relationship)."""
    result = await db.execute(
        select(Module).order_by(Module.code).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def create_module(db: AsyncSession, data: ModuleCreate) -> Module:
    """
    Create a module.

    Raises:
        ValidationError: If the code is empty or already used by another module
    """
    code = _normalize_code(data.code)
    await _ensure_code_free(db, code)

    module = Module(name=data.name, code=code, description=data.description)
    db.add(module)
    await db.flush()
    await db.refresh(module)

    log.info("Created module %s (%s)", module.code, module.id)
    return module


async def update_module(db: AsyncSession, module_id: str, data: ModuleUpdate) -> Module:
    """
    Update a module.

    Deactivating a module leaves its permissions untouched; only new
    permissions are refused while it is inactive.
    """
    module = await get_module(db, module_id)
    update_data = data.model_dump(exclude_unset=True)

    if "code" in update_data:
        if update_data["code"] is None:
            raise ValidationError("Module code must not be empty", field="code")
        update_data["code"] = _normalize_code(update_data["code"])
        await _ensure_code_free(db, update_data["code"], exclude_id=module.id)
    for key in ("name", "is_active"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(f"{key} must not be null", field=key)

    for key, value in update_data.items():
        setattr(module, key, value)

    await db.flush()
    await db.refresh(module)
    return module
