"""
Tests for the default catalog seed and the bootstrap SUPER_ADMIN.
"""
from sqlalchemy import func, select

from app.features.access.resolver import highest_role_level, resolve_user_complete_information
from app.features.modules.models import Module
from app.features.permissions.models import Permission
from app.features.roles.models import Role, RoleLevel
from app.features.users.models import User
from scripts.seed_permissions import DEFAULT_MODULES, DEFAULT_PERMISSIONS, DEFAULT_ROLES, seed


async def count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestSeed:
    async def test_creates_default_catalog(self, db):
        roles = await seed(db)

        assert await count(db, Module) == len(DEFAULT_MODULES)
        assert await count(db, Permission) == len(DEFAULT_PERMISSIONS)
        assert set(roles) == set(DEFAULT_ROLES)
        assert len(roles["Super Admin"].permissions) == len(DEFAULT_PERMISSIONS)
        assert roles["Developer"].level is RoleLevel.USER

    async def test_is_idempotent(self, db):
        await seed(db)
        await seed(db)

        assert await count(db, Module) == len(DEFAULT_MODULES)
        assert await count(db, Permission) == len(DEFAULT_PERMISSIONS)
        assert await count(db, Role) == len(DEFAULT_ROLES)

    def test_role_permissions_reference_the_catalog(self):
        names = {name for name, *_ in DEFAULT_PERMISSIONS}
        for role_config in DEFAULT_ROLES.values():
            if role_config["permissions"] != "ALL":
                assert set(role_config["permissions"]) <= names

    async def test_bootstrap_admin(self, db):
        await seed(db, admin_email="root@tracker.io")
        await seed(db, admin_email="root@tracker.io")

        user = (await db.execute(select(User).where(User.email == "root@tracker.io"))).scalar_one()
        info = await resolve_user_complete_information(db, user.id)

        assert highest_role_level(info) is RoleLevel.SUPER_ADMIN
        assert [p.code for p in info.projects] == ["PLATFORM"]
        assert len(info.projects[0].roles) == 1
        assert set(info.common_permissions) == {name for name, *_ in DEFAULT_PERMISSIONS}
