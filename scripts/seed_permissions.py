"""
Seed script to populate default modules, permissions and roles.

Run this script after database initialization to create:
- Default modules
- Default permissions (the VIEW_* capabilities plus CRUD permissions)
- Default roles, one per level, with their permission sets
- Optionally a SUPER_ADMIN for BOOTSTRAP_ADMIN_EMAIL on the PLATFORM project

Existing rows are left alone, so the script can be re-run safely.

Usage:
    python -m scripts.seed_permissions
"""
import asyncio
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import AsyncSessionLocal, init_db
from app.features.modules.models import Module
from app.features.permissions.models import Permission, PermissionAction
from app.features.projects.models import Project, ProjectRoleAssignment
from app.features.roles.models import Role, RoleLevel
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


DEFAULT_MODULES = [
    # (code, name, description)
    ("DASHBOARD", "Dashboard", "Overview pages"),
    ("USER", "User Management", "User profiles and assignments"),
    ("PROJECT", "Project Management", "Projects and their members"),
    ("TEAM", "Team Management", "Teams within projects"),
    ("MODULE", "Module Management", "Permission modules"),
    ("PERMISSION", "Permission Management", "Permission catalog"),
    ("ROLE", "Role Management", "Roles and their permissions"),
    ("DAILY_UPDATE", "Daily Updates", "Daily progress updates"),
    ("REPORT", "Reports", "Project and team reports"),
    ("CONFIGURATION", "Configuration", "System configuration"),
]

DEFAULT_PERMISSIONS = [
    # (name, module code, action, description)
    ("VIEW_DASHBOARD", "DASHBOARD", PermissionAction.READ, "View the dashboard"),

    ("VIEW_USER_MANAGEMENT", "USER", PermissionAction.READ, "View users and their complete information"),
    ("CREATE_USER", "USER", PermissionAction.CREATE, "Create users"),
    ("UPDATE_USER", "USER", PermissionAction.UPDATE, "Update and (de)activate users"),
    ("MANAGE_USER_ROLES", "USER", PermissionAction.MANAGE, "Replace user roles and assignments"),

    ("VIEW_PROJECT_MANAGEMENT", "PROJECT", PermissionAction.READ, "View projects"),
    ("CREATE_PROJECT", "PROJECT", PermissionAction.CREATE, "Create projects"),
    ("UPDATE_PROJECT", "PROJECT", PermissionAction.UPDATE, "Update projects"),
    ("MANAGE_PROJECT_MEMBERS", "PROJECT", PermissionAction.MANAGE, "Replace project members"),

    ("VIEW_TEAM_MANAGEMENT", "TEAM", PermissionAction.READ, "View teams"),
    ("CREATE_TEAM", "TEAM", PermissionAction.CREATE, "Create teams"),
    ("UPDATE_TEAM", "TEAM", PermissionAction.UPDATE, "Update teams"),
    ("MANAGE_TEAM_MEMBERS", "TEAM", PermissionAction.MANAGE, "Replace team members"),

    ("VIEW_MODULE_MANAGEMENT", "MODULE", PermissionAction.READ, "View modules"),
    ("VIEW_PERMISSION_MANAGEMENT", "PERMISSION", PermissionAction.READ, "View permissions"),
    ("VIEW_ROLE_MANAGEMENT", "ROLE", PermissionAction.READ, "View roles"),
    ("MANAGE_ROLE_PERMISSIONS", "ROLE", PermissionAction.MANAGE, "Replace role permissions"),

    ("VIEW_DAILY_UPDATES", "DAILY_UPDATE", PermissionAction.READ, "View own daily updates"),
    ("VIEW_DAILY_UPDATES_FULL", "DAILY_UPDATE", PermissionAction.READ, "View every daily update"),
    ("CREATE_DAILY_UPDATE", "DAILY_UPDATE", PermissionAction.CREATE, "Submit daily updates"),
    ("APPROVE_DAILY_UPDATE", "DAILY_UPDATE", PermissionAction.APPROVE, "Approve daily updates"),

    ("VIEW_REPORTS", "REPORT", PermissionAction.READ, "View reports"),
    ("VIEW_CONFIGURATION", "CONFIGURATION", PermissionAction.READ, "View configuration"),
]

DEFAULT_ROLES = {
    "Super Admin": {
        "description": "Full access to every capability",
        "level": RoleLevel.SUPER_ADMIN,
        "permissions": "ALL",
    },
    "Admin": {
        "description": "Manages users, projects and teams",
        "level": RoleLevel.ADMIN,
        "permissions": [
            "VIEW_DASHBOARD", "VIEW_USER_MANAGEMENT", "CREATE_USER", "UPDATE_USER",
            "VIEW_PROJECT_MANAGEMENT", "CREATE_PROJECT", "UPDATE_PROJECT", "MANAGE_PROJECT_MEMBERS",
            "VIEW_TEAM_MANAGEMENT", "CREATE_TEAM", "UPDATE_TEAM", "MANAGE_TEAM_MEMBERS",
            "VIEW_DAILY_UPDATES_FULL", "VIEW_REPORTS",
        ],
    },
    "Project Manager": {
        "description": "Runs projects and their teams",
        "level": RoleLevel.MANAGER,
        "permissions": [
            "VIEW_DASHBOARD", "VIEW_PROJECT_MANAGEMENT", "UPDATE_PROJECT", "MANAGE_PROJECT_MEMBERS",
            "VIEW_TEAM_MANAGEMENT", "CREATE_TEAM", "UPDATE_TEAM", "MANAGE_TEAM_MEMBERS",
            "VIEW_DAILY_UPDATES_FULL", "APPROVE_DAILY_UPDATE", "VIEW_REPORTS",
        ],
    },
    "Developer": {
        "description": "Submits daily updates",
        "level": RoleLevel.USER,
        "permissions": ["VIEW_DASHBOARD", "VIEW_DAILY_UPDATES", "CREATE_DAILY_UPDATE"],
    },
}

PLATFORM_PROJECT_CODE = "PLATFORM"


async def seed_modules(db: AsyncSession) -> dict[str, Module]:
    """Create default modules. Returns code -> Module, existing ones included."""
    log.info("Creating default modules...")
    result = await db.execute(select(Module))
    modules_map = {m.code: m for m in result.scalars().all()}

    for code, name, description in DEFAULT_MODULES:
        if code in modules_map:
            log.debug(f"Module '{code}' already exists, skipping")
            continue
        module = Module(code=code, name=name, description=description)
        db.add(module)
        modules_map[code] = module
        log.info(f"Created module: {code}")

    await db.flush()
    return modules_map


async def seed_permissions(db: AsyncSession, modules_map: dict[str, Module]) -> dict[str, Permission]:
    """Create default permissions. Returns name -> Permission, existing ones included."""
    log.info("Creating default permissions...")
    result = await db.execute(select(Permission))
    permissions_map = {p.name: p for p in result.scalars().all()}

    for name, module_code, action, description in DEFAULT_PERMISSIONS:
        if name in permissions_map:
            log.debug(f"Permission '{name}' already exists, skipping")
            continue
        permission = Permission(
            name=name,
            module_id=modules_map[module_code].id,
            action=action,
            description=description,
        )
        db.add(permission)
        permissions_map[name] = permission
        log.info(f"Created permission: {name}")

    await db.flush()
    log.info(f"{len(permissions_map)} permissions available")
    return permissions_map


async def seed_roles(db: AsyncSession, permissions_map: dict[str, Permission]) -> dict[str, Role]:
    """
    Create default roles and assign permissions.

    Args:
        db: Database session
        permissions_map: Dictionary of permission name -> Permission object
    """
    log.info("Creating default roles...")
    roles_map: dict[str, Role] = {}

    for role_name, role_config in DEFAULT_ROLES.items():
        result = await db.execute(select(Role).where(Role.name == role_name))
        existing = result.scalars().first()

        if existing:
            log.debug(f"Role '{role_name}' already exists, skipping")
            roles_map[role_name] = existing
            continue

        role = Role(
            name=role_name,
            description=role_config["description"],
            level=role_config["level"],
        )

        if role_config["permissions"] == "ALL":
            role.permissions = list(permissions_map.values())
            log.info(f"Created role '{role_name}' with ALL permissions")
        else:
            role_permissions = []
            for perm_name in role_config["permissions"]:
                if perm_name in permissions_map:
                    role_permissions.append(permissions_map[perm_name])
                else:
                    log.warning(f"Permission '{perm_name}' not found for role '{role_name}'")
            role.permissions = role_permissions
            log.info(f"Created role '{role_name}' with {len(role_permissions)} permissions")

        db.add(role)
        roles_map[role_name] = role

    await db.flush()
    log.info("Default roles created successfully")
    return roles_map


async def bootstrap_super_admin(db: AsyncSession, email: str, super_admin: Role) -> User:
    """
    Make `email` a SUPER_ADMIN on the PLATFORM project.

    The user profile is created if needed and linked to Appwrite by email on
    their first login.
    """
    result = await db.execute(select(Project).where(Project.code == PLATFORM_PROJECT_CODE))
    project = result.scalars().first()
    if project is None:
        project = Project(name="Platform", code=PLATFORM_PROJECT_CODE, description="Administration of the tracker")
        db.add(project)
        await db.flush()
        log.info(f"Created project {PLATFORM_PROJECT_CODE}")

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user is None:
        user = User(email=email, first_name="Admin", last_name="")
        db.add(user)
        await db.flush()
        log.info(f"Created user {email}")

    result = await db.execute(
        select(ProjectRoleAssignment).where(
            ProjectRoleAssignment.user_id == user.id,
            ProjectRoleAssignment.project_id == project.id,
            ProjectRoleAssignment.role_id == super_admin.id,
        )
    )
    if result.scalars().first() is None:
        db.add(ProjectRoleAssignment(user_id=user.id, project_id=project.id, role_id=super_admin.id))
        await db.flush()
        log.info(f"Assigned '{super_admin.name}' to {email} on {PLATFORM_PROJECT_CODE}")
    return user


async def seed(db: AsyncSession, admin_email: Optional[str] = None) -> dict[str, Role]:
    modules_map = await seed_modules(db)
    permissions_map = await seed_permissions(db, modules_map)
    roles_map = await seed_roles(db, permissions_map)
    if admin_email:
        await bootstrap_super_admin(db, admin_email, roles_map["Super Admin"])
    return roles_map


async def main():
    """Main function to seed modules, permissions and roles."""
    log.info("Starting permission seeding...")

    # Initialize database tables first
    log.info("Initializing database tables...")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            await seed(db, config.BOOTSTRAP_ADMIN_EMAIL)
            await db.commit()

            log.info("Permission seeding completed successfully!")
            log.info("")
            log.info("Default roles created:")
            for role_name, role_config in DEFAULT_ROLES.items():
                log.info(f"  - {role_name} ({role_config['level'].value}): {role_config['description']}")

        except Exception as e:
            log.error(f"Error seeding permissions: {e}", exc_info=True)
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
