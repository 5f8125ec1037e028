"""
Pytest configuration and fixtures for testing.

Every test gets a fresh in-memory SQLite database. `db` is a session for
service-level tests and for seeding data before HTTP calls; commit it before
calling the API so the request sessions see the rows. `client` talks to the
FastAPI app over ASGI with get_db overridden to the same database.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database.base import Base
from app.core.database.engine import get_db, import_models
from app.features.modules import service as module_service
from app.features.modules.schemas import ModuleCreate
from app.features.permissions import service as permission_service
from app.features.permissions.schemas import PermissionCreate
from app.features.projects import service as project_service
from app.features.projects.models import Project
from app.features.projects.schemas import ProjectCreate
from app.features.roles import service as role_service
from app.features.roles.models import Role, RoleLevel
from app.features.roles.schemas import RoleCreate
from app.features.teams import service as team_service
from app.features.teams.models import Team
from app.features.teams.schemas import TeamCreate
from app.features.users import service as user_service
from app.features.users.models import User
from app.features.users.schemas import AssignmentIn, UserCreate
from app.main import app


SQLALCHEMY_TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_token(appwrite_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Appwrite-shaped JWT; the backend only checks the userId claim and expiry."""
    payload = {
        "userId": appwrite_id,
        "sessionId": "test-session",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, "test-secret", algorithm="HS256")


class SeededUser:
    """Plain snapshot of a seeded user, safe to read after any rollback."""

    def __init__(self, user: User) -> None:
        self.id = user.id
        self.email = user.email
        self.appwrite_id = user.appwrite_id


class GraphBuilder:
    """
    Builds modules, permissions, roles, projects, teams and users through the
    services, so test data obeys the same rules as API writes.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._modules: dict[str, str] = {}
        self._permissions: dict[str, str] = {}
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def module(self, code: str = "GENERAL", name: Optional[str] = None) -> str:
        if code not in self._modules:
            module = await module_service.create_module(
                self.db, ModuleCreate(name=name or code.title(), code=code)
            )
            self._modules[code] = module.id
        return self._modules[code]

    async def permission(self, name: str, module_code: str = "GENERAL") -> str:
        key = f"{module_code}:{name}"
        if key not in self._permissions:
            module_id = await self.module(module_code)
            permission = await permission_service.create_permission(
                self.db, PermissionCreate(name=name, module_id=module_id)
            )
            self._permissions[key] = permission.id
        return self._permissions[key]

    async def role(
        self, name: str, level: RoleLevel = RoleLevel.USER, permissions: tuple[str, ...] = ()
    ) -> Role:
        ids = [await self.permission(p) for p in permissions]
        return await role_service.create_role(self.db, RoleCreate(name=name, level=level, permission_ids=ids))

    async def project(self, code: Optional[str] = None) -> Project:
        code = code or f"P{self._next()}"
        return await project_service.create_project(self.db, ProjectCreate(name=f"Project {code}", code=code))

    async def team(self, project: Project, name: Optional[str] = None) -> Team:
        return await team_service.create_team(
            self.db, TeamCreate(name=name or f"Team {self._next()}", project_id=project.id)
        )

    async def user(self, first_name: Optional[str] = None) -> User:
        n = self._next()
        first_name = first_name or f"User{n}"
        return await user_service.create_user(
            self.db,
            UserCreate(
                email=f"{first_name.lower()}{n}@tracker.io",
                first_name=first_name,
                last_name="Tester",
                appwrite_id=f"aw-{first_name.lower()}-{n}",
            ),
        )

    async def assign(self, user: User, *assignments: tuple) -> User:
        items = [
            AssignmentIn(project_id=a[0].id, role_id=a[1].id, team_id=a[2].id if len(a) > 2 and a[2] else None)
            for a in assignments
        ]
        return await user_service.replace_assignments(self.db, user.id, items)

    async def user_with_level(self, level: RoleLevel, permissions: tuple[str, ...] = ()) -> User:
        """A user holding one role of `level` on a fresh project."""
        role = await self.role(f"{level.value.title()} {self._next()}", level, permissions)
        project = await self.project()
        user = await self.user(level.value.split("_")[-1].title())
        return await self.assign(user, (project, role))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def graph(db) -> GraphBuilder:
    return GraphBuilder(db)


@pytest.fixture
async def client(session_factory) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def super_admin(graph, db) -> SeededUser:
    """A committed SUPER_ADMIN holding VIEW_USER_MANAGEMENT."""
    user = await graph.user_with_level(RoleLevel.SUPER_ADMIN, ("VIEW_USER_MANAGEMENT",))
    await db.commit()
    return SeededUser(user)


@pytest.fixture
def token_for():
    """Token for a seeded user (anything with an appwrite_id)."""
    def _token(user, expires_in: timedelta = timedelta(hours=1)) -> str:
        return make_token(user.appwrite_id, expires_in)
    return _token


@pytest.fixture
def headers_for(token_for):
    """Authorization headers for a seeded user."""
    def _headers(user, expires_in: timedelta = timedelta(hours=1)) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(user, expires_in)}"}
    return _headers


@pytest.fixture
def complete_information_payload() -> dict:
    """Wire-format complete information of a MANAGER holding VIEW_PROJECT_MANAGEMENT."""
    return {
        "profile": {
            "id": "u-1",
            "email": "lead@tracker.io",
            "firstName": "Lead",
            "lastName": "Person",
            "isActive": True,
            "createdAt": "2026-01-01T00:00:00",
            "updatedAt": "2026-01-01T00:00:00",
        },
        "projects": [{
            "id": "p-1",
            "name": "Tracker",
            "code": "TRACKER",
            "status": "ACTIVE",
            "isActive": True,
            "teams": [],
            "roles": [
                {"id": "r-1", "name": "Lead", "level": "MANAGER",
                 "permissions": [{"id": "perm-1", "name": "VIEW_PROJECT_MANAGEMENT"}]},
                {"id": "r-2", "name": "Dev", "level": "USER", "permissions": []},
            ],
        }],
        "commonPermissions": ["VIEW_PROJECT_MANAGEMENT"],
    }
