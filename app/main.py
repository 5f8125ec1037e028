from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.database.engine import init_db
from app.core.errors import TrackerError, UnauthorizedError
from app.features.access.guard import login_redirect
from app.features.access.routes import router as access_router
from app.features.audit.routes import router as audit_router
from app.features.modules.routes import router as module_router
from app.features.permissions.routes import router as permission_router
from app.features.projects.routes import router as project_router
from app.features.roles.routes import router as role_router
from app.features.teams.routes import router as team_router
from app.features.users.routes import router as user_router
from app.features.users.dependencies import get_authorization_header
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="Team Tracker Backend",
    description="Project, team and role-based access backend with Appwrite authentication",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
limiter = Limiter(key_func=get_authorization_header)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(UnauthorizedError)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedError):
    # Send the caller to login, then back to what they asked for
    login_url = exc.redirect_to or login_redirect(request.url.path)
    body = exc.to_dict()
    body["details"] = {**body["details"], "loginUrl": login_url}
    log.info("Unauthenticated request to %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=401, content=body, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(TrackerError)
async def tracker_exception_handler(request: Request, exc: TrackerError):
    log.info("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Initialize database on application startup."""
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Team Tracker Backend API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "All endpoints except / and /health require a Bearer token in the Authorization header",
            "login_url": config.LOGIN_URL,
        },
        "features": {
            "modules": "Permission grouping (USER, PROJECT, TEAM, ...)",
            "permissions": "Named capabilities, unique within their module",
            "roles": "Permission bundles with a SUPER_ADMIN/ADMIN/MANAGER/USER level",
            "users": "Profiles, project role assignments and complete information",
            "projects": "Projects and their members",
            "teams": "Teams within projects and their members",
            "access": "Effective permissions and capability checks for the caller",
            "audit_logs": "Trail of every catalog, role and assignment write"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(user_router, prefix="/users", tags=["users"])
# Alias for singular form (if frontend uses /user/me)
app.include_router(user_router, prefix="/user", tags=["users"], include_in_schema=False)

# Permission catalog
app.include_router(module_router, prefix="/modules", tags=["modules"])
app.include_router(permission_router, prefix="/permissions", tags=["permissions"])

# Roles
app.include_router(role_router, prefix="/roles", tags=["roles"])

# Projects and teams
app.include_router(project_router, prefix="/projects", tags=["projects"])
app.include_router(team_router, prefix="/teams", tags=["teams"])

# Access checks for the caller
app.include_router(access_router, prefix="/access", tags=["access"])

# Audit trail
app.include_router(audit_router, prefix="/audit-logs", tags=["audit"])
