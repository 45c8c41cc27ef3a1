"""
IT Inventory Portal - Main Application Entry Point
"""
import logging
import secrets
import time
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from inventory_portal.config import settings
from inventory_portal.database import AsyncSessionLocal, init_db
from inventory_portal.exceptions import DuplicateKeyError, InventoryPortalError, conflicting_field
from inventory_portal.extensions import limiter
from inventory_portal.routers import auth, dashboard, inventory, reports, staff, users
from inventory_portal.schemas.common import envelope, error_envelope

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def create_default_admin():
    """Create the bootstrap admin account when no admin exists yet."""
    from inventory_portal.models.user import RoleEnum, User
    from inventory_portal.services.auth import hash_password

    async with AsyncSessionLocal() as db:
        existing_admin = await db.execute(
            select(User.id).where(User.role == RoleEnum.admin.value).limit(1)
        )
        if existing_admin.first():
            return

        password = settings.DEFAULT_ADMIN_PASSWORD or secrets.token_urlsafe(16)
        db.add(User(
            username=settings.DEFAULT_ADMIN_USERNAME.lower(),
            email=settings.DEFAULT_ADMIN_EMAIL.lower(),
            password_hash=hash_password(password),
            role=RoleEnum.admin.value,
            is_active=True,
        ))
        await db.commit()

        if settings.DEFAULT_ADMIN_PASSWORD:
            logger.info("Default admin %s created", settings.DEFAULT_ADMIN_USERNAME)
        else:
            logger.warning("=" * 60)
            logger.warning("  DEFAULT ADMIN CREDENTIALS (first run only)")
            logger.warning("  Username: %s", settings.DEFAULT_ADMIN_USERNAME)
            logger.warning("  Password: %s", password)
            logger.warning("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    await init_db()
    await create_default_admin()
    yield
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Rate limiting
app.state.limiter = limiter

# CORS
origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID middleware for log correlation
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "[%s] %s %s -> %d (%.1f ms)",
        request_id, request.method, request.url.path, response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


# Exception handlers: every failure leaves as the standard envelope
@app.exception_handler(InventoryPortalError)
async def portal_error_handler(request: Request, exc: InventoryPortalError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, errors=exc.errors),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = err.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.append(f"{field}: {msg}" if field else msg)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Validation error", errors=errors),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    field = conflicting_field(str(exc.orig))
    if field is None:
        logger.error("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope("Constraint violation"),
        )
    err = DuplicateKeyError(field)
    return JSONResponse(status_code=err.status_code, content=error_envelope(err.message))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded on %s from %s", request.url.path, request.client.host if request.client else "unknown")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_envelope("Too many requests, please try again later", error=str(exc.detail)),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = "Something went wrong" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("Internal Server Error", error=detail),
    )


# Routers
app.include_router(auth.router)
app.include_router(inventory.router)
app.include_router(staff.router)
app.include_router(users.router)
app.include_router(dashboard.router)
app.include_router(reports.router)


@app.get("/api/health")
async def health():
    return envelope({"status": "ok", "version": settings.APP_VERSION}, "Server is running")


@app.get("/api")
async def api_info():
    return envelope({
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "inventory": "/api/inventory",
            "ojt": "/api/ojt",
            "users": "/api/users",
            "dashboard": "/api/dashboard",
            "reports": "/api/reports",
        },
    })


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "inventory_portal.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
