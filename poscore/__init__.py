"""
POS Core API

Back-office HTTP API for a multi-branch point-of-sale system.

The platform features:
1. JWT authentication with rotating, revocable refresh tokens
2. Role-based access control enforced per route
3. User, role and permission management with an audit trail
4. The branch / warehouse / location hierarchy
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from poscore.config import Settings, get_settings
from poscore.common.auth.jwt import JWTConfig, TokenIssuer
from poscore.common.auth.registry import RefreshTokenRegistry, create_registry
from poscore.common.error_handling import register_exception_handlers
from poscore.common.logger import configure_logger, get_logger

logger = get_logger(__name__)


def build_services(app: FastAPI, session_factory, registry: RefreshTokenRegistry) -> None:
    """
    Wire repositories and services onto ``app.state``.

    Args:
        app: The application being started
        session_factory: Async session factory bound to the database
        registry: Store for live refresh tokens
    """
    from poscore.audit.service import AuditService
    from poscore.auth.credentials import CredentialVerifier
    from poscore.auth.guard import AccessGuard
    from poscore.auth.permissions import PermissionResolver
    from poscore.auth.service import AuthService
    from poscore.branches.repository import BranchRepository
    from poscore.roles.repository import RoleRepository
    from poscore.roles.service import RoleService
    from poscore.users.repository import UserRepository
    from poscore.users.service import UserService

    settings: Settings = app.state.settings
    timeout = settings.AUTH_CALL_TIMEOUT_SECONDS

    users = UserRepository(session_factory)
    roles = RoleRepository(session_factory)
    branches = BranchRepository(session_factory)
    audit = AuditService(session_factory)
    resolver = PermissionResolver(roles)

    app.state.refresh_registry = registry
    app.state.access_guard = AccessGuard(resolver, timeout_seconds=timeout)
    app.state.auth_service = AuthService(
        users=users,
        verifier=CredentialVerifier(users),
        issuer=app.state.token_issuer,
        registry=registry,
        resolver=resolver,
        call_timeout_seconds=timeout,
    )
    app.state.user_service = UserService(users, roles, branches, audit)
    app.state.role_service = RoleService(roles, audit)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI application lifespan context manager.

    Opens the database and the refresh token registry on startup and
    releases both on shutdown.
    """
    from poscore.database.init_db import (
        close_database,
        create_schema,
        get_session_factory,
        initialize_database,
    )

    settings: Settings = app.state.settings
    logger.info("Application startup sequence initiated.")

    await initialize_database(
        database_url=settings.DATABASE_URL,
        echo=settings.SQL_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )
    if settings.AUTO_DB_INIT:
        await create_schema()

    registry = app.state.refresh_registry
    if registry is None:
        registry = create_registry(settings)
    build_services(app, get_session_factory(), registry)

    logger.info("Application startup sequence complete.")
    try:
        yield
    finally:
        logger.info("Application shutdown sequence initiated.")
        await registry.close()
        await close_database()
        logger.info("Application shutdown sequence complete.")


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[RefreshTokenRegistry] = None,
) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Settings are validated here, so a missing token secret stops the process
    before it serves a single request.

    Args:
        settings: Settings to use instead of the environment
        registry: Refresh token registry to use instead of the configured one

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    configure_logger(
        level=settings.LOG_LEVEL,
        use_json=settings.LOG_JSON,
        log_file=settings.LOG_FILE or None,
    )

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Back-office API for users, roles, permissions and branches",
        version=settings.API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_issuer = TokenIssuer(JWTConfig.from_settings(settings))
    app.state.refresh_registry = registry

    from poscore.middleware import RequestLoggingMiddleware

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from poscore.api import main_router
    app.include_router(main_router)

    logger.info(f"Application created with {len(app.routes)} routes ({settings.ENVIRONMENT})")
    return app


__all__ = ["create_app", "lifespan", "build_services"]
