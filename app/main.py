from opentelemetry.instrumentation import auto_instrumentation

auto_instrumentation.initialize()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi_errors_rfc9457 import RFC9457Config, setup_rfc9457_handlers

from app.api.v1 import api as api_v1
from app.core.config import settings
from app.core.exceptions import backend_error_handler
from app.core.storage import LocalStorage
from app.infrastructure.backend.auth import AuthClient
from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.exceptions import BackendError
from app.services.session_manager import SessionManager

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gère le cycle de vie de l'application:
    - Initialise les clients du backend (REST et auth, httpx async).
    - Construit le gestionnaire de session et restaure la session persistée.
    - Arrête le rafraîchissement et ferme les clients à l'arrêt.
    """
    logger.info("=== Application Startup ===")

    backend_client = BackendClient()
    auth_client = AuthClient()
    session_manager = SessionManager(
        auth_client=auth_client,
        backend_client=backend_client,
        storage=LocalStorage(settings.SESSION_STORAGE_PATH),
    )
    app.state.backend_client = backend_client
    app.state.auth_client = auth_client
    app.state.session_manager = session_manager
    logger.info(f"Client backend initialisé: {backend_client.base_url}")

    restored = await session_manager.restore_session()
    logger.info(f"Session restaurée: {restored}")

    logger.info("=== Application Startup Complete ===")
    try:
        yield
    finally:
        logger.info("=== Application Shutdown ===")
        await session_manager.close()
        await auth_client.close()
        await backend_client.close()
        logger.info("=== Application Shutdown Complete ===")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
    openapi_url=f"{settings.get_api_prefix()}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Exception handlers RFC 9457 Problem Details
config_rfc9457 = RFC9457Config(
    base_url="about:blank",
    include_trace_id=True,
    expose_internal_errors=settings.DEBUG,
    include_error_pages=False,
)
setup_rfc9457_handlers(app, config=config_rfc9457)
app.add_exception_handler(BackendError, backend_error_handler)

# Middleware CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware Trusted Hosts
if settings.ENVIRONMENT not in ("development", "test"):
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.TRUSTED_HOSTS,
    )

app.include_router(api_v1.router, prefix=settings.get_api_prefix("v1"))
