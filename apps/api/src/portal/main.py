"""
Scholarship Portal API

Application factory wiring: lifespan (Redis, database), the access gate,
CORS, the portal routers under the API prefix and the probe endpoints
that live outside it.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from portal.api import api_router
from portal.core.config import settings
from portal.core.database import close_db, database_ready, init_db
from portal.core.logging import configure_logging
from portal.core.redis import close_redis, init_redis, redis_ready
from portal.modules.access import AccessGateMiddleware

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect Redis and the database on startup, release them on shutdown.

    In production either failure aborts startup. Elsewhere it is reported
    and the portal starts anyway; without Redis the rate limiter counts
    per process.
    """
    print(f"Starting Scholarship Portal API ({settings.python_env})...")

    try:
        await init_redis()
        print("[OK] Redis connected (rate limiting)")
    except (RedisError, OSError) as e:
        print(f"[FAIL] Redis unavailable, rate limits fall back to memory: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        print("[OK] Database connected")
    except (SQLAlchemyError, OSError) as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    yield

    await close_redis()
    await close_db()
    print("[OK] Scholarship Portal API stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Scholarship Portal API",
        description="Portal de becarios: activación de cuentas, horas de voluntariado y documentos",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    application.include_router(api_router, prefix=settings.api_prefix)

    # Registered first so CORS wraps the gate and redirects carry CORS headers
    application.add_middleware(AccessGateMiddleware, prefix=settings.api_prefix)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    application.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    application.add_api_route("/ready", readiness_check, methods=["GET"], tags=["Health"])
    application.add_api_route(
        f"{settings.api_prefix}/unauthorized", unauthorized, methods=["GET"], tags=["Access"]
    )
    return application


async def health_check() -> dict[str, str]:
    """Liveness probe: the process is serving requests."""
    return {"status": "healthy"}


async def readiness_check() -> JSONResponse:
    """
    Readiness probe.

    The database is required. Redis only degrades rate limiting, so its
    state is reported without failing the probe.
    """
    database = await database_ready()
    redis = await redis_ready()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if database else "not_ready",
            "database": "up" if database else "down",
            "redis": "up" if redis else "degraded",
        },
    )


async def unauthorized() -> dict[str, str]:
    """Landing for identities that are neither a student nor an admin."""
    return {
        "error": "AUTHORIZATION_DENIED",
        "message": "Tu cuenta no tiene acceso al portal. Contacta a la Dirección de Integración.",
    }


app = create_app()
