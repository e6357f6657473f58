"""FastAPI application factory for MER automation."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mer_automation.common.config import get_settings
from mer_automation.common.logging import setup_logging
from mer_automation.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from mer_automation.deps import get_basket_service, get_db
        db = get_db()
        await db.init()
        await db.create_all()
        async with db.get_session() as session:
            await get_basket_service().ensure_tables(session)
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from mer_automation.activity.router import router as activity_router
    from mer_automation.baskets.router import router as baskets_router
    from mer_automation.exemptions.router import router as exemptions_router
    from mer_automation.training.router import router as training_router
    from mer_automation.registration.router import router as registration_router

    prefix = settings.api_prefix
    app.include_router(activity_router, prefix=prefix, tags=["active-users"])
    app.include_router(baskets_router, prefix=prefix, tags=["baskets"])
    app.include_router(exemptions_router, prefix=prefix, tags=["exemptions"])
    app.include_router(training_router, prefix=prefix, tags=["training"])
    app.include_router(registration_router, prefix=prefix, tags=["registration"])

    return app
