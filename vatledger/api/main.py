import logging

from fastapi import FastAPI

from vatledger.api.routes_health import router as health_router
from vatledger.api.routes_receipts import router as receipts_router
from vatledger.api.routes_reports import router as reports_router
from vatledger.api.routes_saft import router as saft_router
from vatledger.api.routes_vat import router as vat_router
from vatledger.core.config import settings
from vatledger.core.errors import register_error_handlers
from vatledger.core.logger import init_logging
from vatledger.db.session import init_db

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    init_logging()

    is_production = settings.ENV.lower() == "prod"
    app = FastAPI(
        title=settings.APP_NAME,
        debug=False,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )
    register_error_handlers(app)
    if not is_production:
        init_db()
    app.include_router(vat_router, tags=["vat"])
    app.include_router(saft_router, tags=["saft"])
    app.include_router(reports_router, tags=["reports"])
    app.include_router(receipts_router, tags=["receipts"])
    app.include_router(health_router)

    @app.on_event("shutdown")
    async def shutdown_event():
        from vatledger.db.redis_client import close_redis_pool
        close_redis_pool()

    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
    return app


app = create_app()
