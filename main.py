from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import WorkflowError, workflow_http_error
from core.logging_config import logger
from models.enums import UserType
from services.dashboard import start_polling
from services.data_service import DataService

from routers.requests import router as requests_router
from routers.categories import router as categories_router
from routers.admin import router as admin_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Volunteer Match API: matching persons in need with CSR volunteers",
    )
    app.state.dashboard = None
    app.state.scheduler = None

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"🚀 Starting {settings.PROJECT_NAME} ({settings.ENV})")

        if settings.ENV == "production":
            validate_config_on_startup()

        if settings.ENABLE_SCHEDULER:
            data_service = DataService(user_type=UserType.system_admin.value)
            app.state.dashboard, app.state.scheduler = start_polling(data_service, daily_report=True)

        for route in app.routes:
            methods = ",".join(sorted(getattr(route, "methods", None) or []))
            logger.debug(f"➡️ {methods:10s} {getattr(route, 'path', '')}")

    @app.on_event("shutdown")
    async def on_shutdown():
        scheduler = app.state.scheduler
        if scheduler is not None:
            scheduler.shutdown(wait=False)

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(WorkflowError)
    async def handle_workflow(request: Request, exc: WorkflowError):
        http_exc = workflow_http_error(exc)
        logger.info(f"Rejected at {request.url.path} — {exc.message}")
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail, "error": http_exc.detail},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url} — {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(requests_router)
    app.include_router(categories_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
