'''
Application factory: wires settings, the database lifespan, error
handlers and the API routers together.
'''
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from .database import engine as db_engine
from .common.logger import log
from .common.config import Settings
from .common.exceptions import AttendanceAppError
from .api import admin, attendance, class_count, commission, hidden, holidays, students, tuition


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    settings: Settings = app.state.settings

    # --- On App Startup ---
    log.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}...")
    db_engine.create_db_engine_and_session_factory(settings.database_url)
    if settings.CREATE_TABLES:
        await db_engine.create_tables()
    if not settings.ADMIN_PASSWORD:
        log.warning("ADMIN_PASSWORD is not set; every admin route will answer 401.")

    yield # --- Application is now running ---

    # --- On App Shutdown ---
    log.info("Application lifespan shutdown...")
    await db_engine.dispose_db_engine()


async def app_error_handler(request: Request, exc: AttendanceAppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    log.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Builds the FastAPI app around one Settings instance."""
    settings = settings or Settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    # --- Add CORS Middleware ---
    origins = [
        # URLs of the local frontend dev servers
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Extend with environment-specific origins
    origins.extend(settings.BACKEND_CORS_ORIGINS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],)
    # --- End of CORS Middleware ---

    app.add_exception_handler(AttendanceAppError, app_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    @app.get("/")
    async def health_check():
        return {"status": "ok", "message": f"{settings.APP_NAME} is running"}

    app.include_router(students.router)
    app.include_router(attendance.router)
    app.include_router(admin.router)
    app.include_router(tuition.router)
    app.include_router(commission.router)
    app.include_router(hidden.router)
    app.include_router(holidays.router)
    app.include_router(class_count.router)

    return app


app = create_app()
