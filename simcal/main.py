import asyncio
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from simcal.config import settings
from simcal.database import check_db_connection
from simcal.utils.exceptions import AppException
from simcal.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    generic_exception_handler,
)
from simcal.workers.reminder_worker import reminder_loop

from simcal.api.v1 import auth
from simcal.api.v1 import bookings
from simcal.api.v1 import employees

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Simulator time booking API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = "/api/v1"
    app.include_router(auth.router,      prefix=PREFIX, tags=["Auth"])
    app.include_router(bookings.router,  prefix=PREFIX, tags=["Bookings"])
    app.include_router(employees.router, prefix=PREFIX, tags=["Employees"])

    # ─── Startup / Shutdown ───────────────────────────────────────────────────
    stop_event = asyncio.Event()
    tasks: list[asyncio.Task] = []

    @app.on_event("startup")
    async def on_startup():
        ok = check_db_connection()
        logger.info("DB connected" if ok else "DB connection FAILED")
        if settings.REMINDER_DISPATCH_ENABLED:
            stop_event.clear()
            tasks.append(asyncio.create_task(reminder_loop(stop_event)))

    @app.on_event("shutdown")
    async def on_shutdown():
        stop_event.set()
        for task in tasks:
            await task
        tasks.clear()

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("simcal.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
