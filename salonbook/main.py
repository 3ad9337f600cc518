# salonbook/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salonbook.config import settings
from salonbook.db import init_db
from salonbook.errors import SchedulingError
from salonbook.logging_config import setup_logging
from salonbook.routers import (
    appointments_routes,
    salon_routes,
    services_routes,
    stylists_routes,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    init_db()
    logger.info("%s started (timezone %s)", settings.APP_NAME, settings.BUSINESS_TIMEZONE)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(salon_routes.router)
app.include_router(stylists_routes.router)
app.include_router(services_routes.router)
app.include_router(appointments_routes.router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.__class__.__name__},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}
