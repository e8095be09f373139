# coworking_scheduler/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coworking_scheduler.config import ALLOWED_ORIGINS, NOTIFY_WEBHOOK_URL
from coworking_scheduler.logging_config import setup_logging
from coworking_scheduler.middleware import RequestIDMiddleware
from coworking_scheduler.routes.availability import router as availability_router
from coworking_scheduler.routes.health import router as health_router
from coworking_scheduler.routes.metrics import router as metrics_router
from coworking_scheduler.routes.payments import router as payments_router
from coworking_scheduler.routes.reservations import router as reservations_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Coworking Scheduler API",
    description="Availability, pricing and reservation lifecycle for coworking spaces",
    version="1.0.0",
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(reservations_router, tags=["Reservations"])
app.include_router(availability_router, tags=["Availability"])
app.include_router(payments_router, tags=["Payments"])


@app.on_event("startup")
def startup_event() -> None:
    """Log effective wiring on startup."""
    logger.info(
        "application_started",
        event_publisher="webhook" if NOTIFY_WEBHOOK_URL else "log",
    )
