import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from camp_rotation.database import init_db
from camp_rotation.logging_config import setup_logging
from camp_rotation.routes import events, groups, rotation_schedule, stations

logger = logging.getLogger(__name__)

APP_NAME = "Camp Rotation Scheduler API"

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(events.router, prefix="/api", tags=["events"])
app.include_router(groups.router, prefix="/api", tags=["groups"])
app.include_router(stations.router, prefix="/api", tags=["stations"])
app.include_router(rotation_schedule.router, prefix="/api", tags=["rotation"])


@app.on_event("startup")
def on_startup():
    setup_logging()
    init_db()  # Use centralized init_db() which imports models and creates tables

    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("%s started with %d routes", APP_NAME, route_count)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
