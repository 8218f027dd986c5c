import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from campus_events.core.config import settings
from campus_events.core.exceptions import CampusEventsError
from campus_events.database.db import Base, engine
from campus_events.routes import events, registrations, reminders

# Import models so that they register with Base.metadata
from campus_events.models.events import Event  # noqa: F401
from campus_events.models.registrations import Registration  # noqa: F401

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # In production, use migrations such as Alembic
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Campus Events", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CampusEventsError)
def handle_campus_events_error(request: Request, exc: CampusEventsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(events.router)
app.include_router(registrations.router)
app.include_router(reminders.router)
