"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import Base, engine

# Import routers
from app.routers import users, communities, events, tags, search

# Import all models so Base.metadata knows about them
from app.models.user import User                                  # noqa: F401
from app.models.community import Community, CommunityMember        # noqa: F401
from app.models.event import Event                                # noqa: F401
from app.models.rsvp import EventRSVP                             # noqa: F401
from app.models.activity import CommunityActivity                 # noqa: F401
from app.models.embedding import EventEmbedding, UserInterestVector  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Community Hub",
    description="Interest communities with events, capacity-limited RSVPs, personalized tags and search",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(communities.router, prefix="/api/communities", tags=["Communities"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(tags.router, prefix="/api/tags", tags=["Tags"])
app.include_router(search.router, prefix="/api/search", tags=["Search"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
