import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from sqlmodel import Session

from alphabet.config import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    LOG_FILE,
    LOG_JSON,
    LOG_LEVEL,
)
from alphabet.database import create_db_and_tables, engine
from alphabet.errors import add_exception_handlers, request_id_middleware
from alphabet.logging_config import setup_logging
from alphabet.routers import admin, auth, fixtures, leaderboard, predictions
from alphabet.services.auth import ensure_admin_user

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging(level=LOG_LEVEL, json_output=LOG_JSON, log_file=LOG_FILE)

    # Startup: Create database tables
    create_db_and_tables()
    if ADMIN_PASSWORD:
        with Session(engine) as db:
            ensure_admin_user(db, ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD)

    logger.info("AlphaBet API started")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="AlphaBet Predictor",
    description="Predict match results and climb the leaderboard",
    version="1.0.0",
    lifespan=lifespan
)

app.middleware("http")(request_id_middleware)
add_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(fixtures.router)
app.include_router(predictions.router)
app.include_router(leaderboard.router)
app.include_router(admin.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=3001, reload=True)
