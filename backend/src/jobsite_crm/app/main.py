"""FastAPI application entry point for the job-site CRM API."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobsite_crm.app.config import get_settings
from jobsite_crm.infra.database import async_session, dispose_db, init_db
from jobsite_crm.infra.seed_loader import load_seed
from jobsite_crm.services.preferences import PreferenceService
from jobsite_crm.services.workspace import Workspace

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load seed data, build the workspace, restore preferences."""
    settings = get_settings()
    await init_db()

    workspace = Workspace.from_seed(
        load_seed(settings.seed_path),
        legacy_note_author_id=settings.legacy_note_author_id,
        current_user_id=settings.default_user_id,
    )
    async with async_session() as db:
        await workspace.restore_preferences(PreferenceService(db))

    app.state.workspace = workspace
    yield
    await dispose_db()


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Job-Site CRM API",
    lifespan=lifespan,
    debug=settings.debug,
)

_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from jobsite_crm.app.routes.session import router as session_router
from jobsite_crm.app.routes.projects import router as projects_router
from jobsite_crm.app.routes.opportunities import router as opportunities_router
from jobsite_crm.app.routes.views import router as views_router
from jobsite_crm.app.routes.reference import router as reference_router
from jobsite_crm.app.routes.preferences import router as preferences_router

app.include_router(session_router)
app.include_router(projects_router)
app.include_router(opportunities_router)
app.include_router(views_router)
app.include_router(reference_router)
app.include_router(preferences_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "jobsite-crm"}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "jobsite_crm.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
