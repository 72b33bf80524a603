import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.config import settings
from sitedesk.database import get_db
from sitedesk.routers import catalog, dashboard, site_details, sites
from sitedesk.services.scheduler import register_jobs, scheduler
from sitedesk.services.task_queue import queue_counts

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The worker usually owns the scheduler; the API only runs it when asked.
    if settings.run_scheduler:
        register_jobs()
        scheduler.start()
    yield
    if scheduler.running:
        scheduler.shutdown()


app = FastAPI(title="sitedesk", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sites.router)
app.include_router(site_details.router)
app.include_router(dashboard.router)
app.include_router(catalog.resources_router)
app.include_router(catalog.tools_router)
app.include_router(catalog.opengraph_router)


@app.get("/api/health")
async def health(db: AsyncSession = Depends(get_db)):
    return {"status": "ok", "queue": await queue_counts(db)}
