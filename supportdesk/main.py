"""
Support Desk AI - FastAPI Backend
"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from supportdesk import __version__
from supportdesk.config import get_settings
from supportdesk.dependencies import get_dispatcher, get_store
from supportdesk.middleware.logging_middleware import LoggingMiddleware
from supportdesk.middleware.org_middleware import OrgMiddleware
from supportdesk.routes import ai_settings, health, tickets, worker
from supportdesk.services.run_sweeper import RunSweeper
from supportdesk.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the stale-run sweeper (when enabled); drain dispatched runs on shutdown."""
    sweeper_task = None
    if settings.run_sweep_enabled:
        sweeper = RunSweeper(get_store(), get_dispatcher())
        sweeper_task = asyncio.create_task(sweeper.run_forever(), name="ai-run-sweeper")

    yield

    if sweeper_task is not None:
        sweeper_task.cancel()
        try:
            await sweeper_task
        except asyncio.CancelledError:
            pass

    if get_dispatcher.cache_info().currsize:
        dispatcher = get_dispatcher()
        if dispatcher.pending:
            logger.info(f"Waiting for {dispatcher.pending} in-flight AI run(s)")
            await dispatcher.drain()


app = FastAPI(
    title="Support Desk AI",
    description="Support ticket backend with asynchronous AI draft runs",
    version=__version__,
    lifespan=lifespan
)

# Middleware order matters: last added runs first
# 1. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Org scoping
app.add_middleware(OrgMiddleware)

# 3. Logging (outermost, so rejected requests are logged too)
app.add_middleware(LoggingMiddleware)

app.include_router(tickets.router)
app.include_router(ai_settings.router)
app.include_router(worker.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "Support Desk AI API", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
