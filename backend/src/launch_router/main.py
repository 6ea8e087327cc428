"""FastAPI application entry - launch router."""

from . import config  # noqa: F401 - load .env on startup
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import router
from .config import LAUNCH_CONNECTIVITY_INTERVAL
from .logging_setup import configure_logging
from .services.connectivity import ConnectivityMonitor
from .services.gateway import LiveGateway
from .services.launcher import LaunchOrchestrator
from .services.store import FileStore

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = FileStore()
    gateway = LiveGateway(token_provider=store.push_token)
    orchestrator = LaunchOrchestrator(store, gateway)
    app.state.orchestrator = orchestrator
    monitor = None
    if LAUNCH_CONNECTIVITY_INTERVAL > 0:
        monitor = ConnectivityMonitor(orchestrator.set_connectivity, interval=LAUNCH_CONNECTIVITY_INTERVAL)
        monitor.start()
    try:
        yield
    finally:
        if monitor is not None:
            monitor.stop()
        # Tests may swap in their own orchestrator; close whichever is installed
        await app.state.orchestrator.close()
        await gateway.aclose()


app = FastAPI(
    title="Launch Router",
    description="Decide between the local catalog and a remote destination on app launch",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.get("/")
async def root():
    return {"service": "launch-router", "docs": "/docs"}
