"""Main FastAPI application for the goal task planner."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from goalplanner.api.routes.goal_plan import router as goal_plan_router
from goalplanner.core.config import settings
from goalplanner.core.logging import configure_logging
from goalplanner.core.middleware import RequestIDMiddleware
from goalplanner.observability.client import init_opik
from goalplanner.observability.tracing import trace

configure_logging(log_level=settings.log_level, debug=settings.debug)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Initialize observability backends after the event loop starts."""
    init_opik()
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestIDMiddleware)
app.include_router(goal_plan_router)


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
