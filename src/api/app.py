"""FastAPI application factory for the task graph REST API."""

from fastapi import APIRouter, FastAPI

from api.routes import register_routes


def create_app(graph) -> FastAPI:
    """Build and return a FastAPI app wired to the given TaskGraph."""
    app = FastAPI(title="task-graph", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_routes(api, graph)
    app.include_router(api)

    return app
