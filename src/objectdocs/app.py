"""objectdocs FastAPI application: health surface for a DocumentStore."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, FastAPI, Request
from pydantic import BaseModel

from objectdocs import __version__
from objectdocs.document_store import DocumentStore

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    time: str
    version: str
    backend: str


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """Health check endpoint.

    Probes the object store behind app.state.document_store.

    Returns:
        HealthResponse with status "ok" when the store answers, "degraded"
        otherwise.
    """
    document_store: DocumentStore = request.app.state.document_store
    summary = document_store.health()
    return HealthResponse(
        status=summary["status"],
        time=datetime.now(UTC).isoformat(),
        version=__version__,
        backend=summary["backend"],
    )


def create_app(document_store: DocumentStore | None = None) -> FastAPI:
    """Create the objectdocs FastAPI application.

    Args:
        document_store: Store to report on. Built from the environment if None.
    """
    app = FastAPI(
        title="objectdocs",
        description="Document-store emulation over an object store",
        version=__version__,
    )
    app.state.document_store = document_store if document_store is not None else DocumentStore()
    app.include_router(router)
    return app
