"""FastAPI app factory for the credit report ingestion API."""

from fastapi import FastAPI

from credit_ingest.api.reports import router as reports_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance.
    """
    app = FastAPI(title="Credit Report Ingestion API", version="0.1")
    app.include_router(reports_router)
    return app


# For uvicorn, expose `app` at module level
app = create_app()
