"""
FastAPI Application Entry Point.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import router
from .config import settings
from .errors import (
    GenerationError,
    GenerationTimeoutError,
    MalformedResponseError,
    RoamWarriorError,
    SessionNotFoundError,
    ValidationError,
    WizardStepError,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Most specific first
STATUS_CODES = [
    (ValidationError, 422),
    (GenerationTimeoutError, 504),
    (MalformedResponseError, 502),
    (GenerationError, 502),
    (SessionNotFoundError, 404),
    (WizardStepError, 409),
]


def status_for(error: RoamWarriorError) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


# Create FastAPI app
app = FastAPI(
    title="RoamWarrior",
    description="AI-powered travel itinerary wizard with refinement and recommendations",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.exception_handler(RoamWarriorError)
async def roamwarrior_error_handler(request: Request, exc: RoamWarriorError):
    """Render a failure as a destructive notification for the client."""
    status = status_for(exc)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

    violations = getattr(exc, "violations", [])
    return JSONResponse(
        status_code=status,
        content={
            "notification": {
                "title": exc.title,
                "description": exc.message,
                "variant": "destructive"
            },
            "violations": [{"field": v.field, "message": v.message} for v in violations]
        }
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "provider": settings.llm_provider
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "roamwarrior.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
