"""
Bridging Scorer API - FastAPI Application.

Thin REST surface over the bridging scorer. The caller owns rating storage,
scheduling and label publication; this service only turns ratings into
note scores.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bridging_scorer.config import get_settings
from bridging_scorer.routes import scoring_router


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Bridging Scorer API...")

    yield

    logger.info("Shutting down Bridging Scorer API...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
## Bridging Scorer

Scores community notes from crowd helpfulness ratings.

### How Bridging Works

Each rating is modeled as a global baseline plus a rater bias, a note
intercept, and the product of a rater factor and a note factor (a one
dimensional viewpoint axis). Intercepts are regularized harder than
factors, so a note only gets a high intercept when raters on different
sides of the axis agree it is helpful.

### Statuses

- **CRH**: intercept >= 0.40 and |factor| < 0.50
- **CRNH**: intercept <= -0.05 - 0.8 * |factor|
- **NMR**: everything else, including notes with too few ratings

### API Flow

1. The caller collects every rating it holds
2. It posts them to POST /api/scoring/run (with its stored statuses)
3. It stores the returned scores and applies the label operations
    """,
    version=settings.app_version,
    lifespan=lifespan,
)

# Configure CORS
origins = settings.allowed_origins.split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(scoring_router, prefix="/api")


# Root endpoint
@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Bridging scorer for community notes",
        "docs_url": "/docs",
        "openapi_url": "/openapi.json",
        "endpoints": {
            "run": "/api/scoring/run",
            "status": "/api/scoring/status",
            "last_run": "/api/scoring/last-run",
            "health": "/api/scoring/health",
        }
    }


# Health check at root level too
@app.get("/health")
def root_health():
    """Quick health check."""
    return {"status": "ok", "version": settings.app_version}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bridging_scorer.app:app",
        host="0.0.0.0",
        port=8001,
        reload=settings.debug
    )
