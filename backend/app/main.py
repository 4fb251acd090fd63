"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import crawl, domains, results
from app.config import get_settings
from app.database import engine
from app.services.job_store import get_job_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    job_store = get_job_store()
    job_store.start()
    yield
    # Shutdown
    await job_store.close()
    await engine.dispose()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Crawl a website and generate its llms.txt",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(crawl.router, prefix="/api", tags=["crawl"])
app.include_router(results.router, prefix="/api", tags=["results"])
app.include_router(domains.router, prefix="/api", tags=["domains"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
