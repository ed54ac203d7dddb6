"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from everysearch import __version__
from everysearch.config import get_settings
from everysearch.dependencies import UnsupportedPlatformError, logger
from everysearch.search.router import router as tools_router
from everysearch.search.unified import get_platform_info

settings = get_settings()

app = FastAPI(title="Everysearch", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tools_router)


@app.get("/health")
async def health() -> dict[str, str | bool]:
    """Health check endpoint."""
    try:
        platform_info = get_platform_info()
    except UnsupportedPlatformError as e:
        platform_info = {"platform": "unsupported", "searchEngine": "none", "isPrimary": False}
        logger.warning("unsupported_platform", extra={"error": e.message})
    return {"status": "healthy", "version": __version__, **platform_info}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {"name": "Everysearch", "version": __version__, "docs": "/docs"}


logger.info("app_startup", extra={"host": settings.host, "port": settings.port})
