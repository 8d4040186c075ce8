from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import earn, health
from .config import settings
from .logging_config import setup_logging

setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Earn Deposit API",
    description="Amount entry and transaction preparation for earn pool deposits",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(earn.router, tags=["Earn"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Earn Deposit API",
        "version": __version__,
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "earn.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
