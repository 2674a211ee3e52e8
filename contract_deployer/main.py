from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import deployments, health, networks
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Logging is configured on startup, never at import
    setup_logging(settings.log_level)
    yield


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Contract Deployer API",
    description="Deploys compiled contract bytecode with RPC failover and classified errors",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(networks.router, tags=["Networks"])
app.include_router(deployments.router, tags=["Deployments"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Contract Deployer API",
        "version": "0.1.0",
        "description": "Deploys compiled contract bytecode with RPC failover and classified errors",
        "docs": "/docs",
        "health": "/healthz",
        "networks": "/networks",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "contract_deployer.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
