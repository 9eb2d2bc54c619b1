"""
Digital Bank API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import DigitalBankConfig, check_security, get_config
from .auth import DigitalBank
from .login import router as login_router
from .users import router as users_router


API_V1_PREFIX = "/api/v1"


def create_app(config: Optional[DigitalBankConfig] = None,
               bank: Optional[DigitalBank] = None) -> FastAPI:
    """
    Create and configure the FastAPI application
    
    Args:
        config: Service configuration; read from the environment when omitted
        bank: Pre-built services (tests inject one over an in-memory store)
    """
    if bank is not None:
        config = bank.config
    config = config or get_config()
    check_security(config)
    bank = bank or DigitalBank(config)
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        bank.close()
    
    app = FastAPI(
        title="Digital Bank API",
        description="User registration, authentication and profile management",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.bank = bank
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    # Include routers
    app.include_router(login_router, prefix=f"{API_V1_PREFIX}/auth", tags=["Auth"])
    app.include_router(users_router, prefix=f"{API_V1_PREFIX}/users", tags=["Users"])
    
    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "digital_bank_api",
            "version": __version__
        }
    
    # Root endpoint
    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Digital Bank API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "login": f"{API_V1_PREFIX}/auth/login",
                "users": f"{API_V1_PREFIX}/users",
            }
        }
    
    return app
