"""HTTP transport - FastAPI Application.

Exposes the gateway over HTTP:
- Health and provider status
- Read-only usage dashboard
- MCP request endpoint ({method, params})

When an auth token is configured every route requires it as a bearer token.
"""

import secrets
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from shared.config import Settings, get_settings
from shared.logging import get_logger
from shared.models import ProviderStatus, UsageSummary
from orchestrator.gateway import SERVER_NAME, AIGateway, create_gateway

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


class MCPRequest(BaseModel):
    """Normalized request forwarded to the gateway dispatcher."""
    method: str = Field(..., description="tools/list, tools/call, resources/list or resources/read")
    params: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    server: str
    version: str
    providers: list[str]
    brain: bool
    conversations: dict[str, Any]
    detached_calls: int = 0


def get_gateway(request: Request) -> AIGateway:
    """Dependency returning the gateway owned by the application."""
    gateway: Optional[AIGateway] = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Gateway not initialized"
        )
    return gateway


async def require_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> None:
    """Dependency enforcing the bearer token when one is configured."""
    expected: str = request.app.state.settings.auth_token
    if not expected:
        return

    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[AIGateway] = None
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings, the cached settings by default
        gateway: Prebuilt gateway; one is created at startup when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.gateway is None:
            app.state.gateway = create_gateway(settings)

        logger.info("HTTP transport started", host=settings.http.host, port=settings.http.port)
        if settings.auth_token:
            logger.info("Auth enabled: Bearer token required")

        yield

        logger.info("HTTP transport stopped")

    app = FastAPI(
        title="AI Factory",
        description="Uniform tool-call gateway over interchangeable LLM providers",
        version="1.0.0",
        lifespan=lifespan,
        dependencies=[Depends(require_token)],
    )
    app.state.settings = settings
    app.state.gateway = gateway

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check(gateway: AIGateway = Depends(get_gateway)):
        """Health check endpoint."""
        return HealthResponse(**gateway.health())

    @app.get("/providers", response_model=list[ProviderStatus], tags=["Providers"])
    async def list_providers(gateway: AIGateway = Depends(get_gateway)):
        """Status of every registered provider."""
        return gateway.registry.statuses()

    @app.get("/usage", response_model=UsageSummary, tags=["Usage"])
    async def usage_dashboard(gateway: AIGateway = Depends(get_gateway)):
        """Live usage summary: totals, per-provider aggregates, recent errors."""
        return gateway.usage.get_summary()

    @app.post("/mcp", tags=["MCP"])
    async def mcp_request(
        request: MCPRequest,
        gateway: AIGateway = Depends(get_gateway)
    ):
        """Forward a request to the gateway dispatcher."""
        try:
            return await gateway.handle(request.model_dump())
        except Exception as e:
            logger.error("MCP request error", method=request.method, error=str(e), exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    return app


def run(settings: Optional[Settings] = None) -> None:
    """Run the HTTP transport with uvicorn."""
    import uvicorn

    settings = settings or get_settings()
    logger.info("Starting HTTP transport", server=SERVER_NAME)

    uvicorn.run(
        create_app(settings),
        host=settings.http.host,
        port=settings.http.port,
        log_config=None,
    )
