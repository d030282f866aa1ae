"""Health Tracker Server - Entry point.

Serves the REST API for the mobile app and the MCP tools for Claude over
HTTP for Cloud Run deployment. Uses Starlette with the MCP HTTP app mounted
at root.
"""

import logging

import uvicorn
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from .shell import api
from .shell.auth import check_authorization
from .shell.config import ServerConfig, get_api_key
from .shell.mcp_server import handle_mcp_request, mcp


config = ServerConfig.from_env()

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Health Tracker MCP Server"
SERVICE_VERSION = "1.0.0"

PUBLIC_PATHS = frozenset({"/api/health"})


# ==================== Route Handlers ====================


async def service_info(request: Request) -> JSONResponse:
    """Describe the service and its entry points."""
    return JSONResponse({
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": "Personal health tracking with AI-powered analysis",
        "endpoints": {
            "api": "/api/*",
            "mcp": "/mcp",
            "mcp_stream": "/mcp/stream",
        },
    })


async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
    """Render routing errors (404, 405) as JSON."""
    message = "Not found" if exc.status_code == 404 else exc.detail
    return JSONResponse({"error": message}, status_code=exc.status_code)


# ==================== Auth Middleware ====================


def requires_auth(path: str) -> bool:
    if path in PUBLIC_PATHS:
        return False
    return path.startswith("/api/") or path == "/mcp" or path.startswith("/mcp/")


class AuthMiddleware(BaseHTTPMiddleware):
    """Require the shared API key as a bearer token on /api and /mcp routes."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or not requires_auth(request.url.path):
            return await call_next(request)

        failure = check_authorization(request.headers.get("Authorization"), get_api_key())
        if failure is not None:
            return JSONResponse({"error": failure.message}, status_code=failure.status_code)

        return await call_next(request)


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application.

    The REST API lives under /api and the JSON tool surface at /mcp. The MCP
    streamable_http_app() handles /mcp/stream internally when mounted at root,
    and its lifespan context initializes the session manager.
    """
    mcp_app = mcp.streamable_http_app()

    # Custom routes first, then MCP app at root
    routes = [
        Route("/", service_info, methods=["GET"]),
        Mount("/api", routes=api.routes),
        Route("/mcp", handle_mcp_request, methods=["POST"]),
        Mount("/", app=mcp_app),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=config.cors_origins,
                allow_methods=["GET", "POST", "PUT", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(AuthMiddleware),
        ],
        exception_handlers={HTTPException: http_error},
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


# Create app at module level for Cloud Run
app = create_app()


def main() -> None:
    """Run the server."""
    logger.info("Starting %s on %s:%d", SERVICE_NAME, config.host, config.port)
    if not get_api_key():
        logger.warning("API_KEY is not set; authenticated routes will answer 500")

    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
