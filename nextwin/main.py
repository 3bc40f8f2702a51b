"""NextWin Picks API - FastAPI application entrypoint."""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from nextwin.config import log_config_snapshot
from nextwin.correlation import CorrelationIdMiddleware, install_log_filter
from nextwin.dependencies import get_config
from nextwin.routers import analysis
from nextwin.routers import metrics
from nextwin.routers import picks

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
install_log_filter()
logger = logging.getLogger(__name__)

# Load and validate configuration at startup
_config = get_config()
log_config_snapshot(_config)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


# Capture service start time for uptime reporting
_SERVICE_START_TIME = datetime.now(timezone.utc)

app = FastAPI(
    title="NextWin Picks",
    description="Daily AI betting picks and bet analysis",
    version=_config.service_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Added in reverse execution order: CorrelationId runs first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(picks.router)
app.include_router(analysis.router)
app.include_router(metrics.router)


@app.get("/health")
async def health():
    """Health check with service observability."""
    return {
        "status": "healthy",
        "service": _config.service_name,
        "version": _config.service_version,
        "environment": _config.environment,
        "model": _config.model_name,
        "model_api_key_present": _config.model_api_key_present,
        "timezone": _config.timezone,
        "started_at": _SERVICE_START_TIME.isoformat(),
    }
