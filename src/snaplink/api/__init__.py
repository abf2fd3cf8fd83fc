"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /shorturls - Create short URLs and read their statistics
- /{code} - Redirect to the target URL
- /metrics - Prometheus metrics
- /health, /healthz - Health checks
"""
from .healthz import router as healthz_router
from .metrics import router as metrics_router
from .shorturls import redirect_router
from .shorturls import router as shorturls_router

__all__ = ["healthz_router", "metrics_router", "redirect_router", "shorturls_router"]
