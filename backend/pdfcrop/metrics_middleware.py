"""
HTTP request metrics for the crop service.

Every request except GET /metrics is counted and timed in CropMetrics under
one of a fixed set of endpoint labels:
  /crop, /health     the API route template
  static             a file served by the front-end mount
  unmatched          nothing answered the path (404)

A request whose handler raised gets status 0, recorded as "0xx".
"""

import time

from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .crop_metrics import get_crop_metrics

STATIC_ENDPOINT = "static"
UNMATCHED_ENDPOINT = "unmatched"

UNTRACKED_PATHS = frozenset({"/metrics"})


def endpoint_label(request: Request, status_code: int) -> str:
    """Label for a finished request; read after routing has filled the scope."""
    route = request.scope.get("route")
    if isinstance(route, APIRoute):
        return route.path
    if status_code != 404 and isinstance(request.scope.get("endpoint"), StaticFiles):
        return STATIC_ENDPOINT
    return UNMATCHED_ENDPOINT


class MetricsMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        start = time.monotonic()
        status_code = 0
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            endpoint = endpoint_label(request, status_code)
            metrics = get_crop_metrics()
            metrics.inc_api_request(endpoint, request.method, status_code)
            metrics.observe_api_request_duration(endpoint, time.monotonic() - start)
