"""
Request metrics middleware.
"""

from collections.abc import Callable

from fastapi import Request

# Paths not worth counting
EXCLUDED_PATHS = {"/metrics", "/docs", "/openapi.json", "/redoc"}


def create_metrics_middleware() -> Callable:
    """
    Create the request-counting middleware.

    Requests are labelled with the matched route template rather than the
    raw path so ids don't blow up label cardinality.

    Returns:
        The middleware function.
    """

    async def metrics_middleware(request: Request, call_next: Callable):
        """Middleware counting API requests by method, route and status."""
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        response = await call_next(request)

        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        request.app.state.components.metrics.record_api_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        )
        return response

    return metrics_middleware
