"""
CORS handling for the Console gateway.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept, Authorization",
}


class GatewayCORSMiddleware(BaseHTTPMiddleware):
    """Answers preflight requests under the API prefix and stamps CORS headers.

    Preflights are answered here, before routing, so they never reach the
    resource routers or the upstream relay and succeed whether or not the
    path maps to a resource.
    """

    def __init__(self, app, api_prefix: str = "/api/v1"):
        super().__init__(app)
        self.api_prefix = api_prefix.rstrip("/")

    def _under_prefix(self, path: str) -> bool:
        return path == self.api_prefix or path.startswith(self.api_prefix + "/")

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" and self._under_prefix(request.url.path):
            return Response(status_code=200, headers=CORS_HEADERS)

        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response
