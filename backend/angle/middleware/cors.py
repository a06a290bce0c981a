"""
Angle Backend — CORS Middleware
================================

What:  Open, read-only CORS policy for every route.
How:   OPTIONS requests are answered 200 with an empty body before routing;
       every other response gets the Access-Control-* headers.
Who:   Outermost middleware, so error responses carry the headers too.

Starlette's CORSMiddleware only short-circuits requests that look like real
preflights (Origin + Access-Control-Request-Method) and answers them with an
"OK" body, so a plain OPTIONS would fall through to routing and get a 405.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class CORSMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response
