"""FastAPI backend for Surface Check.

Exposes the quick check behind the caller rate limit and the challenge
verification gate, plus a read-only catalog of the battery.
"""

import os
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .core.errors import ErrorCodes, RateLimited, SurfaceCheckError
from .core.logger import get_logger
from .core.verification import TurnstileVerifier
from .scanner import SurfaceScanner


logger = get_logger("server")

# Proxy headers checked in order before falling back to the socket peer
CLIENT_IP_HEADERS = ("x-real-ip", "x-nf-client-connection-ip")

# Rate-limited endpoints by path
ENDPOINTS = {"/api/quickcheck": "quickcheck", "/api/checks": "catalog"}


class QuickCheckRequest(BaseModel):
    # Loosely typed so malformed fields reach the rate limit and the validator
    domain: Any = ""
    verificationToken: Any = None


def client_ip(request: Request) -> str:
    """Caller identity for rate limiting."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _rate_headers(limit: int, remaining: int) -> Dict[str, str]:
    return {"X-RateLimit-Limit": str(limit), "X-RateLimit-Remaining": str(max(0, remaining))}


def _rate_limited_response(exc: RateLimited) -> JSONResponse:
    headers = {"Retry-After": str(exc.retry_after_seconds), **_rate_headers(exc.limit, 0)}
    return JSONResponse(status_code=exc.http_status, content=exc.error.to_dict(), headers=headers)


def create_app(
    scanner: Optional[SurfaceScanner] = None,
    verifier: Optional[TurnstileVerifier] = None,
) -> FastAPI:
    """
    Build the API around one scanner instance.

    Args:
        scanner: Engine to serve (built from default config when omitted)
        verifier: Challenge verifier (built from the scanner's config when omitted)
    """
    scanner = scanner or SurfaceScanner()
    verifier = verifier or TurnstileVerifier(scanner.config)

    app = FastAPI(title="Surface Check API", version=__version__)
    app.state.scanner = scanner
    app.state.verifier = verifier

    @app.exception_handler(RateLimited)
    async def rate_limited_handler(request: Request, exc: RateLimited) -> JSONResponse:
        return _rate_limited_response(exc)

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        endpoint = ENDPOINTS.get(request.url.path)
        if endpoint:
            try:
                scanner.admit(client_ip(request), endpoint)
            except RateLimited as limited:
                return _rate_limited_response(limited)
        error = ErrorCodes.with_details(ErrorCodes.VALID_INVALID_DOMAIN, "malformed request body")
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    @app.exception_handler(SurfaceCheckError)
    async def surface_error_handler(request: Request, exc: SurfaceCheckError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error_with_data("Request failed", {"code": exc.error.code, "cause": exc.error.details})
        return JSONResponse(status_code=exc.http_status, content=exc.error.to_dict())

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        error = ErrorCodes.SYS_INTERNAL_ERROR
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/quickcheck")
    def quickcheck(req: QuickCheckRequest, request: Request) -> JSONResponse:
        caller = client_ip(request)
        admitted = scanner.admit(caller, "quickcheck")

        token = req.verificationToken if isinstance(req.verificationToken, str) else None
        verifier.verify(token, caller)

        report = scanner.assess(req.domain)
        headers = _rate_headers(scanner.rate_limiter.limit_for("quickcheck"), admitted.remaining)
        return JSONResponse(content=report.to_dict(), headers=headers)

    @app.get("/api/checks")
    def checks(request: Request) -> JSONResponse:
        admitted = scanner.admit(client_ip(request), "catalog")
        body: Dict[str, Any] = scanner.catalog()
        headers = _rate_headers(scanner.rate_limiter.limit_for("catalog"), admitted.remaining)
        return JSONResponse(content=body, headers=headers)

    return app


def main():
    """Serve the API with uvicorn (host/port from SURFACECHECK_HOST/PORT)."""
    uvicorn.run(
        create_app(),
        host=os.getenv("SURFACECHECK_HOST", "127.0.0.1"),
        port=int(os.getenv("SURFACECHECK_PORT", "8000")),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
