"""
Request size limiting middleware for FastAPI.
Keeps oversized diffs from fanning out into thousands of pricing lookups.
"""
from typing import Any, Dict, Optional, Set
import json
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


# Size limit constants
MAX_REQUEST_BODY_SIZE = 1_048_576  # 1 MB in bytes
MAX_DIFF_RESOURCES = 500

# Endpoints that require size limiting
PROTECTED_ENDPOINTS: Set[str] = {
    "/api/pricing/delta",
    "/api/pricing/resource",
}


def _too_large(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "status": "error",
            "error": "request_too_large",
            "message": message,
        }
    )


class RequestSizeLimiterMiddleware(BaseHTTPMiddleware):
    """
    Middleware limiting body size and diff resource count.

    Applies only to the pricing endpoints; other routes pass through untouched.
    """

    async def dispatch(self, request: Request, call_next: ASGIApp):
        path = request.url.path
        if path not in PROTECTED_ENDPOINTS:
            return await call_next(request)

        content_length = request.headers.get("Content-Length")
        if content_length:
            try:
                if int(content_length) > MAX_REQUEST_BODY_SIZE:
                    logger.info(
                        f"Request body size exceeded for {path}: "
                        f"{content_length} bytes (limit: {MAX_REQUEST_BODY_SIZE})"
                    )
                    return _too_large("Request body size exceeds allowed limit of 1 MB.")
            except ValueError:
                # Invalid Content-Length header, measure the body instead
                pass

        body_bytes = await request.body()
        if len(body_bytes) > MAX_REQUEST_BODY_SIZE:
            logger.info(
                f"Request body size exceeded for {path}: "
                f"{len(body_bytes)} bytes (limit: {MAX_REQUEST_BODY_SIZE})"
            )
            return _too_large("Request body size exceeds allowed limit of 1 MB.")

        if body_bytes:
            try:
                body_json = json.loads(body_bytes.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                # Malformed bodies are rejected by FastAPI validation
                body_json = None
            if isinstance(body_json, dict):
                validation_error = self._validate_diff_size(body_json)
                if validation_error:
                    logger.info(f"Payload validation failed for {path}: {validation_error}")
                    return _too_large(validation_error)

        # Starlette needs the consumed body replayed for the route handler
        async def receive():
            return {"type": "http.request", "body": body_bytes}

        request._receive = receive
        return await call_next(request)

    def _validate_diff_size(self, body_json: Dict[str, Any]) -> Optional[str]:
        """
        Check the number of resources in a diff payload.

        Args:
            body_json: Parsed JSON body

        Returns:
            Error message if the diff is too large, None if valid
        """
        total = 0
        for section in ("added", "removed", "modified"):
            items = body_json.get(section)
            if isinstance(items, list):
                total += len(items)

        if total > MAX_DIFF_RESOURCES:
            return f"Diff too large: {total} resources (limit: {MAX_DIFF_RESOURCES})"
        return None
