"""HTTP adapter for Reviewpool.

A FastAPI application exposing the review service operations, with request
logging, correlation ids and translation of business errors into HTTP
status codes.
"""

from __future__ import annotations

from reviewpool.web.app import create_app
from reviewpool.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
