"""Health check endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.wrappers import Request, Response

# Set once the operator finished its startup handlers
_ready = threading.Event()


def mark_ready() -> None:
    _ready.set()


def mark_not_ready() -> None:
    _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def _healthz() -> Response:
    return Response('{"status":"ok"}', mimetype="application/json", status=200)


def _readyz() -> Response:
    if is_ready():
        return Response('{"status":"ready"}', mimetype="application/json", status=200)
    return Response('{"status":"starting"}', mimetype="application/json", status=503)


def health_check_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
    """WSGI application for health check endpoints.

    Note: When mounted via DispatcherMiddleware, the path prefix is stripped,
    so '/healthz' becomes '/' when passed to this function.
    """
    request = Request(environ)
    path = request.path
    script_name = environ.get("SCRIPT_NAME", "")

    if path == "/healthz" or (path == "/" and script_name == "/healthz"):
        response = _healthz()
    elif path == "/readyz" or (path == "/" and script_name == "/readyz"):
        response = _readyz()
    else:
        response = Response('{"error":"not found"}', mimetype="application/json", status=404)

    return response(environ, start_response)


def create_combined_wsgi_app() -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
        """WSGI app that routes /healthz and /readyz, delegates /metrics to prometheus."""
        path = environ.get("PATH_INFO", "")

        if path in ("/healthz", "/readyz"):
            return health_check_app(environ, start_response)
        # Delegate all other paths (including /metrics) to prometheus app
        return metrics_app(environ, start_response)

    return combined_app
