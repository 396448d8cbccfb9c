"""HTTP endpoint serving the metrics registry in the text exposition format."""

from __future__ import annotations

import logging
import threading
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app

logger = logging.getLogger(__name__)


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """WSGI server handling each scrape on its own thread."""

    daemon_threads = True


class _LoggingHandler(WSGIRequestHandler):
    """Route wsgiref access logs through logging instead of stderr."""

    def log_message(self, format, *args):
        logger.debug(format, *args)


def make_metrics_app(registry: CollectorRegistry, path: str):
    """Return a WSGI app exposing ``registry`` on ``path`` and 404 elsewhere."""
    metrics_app = make_wsgi_app(registry)

    def app(environ, start_response):
        if environ.get("PATH_INFO") == path:
            return metrics_app(environ, start_response)
        start_response("404 Not Found", [("Content-Type", "text/plain")])
        return [b"Not Found\n"]

    return app


def serve_metrics(
    registry: CollectorRegistry, listen: str, port: int, path: str
) -> tuple[WSGIServer, threading.Thread]:
    """
    Start serving metrics on a background thread.

    Returns the server (call ``shutdown()`` to stop it) and its thread.

    Raises:
        OSError: If the address cannot be bound.
    """
    server = make_server(
        listen,
        port,
        make_metrics_app(registry, path),
        server_class=ThreadingWSGIServer,
        handler_class=_LoggingHandler,
    )
    thread = threading.Thread(target=server.serve_forever, name="metrics", daemon=True)
    thread.start()
    logger.info(
        "serving metrics", extra={"listen": listen, "port": port, "path": path}
    )
    return server, thread
