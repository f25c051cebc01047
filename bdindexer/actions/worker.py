"""HTTP worker answering action requests."""

from __future__ import annotations

import json
import logging
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from bdindexer.actions.metrics import ActionMetrics
from bdindexer.actions.types import (
    ActionHandler,
    Context,
    GraphQLError,
    Payload,
    to_json_value,
)

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


def _encode(value: object) -> bytes:
    return json.dumps(
        to_json_value(value), separators=(",", ":"), ensure_ascii=False
    ).encode()


class ActionsWorker:
    """Routes action requests to their registered handlers."""

    def __init__(self, context: Context, metrics: ActionMetrics | None = None) -> None:
        self.context = context
        self.metrics = metrics if metrics is not None else ActionMetrics()
        self._handlers: dict[str, ActionHandler] = {}

    def register_handler(self, path: str, handler: ActionHandler) -> None:
        """Use handler for every request made to path."""
        if not path:
            raise ValueError("invalid handler path")
        if path in self._handlers:
            raise ValueError(f"multiple registrations for {path}")
        logger.debug("registering actions handler for %s", path)
        self._handlers[path] = handler

    def dispatch(self, path: str, body: bytes | str) -> tuple[int, str, bytes]:
        """Run the request; return the status code, content type and body of the reply."""
        handler = self._handlers.get(path)
        if handler is None:
            return 404, TEXT_CONTENT_TYPE, b"404 page not found\n"

        start = time.perf_counter()
        try:
            payload = Payload.from_json(body)
        except ValueError:
            return 500, TEXT_CONTENT_TYPE, b"invalid payload: failed to unmarshal json\n"

        try:
            data = _encode(handler(self.context, payload))
        except Exception as err:
            self.metrics.error(path)
            return self._error_reply(path, err)

        self.metrics.success(path)
        self.metrics.observe(path, time.perf_counter() - start)
        return 200, JSON_CONTENT_TYPE, data

    def _error_reply(self, path: str, err: Exception) -> tuple[int, str, bytes]:
        logger.error("error while executing action %s: %s", path, err)
        return 400, JSON_CONTENT_TYPE, _encode(GraphQLError(message=str(err)))

    def make_server(self, host: str, port: int) -> ThreadingHTTPServer:
        """Build an HTTP server bound to host and port that serves this worker."""
        worker = self

        class _RequestHandler(BaseHTTPRequestHandler):
            def _serve(self) -> None:
                path = urlsplit(self.path).path
                try:
                    length = int(self.headers.get("Content-Length") or 0)
                    body = self.rfile.read(length) if length > 0 else b""
                except (ValueError, OSError):
                    self._reply(400, TEXT_CONTENT_TYPE, b"invalid payload\n")
                    return
                self._reply(*worker.dispatch(path, body))

            do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _serve

            def _reply(self, status: int, content_type: str, data: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

            def log_message(self, format: str, *args: object) -> None:
                logger.debug(format, *args)

        return ThreadingHTTPServer((host, port), _RequestHandler)

    def start(self, port: int) -> None:
        """Serve requests on every interface at the given port until interrupted."""
        with self.make_server("", port) as server:
            server.serve_forever()