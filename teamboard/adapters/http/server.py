"""HTTP server adapter for the teamboard API.

Provides a small JSON API using Python's built-in http.server module. Request
threads hand each call to the asyncio event loop that owns the repositories
and wait for the result.

Supports optional API key authentication via the Authorization header
(Bearer token) or X-API-Key. The health check is always public.
"""

import asyncio
import hmac
import json
import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from teamboard.adapters.http.controllers import (
    AssignmentController,
    BadRequestError,
    ParticipantController,
    TaskController,
    TeamController,
)
from teamboard.core.errors import (
    NotFoundUseCaseError,
    RepositoryError,
    UseCaseError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 1024 * 1024
REQUEST_TIMEOUT_SECONDS = 30

Handler = Callable[
    [Mapping[str, str], Mapping[str, str], Mapping[str, Any]],
    Awaitable[tuple[int, Any]],
]
Route = tuple[str, re.Pattern[str], Handler]

_ID = r"(?P<{}>[^/]+)"


def _path(template: str, *names: str) -> re.Pattern[str]:
    return re.compile("^" + template.format(*(_ID.format(name) for name in names)) + "$")


def build_routes(
    tasks: TaskController,
    teams: TeamController,
    participants: ParticipantController,
    assignments: AssignmentController,
) -> list[Route]:
    """Route table: (method, path pattern, controller method)."""
    return [
        ("GET", _path("/tasks"), tasks.list_tasks),
        ("POST", _path("/tasks"), tasks.create_task),
        ("GET", _path("/tasks/{}", "task_id"), tasks.get_task),
        ("PATCH", _path("/tasks/{}", "task_id"), tasks.edit_task_title),
        ("POST", _path("/tasks/{}/done", "task_id"), tasks.set_task_done),
        ("POST", _path("/tasks/{}/toggle", "task_id"), tasks.toggle_task_done),
        ("GET", _path("/teams"), teams.list_teams),
        ("POST", _path("/teams"), teams.create_team),
        ("GET", _path("/teams/{}", "team_id"), teams.get_team),
        ("PATCH", _path("/teams/{}", "team_id"), teams.update_team),
        ("DELETE", _path("/teams/{}", "team_id"), teams.delete_team),
        ("GET", _path("/participants"), participants.list_participants),
        (
            "PATCH",
            _path("/participants/{}", "participant_id"),
            participants.update_enrollment,
        ),
        ("GET", _path("/assignments"), assignments.list_assignments),
        ("POST", _path("/assignments"), assignments.assign_task),
        (
            "PATCH",
            _path("/assignments/{}", "assignment_id"),
            assignments.update_progress,
        ),
    ]


def status_for_error(error: Exception) -> int:
    """Map a failure raised by a controller to an HTTP status code."""
    if isinstance(error, NotFoundUseCaseError):
        return 404
    if isinstance(error, UseCaseError) and isinstance(error.__cause__, RepositoryError):
        # Storage failed underneath an otherwise valid request.
        return 500
    if isinstance(error, (UseCaseError, ValidationError, BadRequestError)):
        return 400
    return 500


def make_request_handler(
    routes: list[Route],
    event_loop: asyncio.AbstractEventLoop,
    api_key: str | None,
    require_auth: bool,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create a request handler class bound to one server.

    Dependencies are captured in the closure instead of class-level mutable
    state, so several servers can run in one process.

    Args:
        routes: Route table from ``build_routes``.
        event_loop: Loop that runs the controllers.
        api_key: Optional API key for authentication.
        require_auth: Whether authentication is required.

    Returns:
        A BaseHTTPRequestHandler subclass.
    """

    class TeamboardHTTPHandler(BaseHTTPRequestHandler):
        def _check_auth(self) -> bool:
            """Check if request is authenticated.

            Supports two authentication methods:
            1. Authorization: Bearer <api_key>
            2. X-API-Key: <api_key>
            """
            if not require_auth:
                return True

            if not api_key:
                return False

            auth_header = self.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                return hmac.compare_digest(auth_header[7:], api_key)

            api_key_header = self.headers.get("X-API-Key", "")
            if api_key_header:
                return hmac.compare_digest(api_key_header, api_key)

            return False

        def do_GET(self) -> None:
            self._dispatch("GET")

        def do_POST(self) -> None:
            self._dispatch("POST")

        def do_PATCH(self) -> None:
            self._dispatch("PATCH")

        def do_DELETE(self) -> None:
            self._dispatch("DELETE")

        def _dispatch(self, method: str) -> None:
            url = urlsplit(self.path)

            if url.path == "/health" and method == "GET":
                self._send_json(200, {"status": "healthy"})
                return

            if not self._check_auth():
                self._send_json(401, {"error": "Unauthorized: invalid or missing API key"})
                return

            handler, params = self._match(method, url.path)
            if handler is None:
                self._send_json(404, {"error": "Not found"})
                return

            body = self._read_body()
            if body is None:
                return

            query = {key: values[-1] for key, values in parse_qs(url.query).items()}
            future = asyncio.run_coroutine_threadsafe(
                handler(params, query, body), event_loop
            )
            try:
                status, payload = future.result(timeout=REQUEST_TIMEOUT_SECONDS)
            except Exception as e:
                status = status_for_error(e)
                if status == 500:
                    # Log full exception server-side, return generic error to client
                    logger.error(f"Error handling {method} {url.path}: {e}", exc_info=True)
                    self._send_json(500, {"error": "Internal server error"})
                else:
                    self._send_json(status, {"error": str(e)})
                return

            self._send_json(status, payload)

        def _match(
            self, method: str, path: str
        ) -> tuple[Handler | None, dict[str, str]]:
            for route_method, pattern, handler in routes:
                if route_method != method:
                    continue
                match = pattern.match(path)
                if match:
                    return handler, match.groupdict()
            return None, {}

        def _read_body(self) -> dict[str, Any] | None:
            """Parse the JSON object body, or send an error and return None."""
            try:
                content_length = int(self.headers.get("Content-Length", 0))
            except ValueError:
                self._send_json(400, {"error": "Invalid Content-Length"})
                return None

            if content_length > MAX_BODY_SIZE:
                self._send_json(413, {"error": "Request body too large"})
                return None

            raw = self.rfile.read(content_length) if content_length > 0 else b""
            try:
                data = json.loads(raw) if raw else {}
            except (json.JSONDecodeError, UnicodeDecodeError):
                self._send_json(400, {"error": "Invalid JSON body"})
                return None

            if not isinstance(data, dict):
                self._send_json(400, {"error": "JSON body must be an object"})
                return None
            return data

        def _send_json(self, status: int, data: Any) -> None:
            self.send_response(status)
            if status == 204:
                self.end_headers()
                return
            encoded = json.dumps(data, ensure_ascii=False).encode("utf-8")
            self.send_header("Content-Type", "application/json; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return TeamboardHTTPHandler


class TeamboardHTTPServer:
    """JSON API server over the teamboard use cases."""

    def __init__(
        self,
        routes: list[Route],
        host: str = "0.0.0.0",
        port: int = 8080,
        api_key: str | None = None,
        require_auth: bool = False,
    ):
        """Initialize the HTTP server.

        Args:
            routes: Route table from ``build_routes``.
            host: Host to listen on (default 0.0.0.0).
            port: Port to listen on (default 8080, 0 picks a free port).
            api_key: Optional API key for authentication.
            require_auth: Whether to require authentication (default False).
                If True, api_key must be provided.
        """
        self.routes = routes
        self.host = host
        self.port = port
        self.api_key = api_key
        self.require_auth = require_auth
        self.server: ThreadingHTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

        if require_auth and not api_key:
            logger.warning(
                "Authentication required but no API key provided. "
                "All API requests will be rejected."
            )

    async def start(self) -> None:
        """Bind the socket and start serving in a worker thread."""
        handler_class = make_request_handler(
            routes=self.routes,
            event_loop=asyncio.get_running_loop(),
            api_key=self.api_key,
            require_auth=self.require_auth,
        )

        self.server = ThreadingHTTPServer((self.host, self.port), handler_class)
        self.server.daemon_threads = True
        # Pick up the real port when 0 was requested
        self.port = self.server.server_address[1]

        self._server_task = asyncio.create_task(self._run_server())
        if self.require_auth:
            logger.info(
                f"HTTP server listening on {self.host}:{self.port} "
                "(with API key authentication)"
            )
        else:
            logger.info(f"HTTP server listening on {self.host}:{self.port}")

    async def _run_server(self) -> None:
        """Run the HTTP server loop in a thread pool."""
        if not self.server:
            return

        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            # shutdown() blocks until serve_forever returns
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
        logger.info("HTTP server stopped")
