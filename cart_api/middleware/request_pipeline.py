"""Pure ASGI middleware wrapping every HTTP request.

At request entry a correlation id is taken from ``X-Correlation-Id`` (or
generated), exposed to the handler through the request headers, bound into
structlog contextvars and echoed on the response. A handler crash before the
response started is answered here with the generic 500 body, so that response
carries the header too. Once the handler returns,
two fire-and-forget tasks are spawned: a usage-stats call and a log record
publish. The response path never awaits them and never sees their errors.
"""

import asyncio
from typing import Any, Awaitable, Callable

import structlog
from starlette.datastructures import URL
from starlette.responses import JSONResponse
from structlog.contextvars import bind_contextvars, clear_contextvars

from cart_api.correlation import CORRELATION_HEADER, set_correlation_id
from cart_api.telemetry.log_record import LogRecord
from cart_api.telemetry.publisher import TelemetryPublisher

logger = structlog.get_logger(__name__)

Scope = dict[str, Any]
Receive = Callable[[], Awaitable[dict[str, Any]]]
Send = Callable[[dict[str, Any]], Awaitable[None]]

_HEADER_KEY = CORRELATION_HEADER.lower().encode("latin-1")


class RequestPipelineMiddleware:
    def __init__(self, app: Any, telemetry: TelemetryPublisher, service_name: str = "cart") -> None:
        self.app = app
        self.telemetry = telemetry
        self.service_name = service_name
        # strong references so pending telemetry is not garbage collected
        self.pending: set[asyncio.Task] = set()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = self._enter_request(scope)
        status_code = 500
        response_started = False

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code, response_started
            if message["type"] == "http.response.start":
                response_started = True
                status_code = message["status"]
                headers = list(message.get("headers", []))
                headers.append((_HEADER_KEY, correlation_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if response_started:
                raise
            logger.exception("unhandled error")
            response = JSONResponse({"error": "Internal Server Error"}, status_code=500)
            await response(scope, receive, send_wrapper)
        finally:
            self._spawn(self.telemetry.report_usage(scope["method"], _route_pattern(scope)))
            self._spawn(self.telemetry.publish_log(self._log_record(scope, correlation_id, status_code)))

    @staticmethod
    def _enter_request(scope: Scope) -> str:
        headers: list[tuple[bytes, bytes]] = list(scope.get("headers", []))
        inbound = next(
            (value.decode("latin-1") for key, value in headers if key.lower() == _HEADER_KEY),
            None,
        )
        correlation_id = set_correlation_id(inbound)
        if inbound != correlation_id:
            headers = [(key, value) for key, value in headers if key.lower() != _HEADER_KEY]
            headers.append((_HEADER_KEY, correlation_id.encode("latin-1")))
            scope["headers"] = headers

        clear_contextvars()
        bind_contextvars(
            correlation_id=correlation_id,
            method=scope["method"],
            path=scope["path"],
        )
        return correlation_id

    def _log_record(self, scope: Scope, correlation_id: str, status_code: int) -> LogRecord:
        query = scope.get("query_string", b"").decode("latin-1")
        path = f"{scope['path']}?{query}" if query else scope["path"]
        return LogRecord.for_response(
            correlation_id=correlation_id,
            url=str(URL(scope=scope)),
            method=scope["method"],
            path=path,
            status_code=status_code,
            service=self.service_name,
        )

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self.pending.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self.pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("telemetry task failed", error=str(task.exception()))


def _route_pattern(scope: Scope) -> str:
    route = scope.get("route")
    return getattr(route, "path", None) or scope["path"]
