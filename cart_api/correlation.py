from contextvars import ContextVar
from uuid import uuid4

import httpx

CORRELATION_HEADER = "X-Correlation-Id"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> str:
    value = correlation_id or str(uuid4())
    _correlation_id.set(value)
    return value


async def attach_correlation_id(request: httpx.Request) -> None:
    """httpx request hook: forward the current correlation id to other services."""
    correlation_id = get_correlation_id()
    if correlation_id and CORRELATION_HEADER not in request.headers:
        request.headers[CORRELATION_HEADER] = correlation_id
