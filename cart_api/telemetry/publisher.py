import httpx
import structlog

from cart_api.telemetry.broker import BrokerChannel
from cart_api.telemetry.log_record import LogRecord

logger = structlog.get_logger(__name__)


class TelemetryPublisher:
    """Best-effort usage stats and log records. Nothing here ever raises."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        analytics_url: str | None,
        broker: BrokerChannel,
    ) -> None:
        self._http = http
        self._stats_url = f"{analytics_url.rstrip('/')}/stats" if analytics_url else None
        self.broker = broker

    async def report_usage(self, method: str, route: str) -> None:
        called_service = f"[{method}] - {route}"
        if self._stats_url is None:
            return
        try:
            response = await self._http.post(self._stats_url, json={"calledService": called_service})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("stats call failed", called_service=called_service, error=str(exc))
            return
        logger.debug("stats call sent", called_service=called_service)

    async def publish_log(self, record: LogRecord) -> None:
        body = record.to_json()
        try:
            sent = await self.broker.publish(body)
        except Exception as exc:
            logger.warning("log record publish failed", error=str(exc))
            return
        if sent:
            logger.debug("log record published", record=body.decode("utf-8"))
