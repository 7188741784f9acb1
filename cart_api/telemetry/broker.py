import aio_pika
import structlog
from aio_pika.abc import AbstractExchange, AbstractRobustConnection

logger = structlog.get_logger(__name__)


class BrokerChannel:
    """Process-wide handle on the log exchange.

    Connected once at startup. When the broker is not configured or the
    connection failed, `available` is False and `publish` does nothing.
    Reconnection after a successful start is left to aio-pika's robust
    connection.
    """

    def __init__(self, url: str | None, exchange_name: str) -> None:
        self._url = url
        self._exchange_name = exchange_name
        self._connection: AbstractRobustConnection | None = None
        self._exchange: AbstractExchange | None = None

    @property
    def available(self) -> bool:
        return (
            self._exchange is not None
            and self._connection is not None
            and not self._connection.is_closed
        )

    async def connect(self) -> None:
        if not self._url:
            logger.info("broker not configured, log records will be dropped")
            return
        try:
            self._connection = await aio_pika.connect_robust(self._url)
            channel = await self._connection.channel()
            self._exchange = await channel.declare_exchange(
                self._exchange_name,
                aio_pika.ExchangeType.FANOUT,
                durable=True,
            )
        except Exception as exc:
            logger.warning(
                "broker connection failed, log records will be dropped",
                exchange=self._exchange_name,
                error=str(exc),
            )
            await self.close()
            return
        logger.info("broker connected", exchange=self._exchange_name)

    async def publish(self, body: bytes) -> bool:
        """Publish to the exchange with an empty routing key. Returns False when skipped."""
        if not self.available:
            return False
        await self._exchange.publish(
            aio_pika.Message(body=body, content_type="application/json"),
            routing_key="",
        )
        return True

    async def close(self) -> None:
        connection, self._connection, self._exchange = self._connection, None, None
        if connection is not None and not connection.is_closed:
            await connection.close()
