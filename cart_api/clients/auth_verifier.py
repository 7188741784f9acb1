import httpx
import structlog

from cart_api.errors import UnauthorizedError

logger = structlog.get_logger(__name__)


class AuthVerifier:
    """Asks the identity service whether a credential is valid. No retries."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, verify_path: str = "/auth/verify") -> None:
        self._http = http
        self._url = f"{base_url.rstrip('/')}/{verify_path.lstrip('/')}"

    async def verify(self, authorization: str | None) -> None:
        if not authorization:
            raise UnauthorizedError()
        try:
            response = await self._http.get(self._url, headers={"Authorization": authorization})
        except httpx.HTTPError as exc:
            logger.warning("identity service unreachable", error=str(exc))
            raise UnauthorizedError() from exc
        if not response.is_success:
            logger.info("credential rejected", status=response.status_code)
            raise UnauthorizedError()
