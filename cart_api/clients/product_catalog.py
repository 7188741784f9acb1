from http import HTTPStatus

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from cart_api.errors import UpstreamUnavailableError

logger = structlog.get_logger(__name__)

# temporaryPrice value meaning "no discount running"
NO_DISCOUNT = -1


class CatalogProduct(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    original_price: float
    temporary_price: float = NO_DISCOUNT
    img_url: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @property
    def unit_price(self) -> float:
        if self.temporary_price != NO_DISCOUNT:
            return self.temporary_price
        return self.original_price


class ProductCatalogClient:
    def __init__(self, http: httpx.AsyncClient, base_url: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")

    async def get_product(self, product_id: str) -> CatalogProduct | None:
        """Fetch a product by id, None when the catalog does not know it."""
        url = f"{self._base_url}/products/{product_id}"
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as exc:
            logger.warning("catalog unreachable", product_id=product_id, error=str(exc))
            raise UpstreamUnavailableError(f"catalog request failed: {exc}") from exc

        if response.status_code == HTTPStatus.NOT_FOUND:
            return None
        if response.status_code != HTTPStatus.OK:
            logger.warning(
                "catalog returned unexpected status",
                product_id=product_id,
                status=response.status_code,
            )
            raise UpstreamUnavailableError(f"catalog answered {response.status_code}")

        try:
            return CatalogProduct.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("catalog returned malformed product", product_id=product_id)
            raise UpstreamUnavailableError(f"malformed catalog payload: {exc}") from exc
