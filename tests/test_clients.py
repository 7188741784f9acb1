from __future__ import annotations

import asyncio
from typing import Callable

import httpx
import pytest

from cart_api.clients.auth_verifier import AuthVerifier
from cart_api.clients.product_catalog import CatalogProduct, ProductCatalogClient
from cart_api.correlation import attach_correlation_id, set_correlation_id
from cart_api.errors import UnauthorizedError, UpstreamUnavailableError

Handler = Callable[[httpx.Request], httpx.Response]


def fetch_product(handler: Handler, product_id: str = "P1") -> CatalogProduct | None:
	async def scenario():
		async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
			return await ProductCatalogClient(http, "http://catalog/").get_product(product_id)

	return asyncio.run(scenario())


def verify(handler: Handler, authorization: str | None) -> None:
	async def scenario():
		async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
			await AuthVerifier(http, "http://auth", "/auth/verify").verify(authorization)

	asyncio.run(scenario())


def test_catalog_product_parsing() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		assert request.url.path == "/products/P1"
		return httpx.Response(
			200,
			json={"_id": "P1", "name": "Mug", "originalPrice": 12.5, "temporaryPrice": -1, "imgUrl": "m.png", "stock": 3},
		)

	product = fetch_product(handler)
	assert product is not None
	assert product.id == "P1"
	assert product.img_url == "m.png"
	assert product.unit_price == 12.5


def test_catalog_discount_and_numeric_id() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		return httpx.Response(200, json={"id": 7, "name": "Lamp", "originalPrice": 20, "temporaryPrice": 14.99})

	product = fetch_product(handler, "7")
	assert product.id == "7"
	assert product.unit_price == 14.99
	assert product.img_url is None


def test_catalog_missing_product() -> None:
	assert fetch_product(lambda request: httpx.Response(404)) is None


@pytest.mark.parametrize(
	"handler",
	[
		lambda request: httpx.Response(503),
		lambda request: httpx.Response(200, text="<html>oops</html>"),
		lambda request: httpx.Response(200, json={"name": "no price"}),
	],
	ids=["status", "not-json", "incomplete"],
)
def test_catalog_failures_are_upstream_errors(handler: Handler) -> None:
	with pytest.raises(UpstreamUnavailableError):
		fetch_product(handler)


def test_catalog_unreachable() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectTimeout("timed out", request=request)

	with pytest.raises(UpstreamUnavailableError):
		fetch_product(handler)


def test_auth_forwards_credential() -> None:
	seen: list[httpx.Request] = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		return httpx.Response(200)

	verify(handler, "Bearer abc")
	assert str(seen[0].url) == "http://auth/auth/verify"
	assert seen[0].headers["authorization"] == "Bearer abc"


def test_auth_without_credential_is_rejected_locally() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		raise AssertionError("identity service must not be called")

	with pytest.raises(UnauthorizedError):
		verify(handler, None)


@pytest.mark.parametrize("status", [401, 403, 500])
def test_auth_rejections(status: int) -> None:
	with pytest.raises(UnauthorizedError):
		verify(lambda request: httpx.Response(status), "Bearer abc")


def test_auth_unreachable_is_unauthorized() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectError("refused", request=request)

	with pytest.raises(UnauthorizedError):
		verify(handler, "Bearer abc")


def test_correlation_hook_forwards_current_id() -> None:
	seen: list[httpx.Request] = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(request)
		return httpx.Response(200)

	async def scenario():
		set_correlation_id("corr-9")
		async with httpx.AsyncClient(
			transport=httpx.MockTransport(handler),
			event_hooks={"request": [attach_correlation_id]},
		) as http:
			await http.get("http://anything/")
			await http.get("http://anything/", headers={"X-Correlation-Id": "explicit"})

	asyncio.run(scenario())
	assert seen[0].headers["x-correlation-id"] == "corr-9"
	assert seen[1].headers["x-correlation-id"] == "explicit"
