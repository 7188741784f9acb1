from __future__ import annotations

import os
from typing import Any, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

if "DATABASE_URL" not in os.environ:
	os.environ["DATABASE_URL"] = "sqlite+pysqlite:///./test_cart_api.db"

from cart_api.config import Settings
from cart_api.main import create_app

CATALOG: dict[str, dict[str, Any]] = {
	"P1": {"_id": "P1", "name": "Mug", "originalPrice": 10.0, "temporaryPrice": -1, "imgUrl": "mug.png"},
	"P2": {"_id": "P2", "name": "Lamp", "originalPrice": 20.0, "temporaryPrice": 15.5, "imgUrl": "lamp.png"},
	"P3": {"_id": "P3", "name": "Sticker", "originalPrice": 0.1, "temporaryPrice": -1, "imgUrl": "sticker.png"},
	"P4": {"_id": "P4", "name": "Poster", "originalPrice": 8.95, "temporaryPrice": 2.675, "imgUrl": "poster.png"},
}

GOOD_TOKEN = "Bearer good-token"


class Upstream:
	"""Stands in for catalog, identity and analytics services."""

	def __init__(self) -> None:
		self.catalog = {key: dict(value) for key, value in CATALOG.items()}
		self.requests: list[httpx.Request] = []
		self.catalog_down = False

	def handle(self, request: httpx.Request) -> httpx.Response:
		self.requests.append(request)
		host, path = request.url.host, request.url.path

		if host == "catalog" and path.startswith("/products/"):
			if self.catalog_down:
				return httpx.Response(503, json={"error": "down"})
			product = self.catalog.get(path.removeprefix("/products/"))
			if product is None:
				return httpx.Response(404, json={"error": "Product not found"})
			return httpx.Response(200, json=product)

		if host == "auth" and path == "/auth/verify":
			if request.headers.get("authorization") == GOOD_TOKEN:
				return httpx.Response(200, json={"valid": True})
			return httpx.Response(401, json={"error": "invalid token"})

		if host == "analytics" and path == "/stats":
			return httpx.Response(200, json={})

		return httpx.Response(404)

	def catalog_calls(self) -> list[httpx.Request]:
		return [r for r in self.requests if r.url.host == "catalog"]


class FakeBroker:
	def __init__(self) -> None:
		self.published: list[bytes] = []
		self.connected = False

	@property
	def available(self) -> bool:
		return self.connected

	async def connect(self) -> None:
		self.connected = True

	async def publish(self, body: bytes) -> bool:
		if not self.connected:
			return False
		self.published.append(body)
		return True

	async def close(self) -> None:
		self.connected = False


@pytest.fixture()
def upstream() -> Upstream:
	return Upstream()


@pytest.fixture()
def broker() -> FakeBroker:
	return FakeBroker()


@pytest.fixture()
def settings(tmp_path) -> Settings:
	return Settings(
		database_url=f"sqlite+pysqlite:///{tmp_path / 'carts.db'}",
		product_service_url="http://catalog",
		auth_service_url="http://auth",
		analytics_service_url="http://analytics",
		rabbitmq_url=None,
	)


@pytest.fixture()
def app(settings: Settings, upstream: Upstream, broker: FakeBroker):
	return create_app(settings, transport=httpx.MockTransport(upstream.handle), broker=broker)


@pytest.fixture()
def client(app) -> Iterator[TestClient]:
	with TestClient(app) as c:
		yield c
