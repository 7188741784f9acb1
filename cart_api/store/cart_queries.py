import time
from decimal import Decimal

import structlog
from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cart_api.store.cart_models import CartEntity, CartInfo, CartItemInfo
from cart_api.store.database import (
    Base,
    CartItemOrm,
    CartOrm,
    make_engine,
    make_session_factory,
)

logger = structlog.get_logger(__name__)


def _to_cart_entity(orm: CartOrm) -> CartEntity:
    return CartEntity(
        id=orm.id,
        info=CartInfo(
            items=[
                CartItemInfo(
                    product_id=it.product_id,
                    name=it.name,
                    price=float(it.price),
                    img_url=it.img_url,
                    quantity=it.quantity,
                )
                for it in orm.items
            ],
            full_price=float(orm.full_price),
        ),
    )


def _write_items(session: Session, cart_id: str, items: list[CartItemInfo]) -> None:
    session.execute(sa_delete(CartItemOrm).where(CartItemOrm.cart_id == cart_id))
    for position, it in enumerate(items):
        session.add(
            CartItemOrm(
                cart_id=cart_id,
                product_id=it.product_id,
                position=position,
                name=it.name,
                price=Decimal(str(it.price)),
                img_url=it.img_url,
                quantity=it.quantity,
            )
        )


class CartStore:
    """Carts keyed by id. Every write replaces the whole aggregate, last writer wins."""

    def __init__(self, database_url: str) -> None:
        self.engine = make_engine(database_url)
        self._session_factory = make_session_factory(self.engine)

    def init_schema(self, attempts: int = 30, delay: float = 1.0) -> None:
        for attempt in range(1, attempts + 1):
            try:
                Base.metadata.create_all(bind=self.engine)
                return
            except OperationalError as exc:
                if attempt == attempts:
                    raise
                logger.warning(
                    "database not ready, retrying",
                    attempt=attempt,
                    attempts=attempts,
                    error=str(exc),
                )
                time.sleep(delay)

    def dispose(self) -> None:
        self.engine.dispose()

    async def find(self, cart_id: str) -> CartEntity | None:
        return await run_in_threadpool(self._find, cart_id)

    async def create_empty(self, cart_id: str) -> CartEntity:
        return await run_in_threadpool(self._create_empty, cart_id)

    async def replace(self, entity: CartEntity) -> CartEntity:
        return await run_in_threadpool(self._replace, entity)

    async def delete(self, cart_id: str) -> bool:
        return await run_in_threadpool(self._delete, cart_id)

    def _find(self, cart_id: str) -> CartEntity | None:
        with self._session_factory() as session:
            orm = session.get(CartOrm, cart_id)
            if orm is None:
                return None
            return _to_cart_entity(orm)

    def _create_empty(self, cart_id: str) -> CartEntity:
        with self._session_factory.begin() as session:
            orm = session.get(CartOrm, cart_id)
            if orm is None:
                orm = CartOrm(id=cart_id, full_price=Decimal("0"))
                session.add(orm)
                session.flush()
                session.refresh(orm)
            return _to_cart_entity(orm)

    def _replace(self, entity: CartEntity) -> CartEntity:
        with self._session_factory.begin() as session:
            orm = session.get(CartOrm, entity.id)
            if orm is None:
                orm = CartOrm(id=entity.id)
                session.add(orm)
            orm.full_price = Decimal(str(entity.info.full_price))
            _write_items(session, entity.id, entity.info.items)
            session.flush()
            session.refresh(orm)
            return _to_cart_entity(orm)

    def _delete(self, cart_id: str) -> bool:
        with self._session_factory.begin() as session:
            orm = session.get(CartOrm, cart_id)
            if orm is None:
                return False
            session.delete(orm)
            return True
