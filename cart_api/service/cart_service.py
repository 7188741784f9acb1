"""Cart mutations.

Every successful mutation leaves ``full_price`` equal to the rounded sum of
``price * quantity`` over the items. Prices are rounded to two digits after
each accumulation step. Item prices are captured when the item is first added
and are never refreshed from the catalog afterwards; the catalog is still asked
on each item mutation so that vanished products are rejected.
"""

import structlog

from cart_api.clients.product_catalog import CatalogProduct, ProductCatalogClient
from cart_api.errors import CartValidationError, NotFoundError
from cart_api.store.cart_models import CartEntity, CartItemInfo, round_price
from cart_api.store.cart_queries import CartStore

logger = structlog.get_logger(__name__)

CART_NOT_FOUND = "Cart not found"
PRODUCT_NOT_FOUND = "Product not found"
ITEM_NOT_FOUND = "Product not found in the cart"


class CartService:
    def __init__(self, catalog: ProductCatalogClient, store: CartStore) -> None:
        self._catalog = catalog
        self._store = store

    async def get_cart(self, cart_id: str) -> CartEntity:
        return await self._require_cart(cart_id)

    async def add_product(self, cart_id: str, product_id: str) -> CartEntity:
        cart = await self._store.find(cart_id)
        if cart is None:
            cart = await self._store.create_empty(cart_id)
            logger.info("cart created", cart_id=cart_id)

        product = await self._require_product(product_id)
        info = cart.info

        existing = info.find_item(product_id)
        if existing is not None:
            existing.quantity += 1
            info.full_price = round_price(info.full_price + existing.price)
        else:
            # stored price and total must derive from the same rounded value
            price = round_price(product.unit_price)
            info.items.append(
                CartItemInfo(
                    product_id=product_id,
                    name=product.name,
                    price=price,
                    img_url=product.img_url or "",
                    quantity=1,
                )
            )
            info.full_price = round_price(info.full_price + price)

        return await self._store.replace(cart)

    async def set_quantity(self, cart_id: str, product_id: str, quantity: int) -> CartEntity:
        if quantity < 1:
            raise CartValidationError("Quantity cannot be less than 1")

        cart = await self._require_cart(cart_id)
        await self._require_product(product_id)

        item = cart.info.find_item(product_id)
        if item is None:
            raise NotFoundError(ITEM_NOT_FOUND)

        cart.info.full_price = round_price(
            cart.info.full_price + (quantity - item.quantity) * item.price
        )
        item.quantity = quantity
        return await self._store.replace(cart)

    async def remove_product(self, cart_id: str, product_id: str) -> CartEntity:
        cart = await self._require_cart(cart_id)
        await self._require_product(product_id)

        item = cart.info.find_item(product_id)
        if item is None:
            # nothing to remove, cart is returned as is
            return cart

        cart.info.full_price = round_price(cart.info.full_price - item.quantity * item.price)
        cart.info.drop_item(product_id)
        return await self._store.replace(cart)

    async def decrement_product(self, cart_id: str, product_id: str) -> CartEntity:
        cart = await self._require_cart(cart_id)
        await self._require_product(product_id)

        item = cart.info.find_item(product_id)
        if item is None:
            raise NotFoundError(ITEM_NOT_FOUND)

        cart.info.full_price = round_price(cart.info.full_price - item.price)
        if item.quantity > 1:
            item.quantity -= 1
        else:
            cart.info.drop_item(product_id)
        return await self._store.replace(cart)

    async def clear_cart(self, cart_id: str) -> CartEntity:
        cart = await self._require_cart(cart_id)
        cart.info.items = []
        cart.info.full_price = 0.0
        return await self._store.replace(cart)

    async def delete_cart(self, cart_id: str) -> None:
        """Remove the cart. Callers must have verified the credential first."""
        if not await self._store.delete(cart_id):
            raise NotFoundError(CART_NOT_FOUND)
        logger.info("cart deleted", cart_id=cart_id)

    async def _require_cart(self, cart_id: str) -> CartEntity:
        cart = await self._store.find(cart_id)
        if cart is None:
            raise NotFoundError(CART_NOT_FOUND)
        return cart

    async def _require_product(self, product_id: str) -> CatalogProduct:
        product = await self._catalog.get_product(product_id)
        if product is None:
            raise NotFoundError(PRODUCT_NOT_FOUND)
        return product
