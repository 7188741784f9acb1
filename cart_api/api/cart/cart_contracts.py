from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cart_api.store.cart_models import CartEntity, CartItemInfo

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItemResponse(BaseModel):
    product_id: str
    name: str
    price: float
    img_url: str
    quantity: int

    model_config = _camel

    @staticmethod
    def from_cart_item_info(cart_item: CartItemInfo) -> CartItemResponse:
        return CartItemResponse(
            product_id=cart_item.product_id,
            name=cart_item.name,
            price=cart_item.price,
            img_url=cart_item.img_url,
            quantity=cart_item.quantity,
        )


class CartResponse(BaseModel):
    id: str
    items: List[CartItemResponse]
    full_price: float

    model_config = _camel

    @staticmethod
    def from_entity(entity: CartEntity) -> CartResponse:
        return CartResponse(
            id=entity.id,
            items=[CartItemResponse.from_cart_item_info(item) for item in entity.info.items],
            full_price=entity.info.full_price,
        )


class QuantityRequest(BaseModel):
    # lower bound is enforced by the service so it answers 400, not 422
    quantity: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
