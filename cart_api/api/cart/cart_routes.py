from http import HTTPStatus

from fastapi import APIRouter, Depends

from cart_api.api.dependencies import CartServiceDep, require_valid_credential

from .cart_contracts import (
    CartResponse,
    ErrorResponse,
    MessageResponse,
    QuantityRequest,
)

cart_router = APIRouter(prefix="/carts", tags=["carts"])

_NOT_FOUND = {"model": ErrorResponse, "description": "Cart, product or cart item not found"}


@cart_router.get(
    "/{cart_id}",
    responses={
        HTTPStatus.OK: {"description": "Successfully returned requested cart"},
        HTTPStatus.NOT_FOUND: {"model": ErrorResponse, "description": "Cart not found"},
    },
)
async def get_cart(cart_id: str, service: CartServiceDep) -> CartResponse:
    return CartResponse.from_entity(await service.get_cart(cart_id))


@cart_router.post(
    "/{cart_id}/products/{product_id}",
    responses={
        HTTPStatus.OK: {"description": "Product added, cart created if it did not exist"},
        HTTPStatus.NOT_FOUND: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def add_product(cart_id: str, product_id: str, service: CartServiceDep) -> CartResponse:
    return CartResponse.from_entity(await service.add_product(cart_id, product_id))


@cart_router.put(
    "/{cart_id}/products/{product_id}",
    responses={
        HTTPStatus.OK: {"description": "Quantity updated"},
        HTTPStatus.BAD_REQUEST: {"model": ErrorResponse, "description": "Quantity below 1"},
        HTTPStatus.NOT_FOUND: _NOT_FOUND,
    },
)
async def set_quantity(
    cart_id: str,
    product_id: str,
    body: QuantityRequest,
    service: CartServiceDep,
) -> CartResponse:
    return CartResponse.from_entity(
        await service.set_quantity(cart_id, product_id, body.quantity)
    )


@cart_router.put(
    "/{cart_id}/delete/products/{product_id}",
    responses={
        HTTPStatus.OK: {"description": "Product removed from the cart whatever its quantity"},
        HTTPStatus.NOT_FOUND: {"model": ErrorResponse, "description": "Cart or product not found"},
    },
)
async def remove_product(cart_id: str, product_id: str, service: CartServiceDep) -> CartResponse:
    return CartResponse.from_entity(await service.remove_product(cart_id, product_id))


@cart_router.put(
    "/{cart_id}/remove/products/{product_id}",
    responses={
        HTTPStatus.OK: {"description": "Quantity decreased by one, item dropped at zero"},
        HTTPStatus.NOT_FOUND: _NOT_FOUND,
    },
)
async def decrement_product(cart_id: str, product_id: str, service: CartServiceDep) -> CartResponse:
    return CartResponse.from_entity(await service.decrement_product(cart_id, product_id))


@cart_router.put(
    "/{cart_id}/clear",
    responses={
        HTTPStatus.OK: {"description": "Cart emptied"},
        HTTPStatus.NOT_FOUND: {"model": ErrorResponse, "description": "Cart not found"},
    },
)
async def clear_cart(cart_id: str, service: CartServiceDep) -> CartResponse:
    return CartResponse.from_entity(await service.clear_cart(cart_id))


@cart_router.delete(
    "/{cart_id}",
    dependencies=[Depends(require_valid_credential)],
    responses={
        HTTPStatus.OK: {"description": "Cart deleted"},
        HTTPStatus.UNAUTHORIZED: {"model": ErrorResponse, "description": "Credential rejected"},
        HTTPStatus.NOT_FOUND: {"model": ErrorResponse, "description": "Cart not found"},
    },
)
async def delete_cart(cart_id: str, service: CartServiceDep) -> MessageResponse:
    await service.delete_cart(cart_id)
    return MessageResponse(message="Cart deleted successfully")
