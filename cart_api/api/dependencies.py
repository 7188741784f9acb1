from typing import Annotated

from fastapi import Depends, Header, Request

from cart_api.clients.auth_verifier import AuthVerifier
from cart_api.service.cart_service import CartService


async def get_cart_service(request: Request) -> CartService:
    return request.app.state.cart_service


async def get_auth_verifier(request: Request) -> AuthVerifier:
    return request.app.state.auth_verifier


async def require_valid_credential(
    verifier: Annotated[AuthVerifier, Depends(get_auth_verifier)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    await verifier.verify(authorization)


CartServiceDep = Annotated[CartService, Depends(get_cart_service)]
