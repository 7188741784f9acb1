from http import HTTPStatus


class CartError(Exception):
    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFoundError(CartError):
    status_code = HTTPStatus.NOT_FOUND
    message = "Not found"


class CartValidationError(CartError):
    status_code = HTTPStatus.BAD_REQUEST
    message = "Invalid request"


class UnauthorizedError(CartError):
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Unauthorized"


class UpstreamUnavailableError(CartError):
    """A collaborator failed for a reason other than "not found".

    The cause is kept for local logs only, clients get the generic 500 body.
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__()
        self.detail = detail
