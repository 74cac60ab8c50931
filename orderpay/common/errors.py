"""Error taxonomy mapped to HTTP status codes at the API boundary."""


class OrderPayError(Exception):
    """Base class for errors surfaced to clients in the response envelope."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OrderPayError):
    """Missing or invalid client input."""

    status_code = 400


class NotFound(OrderPayError):
    status_code = 404


class InvalidTransition(OrderPayError):
    """Order is no longer in a state that accepts the requested change."""

    status_code = 409


class GatewayError(OrderPayError):
    """Remote payment API call failed. Never retried."""

    status_code = 500


class StoreError(OrderPayError):
    """Database operation failed. Never retried."""

    status_code = 500
