# storefront/domain/errors.py


class FunnelError(Exception):
    """
    Base of every failure the funnel reports to its callers.
    kind is the stable machine-checkable name, status the HTTP status it maps to.
    """

    kind = "Internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FunnelError):
    kind = "ValidationError"
    status_code = 400


class NotFound(FunnelError):
    kind = "NotFound"
    status_code = 404


class EmptyCart(FunnelError):
    kind = "EmptyCart"
    status_code = 400


class Conflict(FunnelError):
    # reserved for duplicate-submission detection, nothing raises it yet
    kind = "Conflict"
    status_code = 409


class InternalError(FunnelError):
    kind = "Internal"
    status_code = 500
