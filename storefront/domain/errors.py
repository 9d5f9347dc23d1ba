# storefront/domain/errors.py
"""
Error taxonomy shared by services and the HTTP layer.

Every error carries a stable machine-readable `reason`, the HTTP status it maps
to, and a human-readable message. Services raise these; the API renders them.
"""


class StorefrontError(Exception):
    status_code = 500
    reason = "internal_error"

    def __init__(self, message: str | None = None, reason: str | None = None):
        self.message = message or self.__class__.__doc__ or self.reason
        if reason:
            self.reason = reason
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.reason, "message": self.message}


class ValidationError(StorefrontError):
    """Invalid input"""

    status_code = 400
    reason = "validation_error"


class InvalidStatus(ValidationError):
    """Unknown order status"""

    reason = "invalid_status"


class CartEmpty(ValidationError):
    """Cart is empty"""

    reason = "cart_empty"


class VariantUnavailable(ValidationError):
    """Requested variant is not available"""

    reason = "variant_unavailable"


class PricingUnresolved(ValidationError):
    """Price could not be determined"""

    reason = "pricing_unresolved"


class InvalidCoordinates(ValidationError):
    """Coordinates are invalid"""

    reason = "invalid_coordinates"


class AuthenticationError(StorefrontError):
    """Authentication required"""

    status_code = 401
    reason = "unauthenticated"


class AuthorizationError(StorefrontError):
    """Unauthorized"""

    status_code = 403
    reason = "unauthorized"


class NotFoundError(StorefrontError):
    """Resource not found"""

    status_code = 404
    reason = "not_found"


class ConflictError(StorefrontError):
    """Conflict"""

    status_code = 409
    reason = "conflict"


class IneligibleTransition(ConflictError):
    """Order is not eligible for this status change"""

    reason = "ineligible_transition"


class CheckoutInProgress(ConflictError):
    """Another checkout is already running for this user"""

    reason = "checkout_in_progress"


class DownstreamFailure(StorefrontError):
    """Downstream service unavailable"""

    status_code = 502
    reason = "downstream_failure"
