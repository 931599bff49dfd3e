# src/models/errors.py

"""Error taxonomy for the discovery engine.

Only :class:`CatalogFetchError` (and the explicit payment / validation
calls) reach the user.  Aggregation and subscription failures are
logged and recovered by their owning component.
"""


class DiscoveryError(Exception):
    """Base class for all engine errors."""


class CatalogFetchError(DiscoveryError):
    """The bulk fetch of products or categories failed."""


class AggregationError(DiscoveryError):
    """One or more per-product review queries failed."""

    def __init__(self, failed: int, total: int) -> None:
        super().__init__(
            f"{failed} of {total} review queries failed"
        )
        self.failed = failed
        self.total = total


class SubscriptionError(DiscoveryError):
    """The notification stream errored or disconnected."""


class ValidationError(DiscoveryError, ValueError):
    """Input bounds or payment parameters are invalid."""


class PaymentError(DiscoveryError):
    """The payment-sheet endpoint rejected or failed a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaymentRequestError(PaymentError):
    """HTTP 400: malformed amount or currency."""


class PaymentUnavailableError(PaymentError):
    """HTTP 503 or transport failure: upstream provider unreachable."""


class PaymentServiceError(PaymentError):
    """Any other non-200 response from the payment endpoint."""
