from __future__ import annotations


class CheckoutError(Exception):
    status_code = 400
    code = "checkout_error"
    default_message = "Checkout failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CheckoutValidationError(CheckoutError):
    code = "validation_error"
    default_message = "Invalid checkout request"


class NotFoundError(CheckoutError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class GatewayError(CheckoutError):
    """Creating the order with the payment gateway failed. The user may retry."""

    status_code = 502
    code = "gateway_error"
    default_message = "Could not start the payment. Please try again."


SUPPORT_HINT = "Please contact support if the amount was deducted."


class VerificationError(CheckoutError):
    code = "verification_failed"
    default_message = "Payment verification failed."

    def __init__(self, message: str | None = None):
        message = message or self.default_message
        if SUPPORT_HINT not in message:
            message = f"{message} {SUPPORT_HINT}"
        super().__init__(message)


class ReconciliationError(VerificationError):
    """The payment is genuine but the authorized cart lines changed since initiation."""

    status_code = 409
    code = "reconciliation_failed"
    default_message = "Your cart changed after the payment was started."
