from .orders import (
    PaymentOrderHandle,
    VerificationResult,
    handle_webhook,
    initiate_payment,
    materialize_attempt,
    verify_payment,
)

__all__ = [
    "PaymentOrderHandle",
    "VerificationResult",
    "handle_webhook",
    "initiate_payment",
    "materialize_attempt",
    "verify_payment",
]
