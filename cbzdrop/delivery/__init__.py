"""
Delivery — hand finished packages to an external recipient.

Public API:
    Deliverer — Protocol every transport implements
    SmtpDeliverer — E-mail attachment transport (STARTTLS or implicit TLS)
    NullDeliverer — Dry-run transport that only logs
"""

from .errors import DeliveryError
from .models import DeliveryRequest, DeliveryResult
from .transport import Deliverer, NullDeliverer, SmtpDeliverer

__all__ = [
    # Errors
    "DeliveryError",
    # Models
    "DeliveryRequest",
    "DeliveryResult",
    # Core
    "Deliverer",
    "NullDeliverer",
    "SmtpDeliverer",
]
