"""
Delivery errors.

Delivery is attempted once per package. Failures are reported, never retried.
"""


class DeliveryError(Exception):
    """Raised when a package could not be handed to the delivery transport."""

    def __init__(self, artifact_path: str, reason: str):
        self.artifact_path = artifact_path
        self.reason = reason
        super().__init__(f"Failed to deliver {artifact_path}: {reason}")
