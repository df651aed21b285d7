"""
Packaging-specific errors.

A packaging error is fatal for one package (one split part) only.
Sibling parts already written are left in place.
"""

from typing import Optional


class PackagingError(Exception):
    """Raised when an output package cannot be produced."""

    def __init__(self, reason: str, output_path: Optional[str] = None):
        self.reason = reason
        self.output_path = output_path
        if output_path:
            super().__init__(f"Failed to build package {output_path}: {reason}")
        else:
            super().__init__(f"Failed to build package: {reason}")
