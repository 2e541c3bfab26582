"""
Failures of remote collaborators, raised by adapters.

Both are transient from the caller's point of view: the step that hit them is
reported as failed and retried on the next pass.
"""

from typing import Optional


class StoreError(Exception):
    """A relational store call failed (connection, timeout, constraint, unknown table)"""


class IdentityProviderError(Exception):
    """An identity provider call failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
