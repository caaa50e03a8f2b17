"""
Error types raised by the admin services.

The persistence gateway never raises: it logs and returns None/False/[]. The
services turn those results, and their own checks, into the exceptions below,
which the API layer renders as {"detail": ...} responses.
"""
from typing import List, Optional


class CatalogError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Bad input, rejected before any store call."""
    status_code = 400


class NotFoundError(CatalogError):
    status_code = 404


class InUseError(CatalogError):
    """A delete blocked because products still reference the target."""
    status_code = 409

    def __init__(self, message: str, count: int):
        super().__init__(message)
        self.count = count


class StoreError(CatalogError):
    """The remote store reported a failure for this action."""
    status_code = 502


class CascadeError(StoreError):
    """
    A subcategory rename that only partly reached the store.

    `renamed` products were updated and stay updated; `failed` products still
    carry the old name. The category list is left untouched.
    """

    def __init__(self, message: str, renamed: Optional[List[str]] = None, failed: Optional[List[str]] = None):
        super().__init__(message)
        self.renamed = renamed or []
        self.failed = failed or []
