"""
Error taxonomy shared by the ingestion services.

``NotFoundError`` means the thing genuinely does not exist and retrying will
not help. ``ServiceError`` means the upstream platform (or the network to it)
failed and the same call may succeed later.
"""
from typing import Optional


class IngestError(Exception):
    """Base class for ingestion failures."""


class NotFoundError(IngestError):
    pass


class ConflictError(IngestError):
    pass


class ValidationError(IngestError):
    pass


class ConfigurationError(IngestError):
    pass


class ServiceError(IngestError):
    """Upstream API returned a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
