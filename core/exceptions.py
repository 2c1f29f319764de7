"""Error taxonomy shared by the upload and analysis pipeline.

Each class maps to one failure policy: authorization and gateway/persistence
errors fail an analysis call outright, upload errors are isolated per file.
"""


class InventoryPlatformError(Exception):
    """Base class for pipeline errors that carry a client-safe message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(InventoryPlatformError):
    """Missing, malformed, expired or unknown bearer token."""

    status_code = 401


class UploadError(InventoryPlatformError):
    """A single file could not be written to object storage."""

    status_code = 400


class GatewayError(InventoryPlatformError):
    """The extraction gateway failed or returned an unusable payload."""


class PersistenceError(InventoryPlatformError):
    """Inserting extracted items into the inventory store failed."""
