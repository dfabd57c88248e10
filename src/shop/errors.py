# error taxonomy shared by the store adapter, the managers and the views
from typing import Optional


class StorefrontError(Exception):
    """Base class, every error here is caught at the UI boundary and shown to the user."""


class ConfigurationError(StorefrontError):
    """Required connection parameters are missing or malformed."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            "Missing or invalid configuration: " + ", ".join(self.missing)
        )


class AuthError(StorefrontError):
    """No identity could be acquired, or store access was attempted without one."""


class StoreReadError(StorefrontError):
    """A subscription or read delivered an error instead of a snapshot."""


class StoreWriteError(StorefrontError):
    """create / update / delete failed."""


class ValidationError(StorefrontError):
    """Bad caller input, rejected before any store call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AdminAuthError(StorefrontError):
    """Wrong admin password, or an admin action without the admin flag."""
