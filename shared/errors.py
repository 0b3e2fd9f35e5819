"""Custom exceptions for asset purging."""

from typing import Optional

ACCESS_DENIED_CODES = ("AccessDenied", "AccessDeniedException", "403")
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound", "NoSuchDistribution")


class AssetPurgeError(Exception):
    """Base exception for asset purge errors."""

    pass


class ConfigurationError(AssetPurgeError):
    """Required setting or credential missing or malformed."""

    pass


class EmptyInputError(AssetPurgeError):
    """Identifier source yielded no identifiers."""

    pass


class IdentifierSourceError(AssetPurgeError):
    """Identifier file could not be read."""

    pass


class ConnectionEstablishmentError(AssetPurgeError):
    """Store or CDN connection could not be established."""

    pass


class RemoteCallError(AssetPurgeError):
    """Failure of a single remote call, tagged with the provider error code."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code

    @property
    def access_denied(self) -> bool:
        return self.error_code in ACCESS_DENIED_CODES

    @property
    def not_found(self) -> bool:
        return self.error_code in NOT_FOUND_CODES


class S3Error(RemoteCallError):
    """S3 operation errors."""

    pass


class CDNInvalidationError(RemoteCallError):
    """CloudFront operation errors."""

    pass
