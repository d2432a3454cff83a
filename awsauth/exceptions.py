"""
Custom exceptions for the awsauth library.
"""


class AWSAuthError(Exception):
    """Base exception for awsauth errors."""
    pass


class ConfigurationError(AWSAuthError):
    """Raised when a component configuration is invalid."""
    pass


class MetadataError(AWSAuthError):
    """Base class for instance metadata service failures."""
    pass


class MetadataTransportError(MetadataError):
    """Raised when a metadata request cannot be completed."""
    pass


class MalformedMetadataError(MetadataError):
    """Raised when a metadata response cannot be parsed."""
    pass


class NoRoleError(MetadataError):
    """Raised when the metadata service reports no IAM role."""
    pass
