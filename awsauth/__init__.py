"""
Credential resolution and signing primitives for AWS-style request signing.

Credentials come from static configuration, the environment, or the IAM
role exposed by the EC2 instance metadata service.

Example usage:
    from awsauth import resolve_credentials, hmac_sha256

    credentials = resolve_credentials()
    k_date = hmac_sha256(("AWS4" + credentials.secret_access_key).encode(), "20240101")
"""

from .credentials import Credentials
from .digests import hash_md5, hash_sha256, hmac_sha1, hmac_sha256
from .exceptions import (
    AWSAuthError,
    ConfigurationError,
    MetadataError,
    MetadataTransportError,
    MalformedMetadataError,
    NoRoleError
)
from .location import LocationCache, LocationStatus
from .metadata import MetadataClient, MetadataResult
from .request_utils import extract_body, merge_query_params, service_and_region
from .resolver import CredentialResolver, default_resolver, resolve_credentials

__version__ = "1.0.0"
__all__ = [
    "Credentials",
    "CredentialResolver",
    "LocationCache",
    "LocationStatus",
    "MetadataClient",
    "MetadataResult",
    "AWSAuthError",
    "ConfigurationError",
    "MetadataError",
    "MetadataTransportError",
    "MalformedMetadataError",
    "NoRoleError",
    "default_resolver",
    "resolve_credentials",
    "hmac_sha256",
    "hmac_sha1",
    "hash_sha256",
    "hash_md5",
    "extract_body",
    "merge_query_params",
    "service_and_region"
]
