"""
Credential record shared by the resolver and the metadata client.
"""

import datetime
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .constants import ENV_ACCESS_KEY_ID, ENV_SECRET_ACCESS_KEY, ENV_SECURITY_TOKEN
from .exceptions import MalformedMetadataError


def utc_now() -> datetime.datetime:
    """Default clock for expiry checks."""
    return datetime.datetime.now(datetime.timezone.utc)


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # Naive timestamps are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def _parse_expiration(value: Any) -> Optional[datetime.datetime]:
    if value in (None, ''):
        return None
    if not isinstance(value, str):
        raise MalformedMetadataError(f"Expiration is not a string: {value!r}")
    try:
        expiration = datetime.datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError as e:
        raise MalformedMetadataError(f"Invalid Expiration {value!r}: {e}")
    return _as_utc(expiration)


@dataclass(frozen=True)
class Credentials:
    """
    AWS credential set.

    Instances are immutable; a refresh replaces the whole record.
    Empty strings mean "not provided".
    """

    access_key_id: str = ''
    secret_access_key: str = field(default='', repr=False)
    security_token: str = field(default='', repr=False)
    expiration: Optional[datetime.datetime] = None

    def __post_init__(self):
        if self.expiration is not None:
            object.__setattr__(self, 'expiration', _as_utc(self.expiration))

    def __bool__(self) -> bool:
        return bool(self.access_key_id)

    def is_expired(self, now: Optional[datetime.datetime] = None) -> bool:
        """
        Check whether the credentials have passed their expiration.

        Credentials without an expiration never expire.

        Args:
            now: Current time, naive values are taken as UTC; defaults to UTC now
        """
        if self.expiration is None:
            return False
        if now is None:
            now = utc_now()
        return self.expiration < _as_utc(now)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Credentials':
        """Read credentials from environment variables; unset ones become ''."""
        if environ is None:
            environ = os.environ
        return cls(
            access_key_id=environ.get(ENV_ACCESS_KEY_ID, ''),
            secret_access_key=environ.get(ENV_SECRET_ACCESS_KEY, ''),
            security_token=environ.get(ENV_SECURITY_TOKEN, ''),
        )

    @classmethod
    def from_metadata(cls, document: Any) -> 'Credentials':
        """
        Build credentials from an instance metadata role document.

        Args:
            document: Decoded JSON object with AccessKeyId, SecretAccessKey,
                Token and Expiration keys

        Raises:
            MalformedMetadataError: If the document is not an object or a
                field has the wrong shape
        """
        if not isinstance(document, dict):
            raise MalformedMetadataError(
                f"Expected a JSON object, got {type(document).__name__}"
            )

        values = {}
        for key, attr in (('AccessKeyId', 'access_key_id'),
                          ('SecretAccessKey', 'secret_access_key'),
                          ('Token', 'security_token')):
            value = document.get(key) or ''
            if not isinstance(value, str):
                raise MalformedMetadataError(f"{key} is not a string")
            values[attr] = value

        return cls(expiration=_parse_expiration(document.get('Expiration')), **values)
