"""
Credential resolution: static -> environment -> instance metadata role.

Example usage:
    from awsauth import CredentialResolver

    resolver = CredentialResolver()
    credentials = resolver.resolve()
"""

import datetime
import logging
import threading
from typing import Callable, Mapping, Optional

from .credentials import Credentials, utc_now
from .exceptions import NoRoleError
from .location import LocationCache
from .metadata import MetadataClient

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime.datetime]


class CredentialResolver:
    """
    Owns the current credentials and refreshes them when needed.

    Resolution is serialized by a lock, so concurrent callers that need a
    refresh share one metadata lookup instead of issuing their own.
    Metadata failures never propagate; resolve() then returns whatever
    credentials are held, possibly empty.
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        environ: Optional[Mapping[str, str]] = None,
        location: Optional[LocationCache] = None,
        metadata: Optional[MetadataClient] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize resolver.

        Args:
            credentials: Static credentials; take precedence over the environment
            environ: Environment mapping (defaults to os.environ)
            location: Reachability cache for the metadata service
            metadata: Metadata client used for role credentials
            clock: Returns the current timezone-aware time
        """
        self._credentials = credentials
        self._environ = environ
        self.location = location if location is not None else LocationCache()
        self.metadata = metadata if metadata is not None else MetadataClient()
        self._clock = clock or utc_now
        self._lock = threading.Lock()

    @property
    def credentials(self) -> Optional[Credentials]:
        """Currently held credentials, without resolving."""
        return self._credentials

    def set_credentials(self, credentials: Optional[Credentials]):
        """Replace held credentials; None makes the next resolve re-read the environment."""
        with self._lock:
            self._credentials = credentials

    def resolve(self) -> Credentials:
        """
        Return the credentials to sign with, refreshing them as needed.

        Returns:
            Current credentials. May be incomplete when neither the
            environment nor the metadata service supplied any.
        """
        with self._lock:
            if self._credentials is None:
                self._credentials = Credentials.from_env(self._environ)

            if not self._credentials.access_key_id and self._on_instance():
                self._credentials = self._refresh()

            if self._credentials.is_expired(self._clock()) and self._on_instance():
                logger.info("Credentials expired at %s, refreshing",
                            self._credentials.expiration.isoformat())
                self._credentials = self._refresh()

            return self._credentials

    def _on_instance(self) -> bool:
        return self.location.is_metadata_service_reachable()

    def _refresh(self) -> Credentials:
        result = self.metadata.lookup()
        if isinstance(result.error, NoRoleError):
            logger.info("Metadata service reachable but no IAM role attached")
        elif result.error is not None:
            logger.warning("Metadata credential refresh failed: %s", result.error)
        else:
            logger.debug("Loaded credentials for role %s", result.role)
        return result.credentials


_default_resolver: Optional[CredentialResolver] = None
_default_lock = threading.Lock()


def default_resolver() -> CredentialResolver:
    """Return the process-wide resolver, creating it on first use."""
    global _default_resolver
    with _default_lock:
        if _default_resolver is None:
            _default_resolver = CredentialResolver()
        return _default_resolver


def resolve_credentials() -> Credentials:
    """Resolve credentials through the process-wide resolver."""
    return default_resolver().resolve()
