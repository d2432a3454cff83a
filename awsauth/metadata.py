"""
Client for the IAM role credentials exposed by the EC2 instance metadata service.

Signing sits on a latency-sensitive path, so the public methods never raise
on service failures. list_roles() and fetch_role_credentials() degrade to
empty results; lookup() additionally reports which failure occurred.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .constants import DEFAULT_CONFIG, METADATA_BASE_URL, METADATA_CREDENTIALS_PATH
from .credentials import Credentials
from .exceptions import (
    ConfigurationError,
    MalformedMetadataError,
    MetadataError,
    MetadataTransportError,
    NoRoleError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataResult:
    """Outcome of a role credential lookup."""

    credentials: Credentials = field(default_factory=Credentials)
    role: Optional[str] = None
    error: Optional[MetadataError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MetadataClient:
    """
    Fetches role credentials from the instance metadata service.

    Each request is attempted once; there are no retries.
    """

    def __init__(self, base_url: str = METADATA_BASE_URL, **config):
        """
        Initialize metadata client.

        Args:
            base_url: Metadata service root URL
            **config: Configuration options (timeout)
        """
        self.base_url = base_url.rstrip('/')
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        self.session = requests.Session()

    def _validate_config(self):
        if self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

    @property
    def credentials_url(self) -> str:
        return self.base_url + METADATA_CREDENTIALS_PATH

    def _get(self, url: str) -> requests.Response:
        try:
            response = self.session.get(url, timeout=self.config['timeout'])
            response.raise_for_status()
        except requests.RequestException as e:
            raise MetadataTransportError(f"GET {url} failed: {e}")
        return response

    def _list_roles(self) -> List[str]:
        response = self._get(self.credentials_url)
        return [line.strip() for line in response.text.splitlines() if line.strip()]

    def _fetch_role_credentials(self, role: str) -> Credentials:
        response = self._get(self.credentials_url + role)
        try:
            document = response.json()
        except ValueError as e:
            raise MalformedMetadataError(f"Invalid JSON for role {role!r}: {e}")
        return Credentials.from_metadata(document)

    def list_roles(self) -> List[str]:
        """
        List the IAM roles attached to this instance.

        Returns:
            Role names in service order, or [] on any failure
        """
        try:
            return self._list_roles()
        except MetadataError as e:
            logger.warning("Could not list IAM roles: %s", e)
            return []

    def fetch_role_credentials(self, role: str) -> Credentials:
        """
        Fetch temporary credentials for an IAM role.

        Args:
            role: Role name as returned by list_roles()

        Returns:
            Role credentials, or empty Credentials on any failure
        """
        try:
            return self._fetch_role_credentials(role)
        except MetadataError as e:
            logger.warning("Could not fetch credentials for role %s: %s", role, e)
            return Credentials()

    def lookup(self) -> MetadataResult:
        """
        Fetch credentials for the first attached role.

        Only the first listed role is ever used.

        Returns:
            MetadataResult whose error tells a missing role apart from
            transport or parsing failures
        """
        try:
            roles = self._list_roles()
            if not roles:
                raise NoRoleError("No IAM role attached to this instance")
            role = roles[0]
        except MetadataError as e:
            return MetadataResult(error=e)

        try:
            credentials = self._fetch_role_credentials(role)
        except MetadataError as e:
            return MetadataResult(role=role, error=e)
        return MetadataResult(credentials=credentials, role=role)

    def get_role_credentials(self) -> Credentials:
        """Credentials for the first attached role, or empty Credentials."""
        return self.lookup().credentials

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
