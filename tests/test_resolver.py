"""
Unit tests for credential resolution.
"""

import datetime
import logging
import threading
import time
from unittest.mock import Mock

import pytest

import awsauth.resolver
from awsauth import (
    CredentialResolver,
    Credentials,
    LocationCache,
    MetadataClient,
    MetadataResult,
    MetadataTransportError,
    NoRoleError,
    default_resolver,
    resolve_credentials
)

UTC = datetime.timezone.utc
NOW = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

ENV = {
    "AWS_ACCESS_KEY_ID": "AKIAENV",
    "AWS_SECRET_ACCESS_KEY": "secret",
    "AWS_SECURITY_TOKEN": "",
}

ROLE_CREDS = Credentials(
    "ASIAROLE", "rolesecret", "roletoken",
    expiration=NOW + datetime.timedelta(hours=6),
)


def make_location(reachable):
    location = Mock(spec=LocationCache)
    location.is_metadata_service_reachable.return_value = reachable
    return location


def make_metadata(*results):
    metadata = Mock(spec=MetadataClient)
    metadata.lookup.side_effect = list(results)
    return metadata


class TestCredentialResolver:
    """Test resolution precedence and refresh."""

    def make_resolver(self, environ=None, reachable=False, results=(), **kwargs):
        return CredentialResolver(
            environ=environ if environ is not None else {},
            location=make_location(reachable),
            metadata=make_metadata(*results),
            clock=kwargs.pop('clock', lambda: NOW),
            **kwargs
        )

    def test_environment_without_metadata(self):
        """Test env credentials are used without any network activity."""
        resolver = self.make_resolver(environ=ENV)

        creds = resolver.resolve()

        assert creds == Credentials("AKIAENV", "secret", "", None)
        resolver.metadata.lookup.assert_not_called()
        resolver.location.is_metadata_service_reachable.assert_not_called()

    def test_environment_read_once(self):
        """Test held credentials are reused on later resolves."""
        environ = dict(ENV)
        resolver = self.make_resolver(environ=environ)

        first = resolver.resolve()
        environ["AWS_ACCESS_KEY_ID"] = "AKIACHANGED"

        assert resolver.resolve() is first

    def test_empty_environment_uses_metadata(self):
        """Test metadata credentials replace empty env credentials."""
        resolver = self.make_resolver(
            reachable=True,
            results=[MetadataResult(credentials=ROLE_CREDS, role="role-a")],
        )

        assert resolver.resolve() is ROLE_CREDS
        resolver.metadata.lookup.assert_called_once()

    def test_empty_environment_unreachable(self):
        """Test empty credentials are returned off-instance."""
        resolver = self.make_resolver(reachable=False)

        assert resolver.resolve() == Credentials()
        resolver.metadata.lookup.assert_not_called()

    def test_static_credentials_take_precedence(self):
        """Test static credentials win over the environment."""
        static = Credentials("AKIASTATIC", "staticsecret")
        resolver = self.make_resolver(environ=ENV, credentials=static)

        assert resolver.resolve() is static

    def test_static_credentials_without_key_use_metadata(self):
        """Test static credentials lacking an access key are refreshed."""
        resolver = self.make_resolver(
            credentials=Credentials(),
            reachable=True,
            results=[MetadataResult(credentials=ROLE_CREDS, role="role-a")],
        )

        assert resolver.resolve() is ROLE_CREDS

    def test_expired_credentials_refreshed(self):
        """Test expired credentials are replaced when on an instance."""
        expired = Credentials("ASIAOLD", "old", "oldtoken",
                              expiration=NOW - datetime.timedelta(seconds=1))
        resolver = self.make_resolver(
            credentials=expired,
            reachable=True,
            results=[MetadataResult(credentials=ROLE_CREDS, role="role-a")],
        )

        assert resolver.resolve() is ROLE_CREDS
        assert resolver.credentials is ROLE_CREDS

    def test_expired_credentials_unreachable(self):
        """Test expired credentials are kept when off-instance."""
        expired = Credentials("ASIAOLD", "old",
                              expiration=NOW - datetime.timedelta(seconds=1))
        resolver = self.make_resolver(credentials=expired, reachable=False)

        assert resolver.resolve() is expired
        resolver.metadata.lookup.assert_not_called()

    def test_naive_static_expiration_does_not_raise(self):
        """Test static credentials with a naive expiration resolve cleanly."""
        static = Credentials("AKIA", "s", expiration=datetime.datetime(2020, 1, 1))
        resolver = self.make_resolver(credentials=static, reachable=False)

        creds = resolver.resolve()

        assert creds.access_key_id == "AKIA"
        assert creds.expiration == datetime.datetime(2020, 1, 1, tzinfo=UTC)
        resolver.metadata.lookup.assert_not_called()

    def test_naive_expiration_via_set_credentials_refreshed(self):
        """Test expired naive credentials set at runtime are refreshed."""
        resolver = self.make_resolver(
            reachable=True,
            results=[MetadataResult(credentials=ROLE_CREDS, role="role-a")],
        )
        resolver.set_credentials(
            Credentials("ASIAOLD", "old", expiration=datetime.datetime(2020, 1, 1))
        )

        assert resolver.resolve() is ROLE_CREDS

    def test_refresh_follows_clock(self):
        """Test expiry is evaluated against the injected clock."""
        clock = Mock(return_value=NOW)
        later = Credentials("ASIANEW", "new",
                            expiration=NOW + datetime.timedelta(hours=12))
        resolver = self.make_resolver(
            reachable=True,
            clock=clock,
            results=[
                MetadataResult(credentials=ROLE_CREDS, role="role-a"),
                MetadataResult(credentials=later, role="role-a"),
            ],
        )

        assert resolver.resolve() is ROLE_CREDS
        assert resolver.resolve() is ROLE_CREDS
        assert resolver.metadata.lookup.call_count == 1

        clock.return_value = NOW + datetime.timedelta(hours=7)

        assert resolver.resolve() is later
        assert resolver.metadata.lookup.call_count == 2

    def test_metadata_failure_is_absorbed(self, caplog):
        """Test transport failures yield empty credentials and a warning."""
        resolver = self.make_resolver(
            reachable=True,
            results=[MetadataResult(error=MetadataTransportError("refused"))],
        )

        with caplog.at_level(logging.WARNING, logger="awsauth.resolver"):
            creds = resolver.resolve()

        assert creds == Credentials()
        assert "refresh failed" in caplog.text

    def test_no_role_is_observable(self, caplog):
        """Test a missing IAM role is logged separately from failures."""
        resolver = self.make_resolver(
            reachable=True,
            results=[MetadataResult(error=NoRoleError("no role"))],
        )

        with caplog.at_level(logging.INFO, logger="awsauth.resolver"):
            creds = resolver.resolve()

        assert creds == Credentials()
        assert "no IAM role attached" in caplog.text
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_empty_credentials_retry_each_resolve(self):
        """Test empty credentials trigger a new lookup on the next resolve."""
        resolver = self.make_resolver(
            reachable=True,
            results=[
                MetadataResult(error=NoRoleError("no role")),
                MetadataResult(credentials=ROLE_CREDS, role="role-a"),
            ],
        )

        assert resolver.resolve() == Credentials()
        assert resolver.resolve() is ROLE_CREDS

    def test_set_credentials(self):
        """Test replacing and clearing held credentials."""
        resolver = self.make_resolver(environ=ENV)
        static = Credentials("AKIASET", "setsecret")

        resolver.set_credentials(static)
        assert resolver.resolve() is static

        resolver.set_credentials(None)
        assert resolver.credentials is None
        assert resolver.resolve().access_key_id == "AKIAENV"

    def test_concurrent_refresh_coalesced(self):
        """Test concurrent resolves share a single metadata lookup."""
        def slow_lookup():
            time.sleep(0.05)
            return MetadataResult(credentials=ROLE_CREDS, role="role-a")

        resolver = self.make_resolver(reachable=True)
        resolver.metadata.lookup.side_effect = slow_lookup
        results = []

        threads = [
            threading.Thread(target=lambda: results.append(resolver.resolve()))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(creds is ROLE_CREDS for creds in results)
        assert resolver.metadata.lookup.call_count == 1


class TestDefaultResolver:
    """Test the process-wide resolver."""

    @pytest.fixture(autouse=True)
    def reset_default(self, monkeypatch):
        """Isolate the module-level resolver between tests."""
        monkeypatch.setattr(awsauth.resolver, '_default_resolver', None)

    def test_default_resolver_is_shared(self):
        """Test default_resolver returns one instance per process."""
        assert default_resolver() is default_resolver()

    def test_resolve_credentials_uses_default(self, monkeypatch):
        """Test resolve_credentials delegates to the default resolver."""
        resolver = CredentialResolver(
            environ=ENV,
            location=make_location(False),
            metadata=make_metadata(),
        )
        monkeypatch.setattr(awsauth.resolver, '_default_resolver', resolver)

        assert resolve_credentials().access_key_id == "AKIAENV"
