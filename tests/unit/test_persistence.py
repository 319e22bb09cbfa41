"""Tests for google_source_auth/credentials/persistence.py - wire form of translated credentials."""

import json
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
from pydantic import SecretStr

from google_source_auth.credentials.context import HostContext
from google_source_auth.credentials.persistence import (
    PersistedCredential,
    dump_credential,
    load_credential,
    to_persisted,
)
from google_source_auth.credentials.requirements import OAuthScopeRequirement
from google_source_auth.credentials.robot import RemoteRobotCredential
from google_source_auth.credentials.strategy import SOURCE_READ_WRITE_SCOPE, Strategy
from google_source_auth.credentials.translated import LiveCredential, SnapshotCredential, snapshot
from google_source_auth.exceptions import CredentialFormatError, CredentialUnavailableError


@pytest.fixture
def live(host_context) -> LiveCredential:
    return LiveCredential("foo", Strategy.CLOUD_PLATFORM, host_context)


class TestDumpCredential:
    """Tests for serializing translated credentials."""

    def test_live_embeds_snapshot_state(self, live, robot):
        """Should embed identity and minted token for remote use."""
        data = json.loads(dump_credential(live))

        assert data["credential_id"] == "foo"
        assert data["strategy"] == "CLOUD_PLATFORM"
        assert data["module_state"]["identity"] == robot.username
        assert data["module_state"]["remote"]["token"] == robot.token
        assert data["module_state"]["remote"]["scopes"] == [SOURCE_READ_WRITE_SCOPE]
        assert robot.remote_requests == [Strategy.CLOUD_PLATFORM.scope]

    def test_live_without_remote_state(self, live, robot):
        """Should write only id and strategy when not sent to a worker."""
        persisted = to_persisted(live, for_remote=False)

        assert persisted == PersistedCredential(credential_id="foo", strategy="CLOUD_PLATFORM")
        assert robot.remote_requests == []

    def test_snapshot_always_embeds_state(self, live):
        """Should keep snapshot state even with for_remote=False."""
        persisted = to_persisted(snapshot(live), for_remote=False)

        assert persisted.module_state is not None

    def test_live_with_missing_robot(self, live, store):
        """Should raise CredentialUnavailableError when the robot is gone."""
        store.remove("foo")

        with pytest.raises(CredentialUnavailableError):
            dump_credential(live)

    def test_unserializable_remote(self, robot):
        """Should reject remote credentials it cannot write."""
        credential = SnapshotCredential("foo", Strategy.GERRIT, "git", robot)

        with pytest.raises(CredentialFormatError):
            dump_credential(credential)


class TestLoadCredential:
    """Tests for deserializing translated credentials."""

    def test_round_trip_on_agent(self, live, agent_context):
        """Should restore a snapshot with the same identity and token."""
        captured = snapshot(live)
        identity_before = captured.username()
        token_before = captured.password().get_secret_value()

        restored = load_credential(dump_credential(captured), agent_context)

        assert isinstance(restored, SnapshotCredential)
        assert restored.username() == identity_before
        assert restored.password().get_secret_value() == token_before
        assert restored.id == "source:foo"

    def test_round_trip_makes_no_store_call(self, store, agent_context):
        """Should restore and use a snapshot without consulting any store."""
        spy = Mock(wraps=store)
        payload = dump_credential(snapshot(LiveCredential("foo", Strategy.GERRIT, HostContext(spy))))
        spy.reset_mock()

        restored = load_credential(payload, agent_context)
        restored.username()
        restored.password()

        spy.lookup_credentials.assert_not_called()

    def test_load_live_with_store_access(self, live, host_context):
        """Should come back live where the store is reachable."""
        restored = load_credential(dump_credential(live), host_context)

        assert isinstance(restored, LiveCredential)
        assert restored.credential_id == "foo"
        assert restored.strategy is Strategy.CLOUD_PLATFORM
        assert restored.context is host_context

    def test_load_without_state_on_agent(self, live, agent_context):
        """Should refuse a stateless payload where the store is unreachable."""
        payload = dump_credential(live, for_remote=False)

        with pytest.raises(CredentialFormatError) as exc_info:
            load_credential(payload, agent_context)

        assert exc_info.value.reference == "foo"

    def test_expiry_round_trip(self, agent_context):
        """Should keep the token expiry."""
        expiry = datetime(2031, 5, 1, 8, 30, tzinfo=UTC)
        scope = OAuthScopeRequirement.of(SOURCE_READ_WRITE_SCOPE)
        remote = RemoteRobotCredential("foo", "foo@proj.iam.gserviceaccount.com", scope, SecretStr("tok"), expiry)
        credential = SnapshotCredential("foo", Strategy.CLOUD_PLATFORM, "foo@proj.iam.gserviceaccount.com", remote)

        restored = load_credential(dump_credential(credential), agent_context)

        assert restored.remote.expiry == expiry
        assert restored == credential

    def test_unknown_strategy(self, agent_context):
        """Should reject unknown strategy names."""
        payload = json.dumps({"credential_id": "foo", "strategy": "NOPE", "module_state": None})

        with pytest.raises(CredentialFormatError):
            load_credential(payload, agent_context)

    def test_malformed_payload(self, agent_context):
        """Should wrap validation errors."""
        with pytest.raises(CredentialFormatError) as exc_info:
            load_credential('{"strategy": "GERRIT"}', agent_context)

        assert "Invalid persisted credential" in exc_info.value.message
