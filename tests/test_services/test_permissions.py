"""Tests for permission resolution and the consent hand-off."""

import asyncio

import pytest
from conftest import FakeHealthStore

from healthbridge.core.exceptions import PlatformError, StoreUnavailableError, ValidationError
from healthbridge.services.permissions import (
    CapabilityRequest,
    ConsentHandler,
    ConsentRequest,
    DeferredConsentHandler,
    GrantAllConsentHandler,
    PermissionResolver,
)
from healthbridge.store.base import HealthStore, StoreStatus

READ_STEPS = "android.permission.health.READ_STEPS"
READ_EXERCISE = "android.permission.health.READ_EXERCISE"
READ_HEART_RATE = "android.permission.health.READ_HEART_RATE"
WRITE_STEPS = "android.permission.health.WRITE_STEPS"


class RecordingConsentHandler(ConsentHandler):
    """Grants a fixed subset of the missing permissions and remembers each call."""

    def __init__(self, grant: frozenset[str] = frozenset()):
        self.grant = grant
        self.requests: list[ConsentRequest] = []

    async def request_consent(self, store: HealthStore, consent: ConsentRequest) -> None:
        self.requests.append(consent)
        granted = consent.missing_permissions & self.grant
        if granted:
            await store.grant_permissions(granted)


class FailingConsentHandler(ConsentHandler):
    async def request_consent(self, store: HealthStore, consent: ConsentRequest) -> None:
        raise RuntimeError("no foreground activity")


class TestCapabilityRequest:
    """Tests for request parsing."""

    def test_required_permissions(self):
        request = CapabilityRequest.parse(read=["steps", "workouts"], write=["steps"])
        assert request.required_permissions() == {READ_STEPS, READ_EXERCISE, WRITE_STEPS}

    def test_required_permissions_without_writes(self):
        request = CapabilityRequest.parse(read=["steps"], write=["steps"])
        assert request.required_permissions(include_writes=False) == {READ_STEPS}

    def test_duplicates_reported_once(self):
        request = CapabilityRequest.parse(read=["steps", "sleep", "steps"])
        assert request.read == ("steps", "sleep")

    def test_unknown_read_rejected(self):
        with pytest.raises(ValidationError):
            CapabilityRequest.parse(read=["steps", "mood"])

    def test_special_token_in_write_rejected(self):
        with pytest.raises(ValidationError):
            CapabilityRequest.parse(write=["workouts"])


class TestCheck:
    """Tests for checkAuthorization partitions."""

    def test_partitions(self):
        store = FakeHealthStore(granted={READ_STEPS, WRITE_STEPS})
        resolver = PermissionResolver(store, DeferredConsentHandler())
        request = CapabilityRequest.parse(read=["steps", "heartRate"], write=["steps", "weight"])

        status = asyncio.run(resolver.check(request))

        assert status.read_authorized == ["steps"]
        assert status.read_denied == ["heartRate"]
        assert status.write_authorized == ["steps"]
        assert status.write_denied == ["weight"]

    def test_read_only_store_reports_no_writes(self):
        store = FakeHealthStore(granted={READ_STEPS, WRITE_STEPS}, read_only=True)
        resolver = PermissionResolver(store, DeferredConsentHandler())
        request = CapabilityRequest.parse(read=["steps"], write=["steps"])

        status = asyncio.run(resolver.check(request))

        assert status.read_authorized == ["steps"]
        assert status.write_authorized == []
        assert status.write_denied == []

    def test_unavailable_store(self):
        store = FakeHealthStore(status=StoreStatus.UPDATE_REQUIRED)
        resolver = PermissionResolver(store, DeferredConsentHandler())

        with pytest.raises(StoreUnavailableError, match="needs an update"):
            asyncio.run(resolver.check(CapabilityRequest.parse(read=["steps"])))


class TestRequest:
    """Tests for the request / consent state machine."""

    def test_already_satisfied_skips_consent(self):
        """A fully granted request resolves without a hand-off."""
        handler = RecordingConsentHandler()
        store = FakeHealthStore(granted={READ_STEPS, READ_EXERCISE})
        resolver = PermissionResolver(store, handler)

        status = asyncio.run(resolver.request(CapabilityRequest.parse(read=["steps", "workouts"])))

        assert handler.requests == []
        assert status.read_authorized == ["steps", "workouts"]

    def test_empty_request_skips_consent(self):
        handler = RecordingConsentHandler()
        resolver = PermissionResolver(FakeHealthStore(granted=set()), handler)

        status = asyncio.run(resolver.request(CapabilityRequest.parse()))

        assert handler.requests == []
        assert status.read_authorized == [] and status.read_denied == []

    def test_partial_grant_hands_off_and_recomputes(self):
        """A request with missing tokens always hands off, then reports current grants."""
        handler = RecordingConsentHandler(grant=frozenset({READ_HEART_RATE}))
        store = FakeHealthStore(granted={READ_STEPS})
        resolver = PermissionResolver(store, handler)
        request = CapabilityRequest.parse(read=["steps", "heartRate", "workouts"])

        status = asyncio.run(resolver.request(request))

        [consent] = handler.requests
        assert consent.missing_permissions == {READ_HEART_RATE, READ_EXERCISE}
        assert consent.capabilities == request
        assert status.read_authorized == ["steps", "heartRate"]
        assert status.read_denied == ["workouts"]

    def test_deferred_consent_grants_nothing(self):
        store = FakeHealthStore(granted=set())
        resolver = PermissionResolver(store, DeferredConsentHandler())

        status = asyncio.run(resolver.request(CapabilityRequest.parse(read=["steps"])))

        assert status.read_denied == ["steps"]
        assert store.grant_calls == []

    def test_grant_all_consent(self):
        store = FakeHealthStore(granted=set())
        resolver = PermissionResolver(store, GrantAllConsentHandler())

        status = asyncio.run(
            resolver.request(CapabilityRequest.parse(read=["steps"], write=["steps"]))
        )

        assert status.read_authorized == ["steps"]
        assert status.write_authorized == ["steps"]
        assert store.grant_calls == [frozenset({READ_STEPS, WRITE_STEPS})]

    def test_read_only_store_ignores_writes(self):
        """Write tokens a read-only store can never grant do not trigger consent."""
        handler = RecordingConsentHandler()
        store = FakeHealthStore(granted={READ_STEPS}, read_only=True)
        resolver = PermissionResolver(store, handler)

        status = asyncio.run(
            resolver.request(CapabilityRequest.parse(read=["steps"], write=["steps"]))
        )

        assert handler.requests == []
        assert status.read_authorized == ["steps"]
        assert status.write_authorized == [] and status.write_denied == []

    def test_read_only_grant_all_skips_write_tokens(self):
        store = FakeHealthStore(granted=set(), read_only=True)
        resolver = PermissionResolver(store, GrantAllConsentHandler())

        status = asyncio.run(
            resolver.request(CapabilityRequest.parse(read=["steps"], write=["steps"]))
        )

        assert store.grant_calls == [frozenset({READ_STEPS})]
        assert status.read_authorized == ["steps"]
        assert status.write_authorized == []

    def test_launch_failure(self):
        resolver = PermissionResolver(FakeHealthStore(granted=set()), FailingConsentHandler())

        with pytest.raises(PlatformError, match="Failed to launch permission request."):
            asyncio.run(resolver.request(CapabilityRequest.parse(read=["steps"])))

    def test_concurrent_requests_stay_isolated(self):
        """Each pending request carries its own correlation token."""
        handler = RecordingConsentHandler(grant=frozenset({READ_STEPS}))
        store = FakeHealthStore(granted=set())
        resolver = PermissionResolver(store, handler)

        async def both():
            return await asyncio.gather(
                resolver.request(CapabilityRequest.parse(read=["steps"])),
                resolver.request(CapabilityRequest.parse(read=["heartRate"])),
            )

        steps_status, heart_status = asyncio.run(both())

        assert steps_status.read_authorized == ["steps"]
        assert heart_status.read_denied == ["heartRate"]
        assert heart_status.read_authorized == []
        assert len({c.correlation_id for c in handler.requests}) == 2
