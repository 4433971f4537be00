"""Permission resolution and the consent hand-off.

A permission request moves Unrequested -> AlreadySatisfied | PendingUserConsent
-> Resolved. When consent is needed, everything the resumed request needs is
carried in an immutable ConsentRequest; nothing is parked on shared state, so
concurrent requests stay isolated.
"""

import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field

from healthbridge.core.exceptions import HealthBridgeException, PlatformError, ValidationError
from healthbridge.core.logging import get_logger
from healthbridge.registry import read_permission_for, write_permission_for
from healthbridge.schemas.health import AuthorizationStatus
from healthbridge.store.base import HealthStore

logger = get_logger(__name__)


def _dedupe(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


@dataclass(frozen=True)
class CapabilityRequest:
    """Validated read and write capabilities with their permission tokens."""

    read: tuple[str, ...] = ()
    write: tuple[str, ...] = ()
    read_permissions: dict[str, str] = field(default_factory=dict, compare=False)
    write_permissions: dict[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def parse(cls, read: Iterable[str] = (), write: Iterable[str] = ()) -> "CapabilityRequest":
        """Validate identifiers, raising ValidationError for unknown ones.

        Special read-only tokens (workouts, sleep, hydration) are rejected in
        the write set.
        """
        read = _dedupe(read)
        write = _dedupe(write)
        for capability in (*read, *write):
            if not isinstance(capability, str) or not capability:
                raise ValidationError("capability", f"Unsupported data type: {capability!r}")
        return cls(
            read=read,
            write=write,
            read_permissions={c: read_permission_for(c) for c in read},
            write_permissions={c: write_permission_for(c) for c in write},
        )

    def required_permissions(self, include_writes: bool = True) -> frozenset[str]:
        required = frozenset(self.read_permissions.values())
        if include_writes:
            required |= frozenset(self.write_permissions.values())
        return required


def authorization_status(
    request: CapabilityRequest,
    granted: frozenset[str],
    include_writes: bool = True,
) -> AuthorizationStatus:
    """Partition each requested capability by whether its token is granted."""
    status = AuthorizationStatus()
    for capability in request.read:
        if request.read_permissions[capability] in granted:
            status.read_authorized.append(capability)
        else:
            status.read_denied.append(capability)
    if include_writes:
        for capability in request.write:
            if request.write_permissions[capability] in granted:
                status.write_authorized.append(capability)
            else:
                status.write_denied.append(capability)
    return status


@dataclass(frozen=True)
class ConsentRequest:
    """Correlation token for a request paused on user consent."""

    capabilities: CapabilityRequest
    missing_permissions: frozenset[str]
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))


class ConsentHandler(ABC):
    """External consent flow. Returns once the user has answered."""

    @abstractmethod
    async def request_consent(self, store: HealthStore, consent: ConsentRequest) -> None:
        ...


class DeferredConsentHandler(ConsentHandler):
    """Leaves granting to the platform's own permission UI."""

    async def request_consent(self, store: HealthStore, consent: ConsentRequest) -> None:
        logger.info(
            "consent_deferred",
            correlation_id=consent.correlation_id,
            permissions=sorted(consent.missing_permissions),
        )


class GrantAllConsentHandler(ConsentHandler):
    """Grants every missing permission. Development only."""

    async def request_consent(self, store: HealthStore, consent: ConsentRequest) -> None:
        await store.grant_permissions(consent.missing_permissions)
        logger.info(
            "consent_auto_granted",
            correlation_id=consent.correlation_id,
            permissions=sorted(consent.missing_permissions),
        )


class PermissionResolver:
    """Computes and requests the permissions behind a set of capabilities."""

    def __init__(self, store: HealthStore, consent_handler: ConsentHandler):
        self._store = store
        self._consent_handler = consent_handler

    async def _status(self, request: CapabilityRequest) -> AuthorizationStatus:
        granted = await self._store.granted_permissions()
        return authorization_status(request, granted, include_writes=not self._store.read_only)

    async def check(self, request: CapabilityRequest) -> AuthorizationStatus:
        return await self._status(request)

    async def request(self, request: CapabilityRequest) -> AuthorizationStatus:
        # A read-only store never holds write grants, so writes are not asked for
        include_writes = not self._store.read_only
        required = request.required_permissions(include_writes)
        granted = await self._store.granted_permissions()

        if required <= granted:
            logger.info("authorization_already_satisfied", permissions=len(required))
            return authorization_status(request, granted, include_writes=include_writes)

        consent = ConsentRequest(capabilities=request, missing_permissions=required - granted)
        logger.info(
            "authorization_pending_consent",
            correlation_id=consent.correlation_id,
            missing=len(consent.missing_permissions),
        )
        try:
            await self._consent_handler.request_consent(self._store, consent)
        except HealthBridgeException:
            raise
        except Exception as e:
            logger.error(
                "consent_launch_failed",
                correlation_id=consent.correlation_id,
                error=str(e),
            )
            raise PlatformError("Failed to launch permission request.", operation="consent") from e

        return await self.resume(consent)

    async def resume(self, consent: ConsentRequest) -> AuthorizationStatus:
        """Recompute the status for a request coming back from consent."""
        status = await self._status(consent.capabilities)
        logger.info(
            "authorization_resolved",
            correlation_id=consent.correlation_id,
            read_authorized=len(status.read_authorized),
            read_denied=len(status.read_denied),
        )
        return status
