"""Consent-based access requests and grants for health records."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Hashable

from healthchain.common import (
    DispatchError,
    Origin,
    Pallet,
    TimeProvider,
    U64_MAX,
    ensure_signed,
    generate_id,
)


class AccessStatus(Enum):
    """State of an access request."""

    Pending = 0
    Granted = 1
    Denied = 2
    Expired = 3


@dataclass
class AccessRequest:
    request_id: bytes
    record_id: bytes
    requester: Hashable
    patient: Hashable
    consent_id: bytes | None
    status: AccessStatus
    requested_at: int
    responded_at: int | None = None


class AccessControlError(DispatchError):
    """An access-control call failed; ``code`` names the reason."""


@dataclass(frozen=True)
class AccessRequested:
    request_id: bytes
    record_id: bytes
    requester: Hashable


@dataclass(frozen=True)
class AccessGranted:
    request_id: bytes
    record_id: bytes
    requester: Hashable


@dataclass(frozen=True)
class AccessDenied:
    request_id: bytes
    record_id: bytes
    requester: Hashable


@dataclass(frozen=True)
class AccessRevoked:
    record_id: bytes
    requester: Hashable


class AccessControl(Pallet):
    """Tracks access requests to records and the grants patients hand out."""

    def __init__(self, clock: TimeProvider | None = None, events: list | None = None) -> None:
        super().__init__(clock, events)
        self.request_count = 0
        self._requests: dict[bytes, AccessRequest] = {}
        self._grants: dict[tuple[bytes, Hashable], int] = {}

    def request_access(
        self,
        origin: Origin,
        record_id: bytes,
        patient: Hashable,
        consent_id: bytes,
    ) -> bytes:
        """File a pending request for the caller to access a record; return its id."""
        requester = ensure_signed(origin)
        now = self._now()

        request_id = generate_id(requester, self.request_count)
        self.request_count = min(self.request_count + 1, U64_MAX)

        self._requests[request_id] = AccessRequest(
            request_id=request_id,
            record_id=record_id,
            requester=requester,
            patient=patient,
            consent_id=consent_id,
            status=AccessStatus.Pending,
            requested_at=now,
        )
        self.deposit_event(AccessRequested(request_id, record_id, requester))
        return request_id

    def _patients_request(self, who: Hashable, request_id: bytes) -> AccessRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise AccessControlError("RequestNotFound")
        if request.patient != who:
            raise AccessControlError("NotAuthorized")
        return request

    def grant_access(self, origin: Origin, request_id: bytes, expires_at: int) -> None:
        """Let the patient grant a request until ``expires_at``."""
        who = ensure_signed(origin)
        request = self._patients_request(who, request_id)

        request.status = AccessStatus.Granted
        request.responded_at = self._now()
        self._grants[(request.record_id, request.requester)] = expires_at

        self.deposit_event(AccessGranted(request_id, request.record_id, request.requester))

    def deny_access(self, origin: Origin, request_id: bytes) -> None:
        """Let the patient deny a request."""
        who = ensure_signed(origin)
        request = self._patients_request(who, request_id)

        request.status = AccessStatus.Denied
        request.responded_at = self._now()

        self.deposit_event(AccessDenied(request_id, request.record_id, request.requester))

    def revoke_access(self, origin: Origin, record_id: bytes, requester: Hashable) -> None:
        """Remove any grant a requester holds on a record."""
        ensure_signed(origin)
        self._grants.pop((record_id, requester), None)
        self.deposit_event(AccessRevoked(record_id, requester))

    def access_request(self, request_id: bytes) -> AccessRequest | None:
        """A copy of the stored request, or None."""
        stored = self._requests.get(request_id)
        return dataclasses.replace(stored) if stored is not None else None

    def access_grant(self, record_id: bytes, requester: Hashable) -> int | None:
        """The expiry of a grant, or None when there is none."""
        return self._grants.get((record_id, requester))

    def has_access(self, record_id: bytes, requester: Hashable, now: int) -> bool:
        """True when a grant exists and expires after ``now``."""
        expires_at = self._grants.get((record_id, requester))
        return expires_at is not None and expires_at > now