import pytest

from healthchain.access_control import (
    AccessControl,
    AccessControlError,
    AccessDenied,
    AccessGranted,
    AccessRequested,
    AccessRevoked,
    AccessStatus,
)
from healthchain.common import BadOrigin, ManualClock, Origin, generate_id

RECORD = b"\x01" * 32
CONSENT = b"\x02" * 32


@pytest.fixture
def clock():
    return ManualClock(1000)


@pytest.fixture
def pallet(clock):
    return AccessControl(clock)


def _request(pallet, requester="bob", patient="alice"):
    return pallet.request_access(Origin.signed(requester), RECORD, patient, CONSENT)


def test_request_access_stores_pending_request(pallet):
    request_id = _request(pallet)
    request = pallet.access_request(request_id)
    assert request.status == AccessStatus.Pending
    assert request.requester == "bob"
    assert request.patient == "alice"
    assert request.consent_id == CONSENT
    assert request.requested_at == 1000
    assert request.responded_at is None
    assert pallet.take_events() == [AccessRequested(request_id, RECORD, "bob")]


def test_request_id_derives_from_requester_and_counter(pallet):
    first = _request(pallet)
    second = _request(pallet)
    assert first == generate_id("bob", 0)
    assert second == generate_id("bob", 1)
    assert pallet.request_count == 2


def test_request_access_needs_signed_origin(pallet):
    with pytest.raises(BadOrigin):
        pallet.request_access(Origin.root(), RECORD, "alice", CONSENT)


def test_grant_access_by_patient(pallet, clock):
    request_id = _request(pallet)
    pallet.take_events()
    clock.set(2000)
    pallet.grant_access(Origin.signed("alice"), request_id, 5000)
    request = pallet.access_request(request_id)
    assert request.status == AccessStatus.Granted
    assert request.responded_at == 2000
    assert pallet.access_grant(RECORD, "bob") == 5000
    assert pallet.take_events() == [AccessGranted(request_id, RECORD, "bob")]


def test_grant_access_by_other_is_rejected(pallet):
    request_id = _request(pallet)
    with pytest.raises(AccessControlError) as err:
        pallet.grant_access(Origin.signed("mallory"), request_id, 5000)
    assert err.value.code == "NotAuthorized"
    assert pallet.access_grant(RECORD, "bob") is None


def test_grant_unknown_request(pallet):
    with pytest.raises(AccessControlError) as err:
        pallet.grant_access(Origin.signed("alice"), b"\x00" * 32, 5000)
    assert err.value.code == "RequestNotFound"


def test_deny_access(pallet):
    request_id = _request(pallet)
    pallet.take_events()
    pallet.deny_access(Origin.signed("alice"), request_id)
    assert pallet.access_request(request_id).status == AccessStatus.Denied
    assert pallet.access_grant(RECORD, "bob") is None
    assert pallet.take_events() == [AccessDenied(request_id, RECORD, "bob")]


def test_deny_access_errors(pallet):
    request_id = _request(pallet)
    with pytest.raises(AccessControlError) as err:
        pallet.deny_access(Origin.signed("bob"), request_id)
    assert err.value.code == "NotAuthorized"
    with pytest.raises(AccessControlError) as err:
        pallet.deny_access(Origin.signed("alice"), b"\x09" * 32)
    assert err.value.code == "RequestNotFound"


def test_has_access_respects_expiry(pallet):
    request_id = _request(pallet)
    pallet.grant_access(Origin.signed("alice"), request_id, 5000)
    assert pallet.has_access(RECORD, "bob", 4999) is True
    assert pallet.has_access(RECORD, "bob", 5000) is False
    assert pallet.has_access(RECORD, "carol", 0) is False


def test_revoke_access_removes_grant(pallet):
    request_id = _request(pallet)
    pallet.grant_access(Origin.signed("alice"), request_id, 5000)
    pallet.take_events()
    pallet.revoke_access(Origin.signed("alice"), RECORD, "bob")
    assert pallet.has_access(RECORD, "bob", 0) is False
    assert pallet.take_events() == [AccessRevoked(RECORD, "bob")]


def test_returned_request_is_a_copy(pallet):
    request_id = _request(pallet)
    copy = pallet.access_request(request_id)
    copy.status = AccessStatus.Expired
    assert pallet.access_request(request_id).status == AccessStatus.Pending