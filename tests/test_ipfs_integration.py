import pytest

from healthchain.common import BadOrigin, ManualClock, Origin
from healthchain.ipfs_integration import (
    ContentPinned,
    ContentStatus,
    ContentUnpinned,
    IpfsError,
    IpfsIntegration,
    NodeAdded,
    NodeRemoved,
)

CID = b"QmExampleContentHash"


@pytest.fixture
def clock():
    return ManualClock(100)


@pytest.fixture
def pallet(clock):
    return IpfsIntegration(clock)


def test_pin_new_content(pallet):
    pallet.pin_content(Origin.signed("alice"), CID, 2048)
    content = pallet.content(CID)
    assert content.owner == "alice"
    assert content.size == 2048
    assert content.status == ContentStatus.Pinned
    assert content.pinned_at == 100
    assert content.pin_count == 1
    assert pallet.is_pinned(CID) is True
    assert pallet.take_events() == [ContentPinned(CID, "alice")]


def test_pin_rejects_empty_and_long_hash(pallet):
    with pytest.raises(IpfsError) as err:
        pallet.pin_content(Origin.signed("alice"), b"", 1)
    assert err.value.code == "InvalidIPFSHash"
    with pytest.raises(ValueError):
        pallet.pin_content(Origin.signed("alice"), b"x" * 65, 1)


def test_pin_twice_is_rejected(pallet):
    pallet.pin_content(Origin.signed("alice"), CID, 1)
    with pytest.raises(IpfsError) as err:
        pallet.pin_content(Origin.signed("alice"), CID, 1)
    assert err.value.code == "AlreadyPinned"


def test_unpin_and_repin(pallet, clock):
    pallet.pin_content(Origin.signed("alice"), CID, 1)
    clock.set(200)
    pallet.unpin_content(Origin.signed("alice"), CID)
    content = pallet.content(CID)
    assert content.status == ContentStatus.Unpinned
    assert content.unpinned_at == 200
    assert pallet.is_pinned(CID) is False

    clock.set(300)
    pallet.pin_content(Origin.signed("alice"), CID, 1)
    content = pallet.content(CID)
    assert content.pin_count == 2
    assert content.pinned_at == 300
    assert len(pallet.get_owner_content("alice")) == 1


def test_unpin_errors(pallet):
    with pytest.raises(IpfsError) as err:
        pallet.unpin_content(Origin.signed("alice"), CID)
    assert err.value.code == "ContentNotFound"
    pallet.pin_content(Origin.signed("alice"), CID, 1)
    with pytest.raises(IpfsError) as err:
        pallet.unpin_content(Origin.signed("bob"), CID)
    assert err.value.code == "NotAuthorized"
    pallet.unpin_content(Origin.signed("alice"), CID)
    with pytest.raises(IpfsError) as err:
        pallet.unpin_content(Origin.signed("alice"), CID)
    assert err.value.code == "AlreadyUnpinned"


def test_unpin_event(pallet):
    pallet.pin_content(Origin.signed("alice"), CID, 1)
    pallet.take_events()
    pallet.unpin_content(Origin.signed("alice"), CID)
    assert pallet.take_events() == [ContentUnpinned(CID, "alice")]


def test_owner_and_pinned_content(pallet):
    pallet.pin_content(Origin.signed("alice"), b"cid-a", 1)
    pallet.pin_content(Origin.signed("alice"), b"cid-b", 2)
    pallet.unpin_content(Origin.signed("alice"), b"cid-a")
    assert [c.ipfs_hash for c in pallet.get_owner_content("alice")] == [b"cid-a", b"cid-b"]
    assert [c.ipfs_hash for c in pallet.get_pinned_content("alice")] == [b"cid-b"]
    assert pallet.get_owner_content("bob") == []


def test_owner_content_limit(clock):
    pallet = IpfsIntegration(clock, max_content_per_owner=1)
    pallet.pin_content(Origin.signed("alice"), b"cid-a", 1)
    with pytest.raises(IpfsError) as err:
        pallet.pin_content(Origin.signed("alice"), b"cid-b", 1)
    assert err.value.code == "MaxNodesReached"
    assert pallet.content(b"cid-b") is None


def test_add_and_remove_node(pallet):
    pallet.add_node(Origin.root(), b"/ip4/127.0.0.1/tcp/4001", b"peer-1")
    nodes = pallet.nodes()
    assert [n.peer_id for n in nodes] == [b"peer-1"]
    assert nodes[0].active is True
    pallet.remove_node(Origin.root(), b"peer-1")
    assert pallet.nodes() == []
    assert pallet.take_events() == [NodeAdded(b"peer-1"), NodeRemoved(b"peer-1")]


def test_node_calls_need_root(pallet):
    with pytest.raises(BadOrigin):
        pallet.add_node(Origin.signed("alice"), b"/ip4/127.0.0.1", b"peer")
    with pytest.raises(BadOrigin):
        pallet.remove_node(Origin.signed("alice"), b"peer")


def test_add_node_validation(pallet):
    with pytest.raises(IpfsError) as err:
        pallet.add_node(Origin.root(), b"", b"peer")
    assert err.value.code == "InvalidMultiaddr"
    with pytest.raises(IpfsError) as err:
        pallet.add_node(Origin.root(), b"/ip4/127.0.0.1", b"")
    assert err.value.code == "InvalidPeerId"


def test_node_limit_and_missing_node(clock):
    pallet = IpfsIntegration(clock, max_nodes=1)
    pallet.add_node(Origin.root(), b"/ip4/127.0.0.1", b"peer-1")
    with pytest.raises(IpfsError) as err:
        pallet.add_node(Origin.root(), b"/ip4/127.0.0.2", b"peer-2")
    assert err.value.code == "MaxNodesReached"
    with pytest.raises(IpfsError) as err:
        pallet.remove_node(Origin.root(), b"peer-2")
    assert err.value.code == "NodeNotFound"
    assert len(pallet.nodes()) == 1