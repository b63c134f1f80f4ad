"""IPFS content pinning and the registry of IPFS nodes."""

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
    ensure_root,
    ensure_signed,
)

IPFS_HASH_LIMIT = 64
MULTIADDR_LIMIT = 256
PEER_ID_LIMIT = 64
DEFAULT_MAX_NODES = 100
DEFAULT_MAX_CONTENT_PER_OWNER = 10_000
_U32_MAX = 2**32 - 1


class ContentStatus(Enum):
    """Pin state of a piece of content."""

    Pinned = 0
    Unpinned = 1
    PendingPin = 2
    PendingUnpin = 3
    Failed = 4


@dataclass
class IPFSContent:
    ipfs_hash: bytes
    owner: Hashable
    size: int
    status: ContentStatus
    pinned_at: int | None = None
    unpinned_at: int | None = None
    pin_count: int = 0


@dataclass(frozen=True)
class IPFSNode:
    multiaddr: bytes
    peer_id: bytes
    active: bool = True


class IpfsError(DispatchError):
    """An IPFS call failed; ``code`` names the reason."""


@dataclass(frozen=True)
class ContentPinned:
    ipfs_hash: bytes
    owner: Hashable


@dataclass(frozen=True)
class ContentUnpinned:
    ipfs_hash: bytes
    owner: Hashable


@dataclass(frozen=True)
class ContentPinFailed:
    ipfs_hash: bytes
    owner: Hashable


@dataclass(frozen=True)
class NodeAdded:
    peer_id: bytes


@dataclass(frozen=True)
class NodeRemoved:
    peer_id: bytes


def _bounded(data: bytes, limit: int, what: str) -> bytes:
    value = bytes(data)
    if len(value) > limit:
        raise ValueError(f"{what} is longer than {limit} bytes")
    return value


class IpfsIntegration(Pallet):
    """Keeps track of pinned content per owner and of known IPFS nodes."""

    def __init__(
        self,
        clock: TimeProvider | None = None,
        events: list | None = None,
        *,
        max_nodes: int = DEFAULT_MAX_NODES,
        max_content_per_owner: int = DEFAULT_MAX_CONTENT_PER_OWNER,
    ) -> None:
        super().__init__(clock, events)
        self.max_nodes = max_nodes
        self.max_content_per_owner = max_content_per_owner
        self._contents: dict[bytes, IPFSContent] = {}
        self._owner_content: dict[Hashable, list[bytes]] = {}
        self._nodes: list[IPFSNode] = []

    def pin_content(self, origin: Origin, ipfs_hash: bytes, size: int) -> None:
        """Pin content, registering it for the caller if it is new."""
        owner = ensure_signed(origin)
        ipfs_hash = _bounded(ipfs_hash, IPFS_HASH_LIMIT, "ipfs_hash")
        if not ipfs_hash:
            raise IpfsError("InvalidIPFSHash")

        now = self._now()
        content = self._contents.get(ipfs_hash)
        if content is not None:
            if content.status == ContentStatus.Pinned:
                raise IpfsError("AlreadyPinned")
            content.status = ContentStatus.Pinned
            content.pinned_at = now
            content.pin_count = min(content.pin_count + 1, _U32_MAX)
        else:
            owned = self._owner_content.get(owner, [])
            if len(owned) >= self.max_content_per_owner:
                raise IpfsError("MaxNodesReached")
            self._contents[ipfs_hash] = IPFSContent(
                ipfs_hash=ipfs_hash,
                owner=owner,
                size=size,
                status=ContentStatus.Pinned,
                pinned_at=now,
                pin_count=1,
            )
            self._owner_content.setdefault(owner, []).append(ipfs_hash)

        self.deposit_event(ContentPinned(ipfs_hash, owner))

    def unpin_content(self, origin: Origin, ipfs_hash: bytes) -> None:
        """Unpin content owned by the caller."""
        owner = ensure_signed(origin)
        ipfs_hash = bytes(ipfs_hash)

        content = self._contents.get(ipfs_hash)
        if content is None:
            raise IpfsError("ContentNotFound")
        if content.owner != owner:
            raise IpfsError("NotAuthorized")
        if content.status == ContentStatus.Unpinned:
            raise IpfsError("AlreadyUnpinned")

        content.status = ContentStatus.Unpinned
        content.unpinned_at = self._now()
        self.deposit_event(ContentUnpinned(ipfs_hash, owner))

    def add_node(self, origin: Origin, multiaddr: bytes, peer_id: bytes) -> None:
        """Register an IPFS node; root only."""
        ensure_root(origin)
        multiaddr = _bounded(multiaddr, MULTIADDR_LIMIT, "multiaddr")
        peer_id = _bounded(peer_id, PEER_ID_LIMIT, "peer_id")

        if not multiaddr:
            raise IpfsError("InvalidMultiaddr")
        if not peer_id:
            raise IpfsError("InvalidPeerId")
        if len(self._nodes) >= self.max_nodes:
            raise IpfsError("MaxNodesReached")

        self._nodes.append(IPFSNode(multiaddr=multiaddr, peer_id=peer_id, active=True))
        self.deposit_event(NodeAdded(peer_id))

    def remove_node(self, origin: Origin, peer_id: bytes) -> None:
        """Remove the first node with the given peer id; root only."""
        ensure_root(origin)
        peer_id = bytes(peer_id)
        position = next(
            (i for i, node in enumerate(self._nodes) if node.peer_id == peer_id), None
        )
        if position is None:
            raise IpfsError("NodeNotFound")
        del self._nodes[position]
        self.deposit_event(NodeRemoved(peer_id))

    def content(self, ipfs_hash: bytes) -> IPFSContent | None:
        """A copy of the stored content metadata, or None."""
        stored = self._contents.get(bytes(ipfs_hash))
        return dataclasses.replace(stored) if stored is not None else None

    def nodes(self) -> list[IPFSNode]:
        return list(self._nodes)

    def get_owner_content(self, owner: Hashable) -> list[IPFSContent]:
        """All content registered by an owner, in pin order."""
        return [
            dataclasses.replace(self._contents[h])
            for h in self._owner_content.get(owner, [])
            if h in self._contents
        ]

    def get_pinned_content(self, owner: Hashable) -> list[IPFSContent]:
        return [c for c in self.get_owner_content(owner) if c.status == ContentStatus.Pinned]

    def is_pinned(self, ipfs_hash: bytes) -> bool:
        content = self._contents.get(bytes(ipfs_hash))
        return content is not None and content.status == ContentStatus.Pinned