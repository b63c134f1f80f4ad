"""Encryption key management for health records: generation, rotation, revocation and sharing."""

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

DEFAULT_MAX_KEYS_PER_ACCOUNT = 100
DEFAULT_MAX_ACCESS_GRANTS_PER_KEY = 50


class EncryptionAlgorithm(Enum):
    """Authenticated encryption scheme a key is meant for."""

    ChaCha20Poly1305 = 0
    AES256GCM = 1


class KeyPurpose(Enum):
    """What a key is used for."""

    RecordEncryption = 0
    DataEncryption = 1
    KeyEncryption = 2


@dataclass
class EncryptionKey:
    key_id: bytes
    owner: Hashable
    algorithm: EncryptionAlgorithm
    purpose: KeyPurpose
    record_id: bytes | None
    created_at: int
    expires_at: int | None = None
    active: bool = True
    rotated: bool = False
    rotated_to: bytes | None = None


@dataclass(frozen=True)
class KeyAccess:
    grantee: Hashable
    granted_at: int
    expires_at: int | None = None


class EncryptionError(DispatchError):
    """An encryption call failed; ``code`` names the reason."""


@dataclass(frozen=True)
class KeyGenerated:
    key_id: bytes
    owner: Hashable


@dataclass(frozen=True)
class KeyRotated:
    old_key_id: bytes
    new_key_id: bytes
    record_id: bytes


@dataclass(frozen=True)
class KeyRevoked:
    key_id: bytes


@dataclass(frozen=True)
class KeyAccessGranted:
    key_id: bytes
    grantee: Hashable


@dataclass(frozen=True)
class KeyAccessRevoked:
    key_id: bytes
    grantee: Hashable


class Encryption(Pallet):
    """Keeps key metadata, the keys each account owns and who else may use a key."""

    def __init__(
        self,
        clock: TimeProvider | None = None,
        events: list | None = None,
        *,
        max_keys_per_account: int = DEFAULT_MAX_KEYS_PER_ACCOUNT,
        max_access_grants_per_key: int = DEFAULT_MAX_ACCESS_GRANTS_PER_KEY,
    ) -> None:
        super().__init__(clock, events)
        self.max_keys_per_account = max_keys_per_account
        self.max_access_grants_per_key = max_access_grants_per_key
        self.key_count = 0
        self._keys: dict[bytes, EncryptionKey] = {}
        self._account_keys: dict[Hashable, list[bytes]] = {}
        self._record_keys: dict[bytes, bytes] = {}
        self._grants: dict[tuple[bytes, Hashable], KeyAccess] = {}

    def _next_key_id(self, owner: Hashable) -> bytes:
        key_id = generate_id(owner, self.key_count)
        self.key_count = min(self.key_count + 1, U64_MAX)
        return key_id

    def _has_room(self, account: Hashable) -> bool:
        return len(self._account_keys.get(account, [])) < self.max_keys_per_account

    def _owned_key(self, who: Hashable, key_id: bytes) -> EncryptionKey:
        key = self._keys.get(key_id)
        if key is None:
            raise EncryptionError("KeyNotFound")
        if key.owner != who:
            raise EncryptionError("NotAuthorized")
        return key

    def generate_key(
        self,
        origin: Origin,
        algorithm: EncryptionAlgorithm,
        purpose: KeyPurpose,
        record_id: bytes | None,
        expires_at: int | None,
    ) -> bytes:
        """Create a key for the caller, optionally bound to a record; return its id."""
        owner = ensure_signed(origin)
        algorithm = EncryptionAlgorithm(algorithm)
        purpose = KeyPurpose(purpose)
        now = self._now()

        if not self._has_room(owner):
            raise EncryptionError("MaxKeysReached")
        if record_id is not None and record_id in self._record_keys:
            raise EncryptionError("RecordAlreadyHasKey")

        key_id = self._next_key_id(owner)
        self._keys[key_id] = EncryptionKey(
            key_id=key_id,
            owner=owner,
            algorithm=algorithm,
            purpose=purpose,
            record_id=record_id,
            created_at=now,
            expires_at=expires_at,
        )
        self._account_keys.setdefault(owner, []).append(key_id)
        if record_id is not None:
            self._record_keys[record_id] = key_id

        self.deposit_event(KeyGenerated(key_id, owner))
        return key_id

    def rotate_key(
        self,
        origin: Origin,
        record_id: bytes,
        new_algorithm: EncryptionAlgorithm,
        expires_at: int | None,
    ) -> bytes:
        """Replace a record's key with a fresh one; return the new key's id."""
        who = ensure_signed(origin)
        new_algorithm = EncryptionAlgorithm(new_algorithm)
        now = self._now()

        old_key_id = self._record_keys.get(record_id)
        if old_key_id is None:
            raise EncryptionError("NoKeyForRecord")
        old_key = self._owned_key(who, old_key_id)
        if not self._has_room(who):
            raise EncryptionError("MaxKeysReached")

        new_key_id = self._next_key_id(who)
        self._keys[new_key_id] = EncryptionKey(
            key_id=new_key_id,
            owner=who,
            algorithm=new_algorithm,
            purpose=old_key.purpose,
            record_id=record_id,
            created_at=now,
            expires_at=expires_at,
        )
        old_key.rotated = True
        old_key.active = False
        old_key.rotated_to = new_key_id
        self._record_keys[record_id] = new_key_id
        self._account_keys.setdefault(who, []).append(new_key_id)

        self.deposit_event(KeyRotated(old_key_id, new_key_id, record_id))
        return new_key_id

    def revoke_key(self, origin: Origin, key_id: bytes) -> None:
        """Deactivate a key owned by the caller."""
        who = ensure_signed(origin)
        key = self._owned_key(who, key_id)
        if not key.active:
            raise EncryptionError("KeyAlreadyRevoked")
        key.active = False
        self.deposit_event(KeyRevoked(key_id))

    def grant_key_access(
        self,
        origin: Origin,
        key_id: bytes,
        grantee: Hashable,
        expires_at: int | None,
    ) -> None:
        """Let the key's owner share it with another account."""
        who = ensure_signed(origin)
        self._owned_key(who, key_id)
        self._grants[(key_id, grantee)] = KeyAccess(
            grantee=grantee, granted_at=self._now(), expires_at=expires_at
        )
        self.deposit_event(KeyAccessGranted(key_id, grantee))

    def revoke_key_access(self, origin: Origin, key_id: bytes, grantee: Hashable) -> None:
        """Let the key's owner withdraw a share."""
        who = ensure_signed(origin)
        self._owned_key(who, key_id)
        self._grants.pop((key_id, grantee), None)
        self.deposit_event(KeyAccessRevoked(key_id, grantee))

    def key(self, key_id: bytes) -> EncryptionKey | None:
        """A copy of the stored key metadata, or None."""
        stored = self._keys.get(key_id)
        return dataclasses.replace(stored) if stored is not None else None

    def account_keys(self, account: Hashable) -> list[bytes]:
        return list(self._account_keys.get(account, []))

    def key_access_grant(self, key_id: bytes, grantee: Hashable) -> KeyAccess | None:
        return self._grants.get((key_id, grantee))

    def has_key_access(self, key_id: bytes, account: Hashable, now: int) -> bool:
        """True for the owner of an active, unexpired key or a holder of a live grant."""
        key = self._keys.get(key_id)
        if key is not None and key.owner == account and key.active:
            return key.expires_at is None or now < key.expires_at

        access = self._grants.get((key_id, account))
        if access is not None:
            return access.expires_at is None or now < access.expires_at
        return False

    def get_record_key(self, record_id: bytes) -> bytes | None:
        """The id of a record's current key, or None."""
        return self._record_keys.get(record_id)