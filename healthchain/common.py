"""Shared building blocks for the chain's pallets: origins, errors, time and events."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Hashable, Protocol

U64_MAX = 2**64 - 1


class DispatchError(Exception):
    """A call was rejected; ``code`` names the reason."""

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code


class BadOrigin(DispatchError):
    """The call was made from an origin that may not make it."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__("BadOrigin", message)


@dataclass(frozen=True)
class Origin:
    """Who is making a call: a signed account, root, or nobody."""

    account: Hashable | None = None
    is_root: bool = False

    @classmethod
    def signed(cls, account: Hashable) -> Origin:
        if account is None:
            raise ValueError("a signed origin needs an account")
        return cls(account=account, is_root=False)

    @classmethod
    def root(cls) -> Origin:
        return cls(account=None, is_root=True)


def ensure_signed(origin: Origin) -> Hashable:
    """Return the signing account, or raise BadOrigin."""
    if origin.is_root or origin.account is None:
        raise BadOrigin("origin must be a signed account")
    return origin.account


def ensure_root(origin: Origin) -> None:
    """Raise BadOrigin unless the origin is root."""
    if not origin.is_root:
        raise BadOrigin("origin must be root")


class TimeProvider(Protocol):
    def now(self) -> int: ...


class ManualClock:
    """A time provider whose value is set by hand (milliseconds)."""

    def __init__(self, start: int = 0) -> None:
        self._value = 0
        self.set(start)

    def now(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        if value < 0:
            raise ValueError("time cannot be negative")
        self._value = int(value)

    def advance(self, delta: int) -> None:
        self.set(self._value + delta)


def _encode_account(account: Any) -> bytes:
    if isinstance(account, (bytes, bytearray, memoryview)):
        return bytes(account)
    if isinstance(account, str):
        return account.encode("utf-8")
    raise TypeError(f"cannot encode account of type {type(account).__name__}")


def generate_id(account: Any, nonce: int) -> bytes:
    """Derive a 32-byte identifier from an account and a 64-bit nonce."""
    if not 0 <= nonce <= U64_MAX:
        raise ValueError("nonce must fit in 64 bits")
    data = _encode_account(account) + nonce.to_bytes(8, "little")
    return hashlib.blake2b(data, digest_size=32).digest()


class Pallet:
    """Base for pallets: holds the time provider and the event sink."""

    def __init__(self, clock: TimeProvider | None = None, events: list | None = None) -> None:
        self.clock = clock if clock is not None else ManualClock()
        self._events = events if events is not None else []

    def deposit_event(self, event: Any) -> None:
        self._events.append(event)

    def take_events(self) -> list:
        """Return the events deposited so far and clear them."""
        taken = list(self._events)
        self._events.clear()
        return taken

    def _now(self) -> int:
        try:
            value = int(self.clock.now())
        except (TypeError, ValueError, OverflowError):
            return 0
        return value if 0 <= value <= U64_MAX else 0