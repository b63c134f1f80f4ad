"""The health-data chain runtime: its parameters and the pallets it composes."""

from __future__ import annotations

from dataclasses import dataclass

from healthchain.access_control import AccessControl
from healthchain.common import ManualClock
from healthchain.encryption import Encryption
from healthchain.health_records import HealthRecords
from healthchain.ipfs_integration import IpfsIntegration

PARA_ID = 2001

MILLISECS_PER_BLOCK = 12000
SLOT_DURATION = MILLISECS_PER_BLOCK
MINIMUM_PERIOD = SLOT_DURATION // 2

MINUTES = 60_000 // MILLISECS_PER_BLOCK
HOURS = MINUTES * 60
DAYS = HOURS * 24

BLOCK_HASH_COUNT = 2400
SS58_PREFIX = 42

EXISTENTIAL_DEPOSIT = 500
MAX_LOCKS = 50
MAX_RESERVES = 50
TRANSACTION_BYTE_FEE = 1
OPERATIONAL_FEE_MULTIPLIER = 5

MAX_IPFS_NODES = 100
MAX_KEYS_PER_ACCOUNT = 100
MAX_ACCESS_GRANTS_PER_KEY = 50

PALLET_INDICES = {
    "System": 0,
    "Timestamp": 1,
    "Sudo": 2,
    "Balances": 10,
    "TransactionPayment": 11,
    "Aura": 20,
    "AuraExt": 21,
    "ParachainSystem": 30,
    "ParachainInfo": 31,
    "XcmpQueue": 40,
    "PolkadotXcm": 41,
    "HealthRecords": 50,
    "IPFSIntegration": 51,
    "AccessControl": 52,
    "Encryption": 53,
}


@dataclass(frozen=True)
class RuntimeVersion:
    spec_name: str
    impl_name: str
    authoring_version: int
    spec_version: int
    impl_version: int
    transaction_version: int
    state_version: int


VERSION = RuntimeVersion(
    spec_name="health-data-chain",
    impl_name="health-data-chain",
    authoring_version=1,
    spec_version=1,
    impl_version=1,
    transaction_version=1,
    state_version=1,
)


def runtime_version() -> RuntimeVersion:
    """The version of this runtime."""
    return VERSION


class Runtime:
    """The custom pallets wired to one timestamp and one event log."""

    def __init__(self) -> None:
        self.timestamp = ManualClock()
        self._events: list = []
        self.health_records = HealthRecords(self.timestamp, self._events)
        self.ipfs_integration = IpfsIntegration(
            self.timestamp, self._events, max_nodes=MAX_IPFS_NODES
        )
        self.access_control = AccessControl(self.timestamp, self._events)
        self.encryption = Encryption(
            self.timestamp,
            self._events,
            max_keys_per_account=MAX_KEYS_PER_ACCOUNT,
            max_access_grants_per_key=MAX_ACCESS_GRANTS_PER_KEY,
        )

    def set_timestamp(self, moment: int) -> None:
        """Set the block time in milliseconds; it must advance by at least the minimum period."""
        previous = self.timestamp.now()
        if previous != 0 and moment < previous + MINIMUM_PERIOD:
            raise ValueError(
                "Timestamp must increment by at least <MinimumPeriod> between sequential blocks"
            )
        self.timestamp.set(moment)

    def take_events(self) -> list:
        """Return the events of all pallets, in deposit order, and clear them."""
        taken = list(self._events)
        self._events.clear()
        return taken