# healthchain

An in-memory state machine for a health-data ledger. It keeps state, checks
who may make each call, and records an event for every change. It uses only
the standard library.

- `healthchain.health_records.HealthRecords` stores health records that point
  to content by IPFS hash. You can upload records, change their titles,
  deactivate them and log every access.
- `healthchain.access_control.AccessControl` handles requests to access a
  record. The patient grants a request with an expiry time or denies it.
  Grants can be revoked, and `has_access` tells you whether one is still valid.
- `healthchain.ipfs_integration.IpfsIntegration` pins and unpins content by
  hash. It also keeps a list of IPFS nodes, which only the root origin can add
  to or remove from.
- `healthchain.encryption.Encryption` stores key metadata. You can generate
  keys, rotate the key of a record, revoke keys, and grant or revoke other
  accounts' access to a key.
- `healthchain.runtime.Runtime` combines the four with one shared clock and
  one event log. `healthchain.runtime.runtime_version()` returns its
  `RuntimeVersion`.

## Installation

```
pip install .
```

Requires Python 3.10 or later.

## Usage

Every call that changes state takes an `Origin` from `healthchain.common`:

- `Origin.signed(account)` for an account. An account may be `bytes` or `str`.
- `Origin.root()` for the administrator.

A rejected call raises a `DispatchError`, and its `code` attribute names the
reason, for example `"NotAuthorized"` or `"RecordNotFound"`. Each module has its
own subclass: `HealthRecordsError`, `AccessControlError`, `IpfsError` and
`EncryptionError`. A call from the wrong kind of origin raises `BadOrigin`. A
byte string longer than its limit raises `ValueError`. The limits are 64 bytes
for an IPFS hash, peer id or purpose, 128 bytes for a title, and 256 bytes for
a multiaddress.

```python
from healthchain.common import ManualClock, Origin
from healthchain.health_records import DataFormat, HealthRecords, RecordCategory

clock = ManualClock(1_000)
records = HealthRecords(clock)
alice = Origin.signed(b"alice")

record_id = records.upload_record(
    alice, b"QmExampleHash", RecordCategory.LabResults, DataFormat.FHIR,
    b"Blood panel", 2048, None,
)
assert records.record(record_id).uploaded_at == 1_000

records.log_access(Origin.signed(b"doctor"), record_id, b"treatment")
assert records.record(record_id).access_count == 1
assert len(records.access_logs(record_id)) == 1
```

A method that creates something returns its identifier: `upload_record`,
`request_access`, `generate_key` and `rotate_key`. Record, request and key
identifiers are 32-byte BLAKE2b hashes of the acting account and a counter
kept by each module (`healthchain.common.generate_id`). The same sequence of
calls always produces the same identifiers.

Lookups such as `record`, `access_request`, `content` and `key` return copies.
Changing a returned object does not change the stored state.

`take_events()` returns the events recorded since the last call and clears
them. On a `Runtime`, it returns the events of all four modules in the order
they were recorded.

### Time

Timestamps come from a clock object with a `now()` method that returns
milliseconds. `ManualClock` provides `set` and `advance`.
`Runtime.set_timestamp(moment)` raises `ValueError` if the clock has been set
before and the new moment is less than `MINIMUM_PERIOD` (6000 ms) after the
previous one.

### Limits

Each module takes its limits as keyword arguments:

- `HealthRecords`: `max_records_per_patient` and `max_access_logs_per_record`,
  both 10,000 by default.
- `IpfsIntegration`: `max_nodes` (default 100) and `max_content_per_owner`
  (default 10,000). When an owner goes over the content limit, the error code
  is `"MaxNodesReached"`.
- `Encryption`: `max_keys_per_account` (default 100).

## What this package does not do

- It keeps all state in memory. There is no persistence, networking,
  consensus or block production.
- It does not provide accounts, balances or transaction fees. The constants in
  `healthchain.runtime` are descriptive only.
- It does not contact IPFS. Pinning only records metadata.
- It does not create or store key material, and it does not encrypt anything.
  `Encryption` records which keys exist and who may use them.
- `AccessControl` does not check consent against any other system. The
  `consent_id` is stored as given.
- It has no command-line interface.

## Tests

```
pip install .[test]
pytest
```