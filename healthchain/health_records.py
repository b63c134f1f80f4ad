"""Anchoring of medical records and their access history."""

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

IPFS_HASH_LIMIT = 64
TITLE_LIMIT = 128
PURPOSE_LIMIT = 64
DEFAULT_MAX_RECORDS_PER_PATIENT = 10_000
DEFAULT_MAX_ACCESS_LOGS_PER_RECORD = 10_000
_U32_MAX = 2**32 - 1


class DataFormat(Enum):
    """Format of the stored record data."""

    FHIR = 0
    DICOM = 1
    HL7 = 2
    JSON = 3
    PDF = 4
    Other = 5


class RecordCategory(Enum):
    """Kind of medical record."""

    LabResults = 0
    Imaging = 1
    Prescription = 2
    Diagnosis = 3
    Genomic = 4
    Vitals = 5
    Immunization = 6
    Surgery = 7
    Other = 8


@dataclass
class HealthRecord:
    record_id: bytes
    patient: Hashable
    ipfs_hash: bytes
    category: RecordCategory
    format: DataFormat
    title: bytes
    file_size: int
    encryption_key_id: bytes | None
    uploaded_at: int
    last_accessed: int | None = None
    access_count: int = 0
    active: bool = True


@dataclass(frozen=True)
class AccessLog:
    record_id: bytes
    accessor: Hashable
    accessed_at: int
    purpose: bytes


class HealthRecordsError(DispatchError):
    """A health-records call failed; ``code`` names the reason."""


@dataclass(frozen=True)
class RecordUploaded:
    record_id: bytes
    patient: Hashable
    category: RecordCategory


@dataclass(frozen=True)
class RecordUpdated:
    record_id: bytes


@dataclass(frozen=True)
class RecordDeactivated:
    record_id: bytes


@dataclass(frozen=True)
class RecordAccessed:
    record_id: bytes
    accessor: Hashable


def _bounded(data: bytes, limit: int, what: str) -> bytes:
    value = bytes(data)
    if len(value) > limit:
        raise ValueError(f"{what} is longer than {limit} bytes")
    return value


class HealthRecords(Pallet):
    """Stores record metadata per patient and logs every access."""

    def __init__(
        self,
        clock: TimeProvider | None = None,
        events: list | None = None,
        *,
        max_records_per_patient: int = DEFAULT_MAX_RECORDS_PER_PATIENT,
        max_access_logs_per_record: int = DEFAULT_MAX_ACCESS_LOGS_PER_RECORD,
    ) -> None:
        super().__init__(clock, events)
        self.max_records_per_patient = max_records_per_patient
        self.max_access_logs_per_record = max_access_logs_per_record
        self.record_count = 0
        self._records: dict[bytes, HealthRecord] = {}
        self._patient_records: dict[Hashable, list[bytes]] = {}
        self._access_logs: dict[bytes, list[AccessLog]] = {}

    def upload_record(
        self,
        origin: Origin,
        ipfs_hash: bytes,
        category: RecordCategory,
        format: DataFormat,
        title: bytes,
        file_size: int,
        encryption_key_id: bytes | None,
    ) -> bytes:
        """Anchor a new record for the signing patient and return its id."""
        patient = ensure_signed(origin)
        ipfs_hash = _bounded(ipfs_hash, IPFS_HASH_LIMIT, "ipfs_hash")
        title = _bounded(title, TITLE_LIMIT, "title")
        category = RecordCategory(category)
        format = DataFormat(format)

        if not ipfs_hash:
            raise HealthRecordsError("InvalidIPFSHash")
        if not title:
            raise HealthRecordsError("InvalidTitle")

        owned = self._patient_records.get(patient, [])
        if len(owned) >= self.max_records_per_patient:
            raise HealthRecordsError("MaxRecordsReached")

        now = self._now()
        record_id = generate_id(patient, self.record_count)
        self.record_count = min(self.record_count + 1, U64_MAX)

        self._records[record_id] = HealthRecord(
            record_id=record_id,
            patient=patient,
            ipfs_hash=ipfs_hash,
            category=category,
            format=format,
            title=title,
            file_size=file_size,
            encryption_key_id=encryption_key_id,
            uploaded_at=now,
        )
        self._patient_records.setdefault(patient, []).append(record_id)

        self.deposit_event(RecordUploaded(record_id, patient, category))
        return record_id

    def _owned_record(self, who: Hashable, record_id: bytes) -> HealthRecord:
        record = self._records.get(record_id)
        if record is None:
            raise HealthRecordsError("RecordNotFound")
        if record.patient != who:
            raise HealthRecordsError("NotAuthorized")
        return record

    def update_record(self, origin: Origin, record_id: bytes, title: bytes | None) -> None:
        """Change the title of an active record owned by the caller."""
        who = ensure_signed(origin)
        if title is not None:
            title = _bounded(title, TITLE_LIMIT, "title")

        record = self._owned_record(who, record_id)
        if not record.active:
            raise HealthRecordsError("RecordDeactivated")
        if title is not None:
            if not title:
                raise HealthRecordsError("InvalidTitle")
            record.title = title

        self.deposit_event(RecordUpdated(record_id))

    def deactivate_record(self, origin: Origin, record_id: bytes) -> None:
        """Mark a record owned by the caller as inactive."""
        who = ensure_signed(origin)
        record = self._owned_record(who, record_id)
        record.active = False
        self.deposit_event(RecordDeactivated(record_id))

    def log_access(self, origin: Origin, record_id: bytes, purpose: bytes) -> None:
        """Record that the caller accessed an active record."""
        accessor = ensure_signed(origin)
        purpose = _bounded(purpose, PURPOSE_LIMIT, "purpose")

        record = self._records.get(record_id)
        if record is None:
            raise HealthRecordsError("RecordNotFound")
        if not record.active:
            raise HealthRecordsError("RecordDeactivated")

        logs = self._access_logs.get(record_id, [])
        if len(logs) >= self.max_access_logs_per_record:
            raise HealthRecordsError("MaxAccessLogsReached")

        now = self._now()
        record.access_count = min(record.access_count + 1, _U32_MAX)
        record.last_accessed = now
        self._access_logs.setdefault(record_id, []).append(
            AccessLog(record_id=record_id, accessor=accessor, accessed_at=now, purpose=purpose)
        )

        self.deposit_event(RecordAccessed(record_id, accessor))

    def record(self, record_id: bytes) -> HealthRecord | None:
        """A copy of the stored record, or None."""
        stored = self._records.get(record_id)
        return dataclasses.replace(stored) if stored is not None else None

    def patient_record_ids(self, patient: Hashable) -> list[bytes]:
        return list(self._patient_records.get(patient, []))

    def access_logs(self, record_id: bytes) -> list[AccessLog]:
        return list(self._access_logs.get(record_id, []))

    def get_patient_records(self, patient: Hashable) -> list[HealthRecord]:
        """All records of a patient, in upload order."""
        return [
            dataclasses.replace(self._records[record_id])
            for record_id in self._patient_records.get(patient, [])
            if record_id in self._records
        ]

    def get_active_patient_records(self, patient: Hashable) -> list[HealthRecord]:
        return [r for r in self.get_patient_records(patient) if r.active]