"""Services package."""

from fincore.services.storage import (
    AuditSinkInterface,
    InMemoryAuditSink,
    InMemoryRecordSource,
    NotFoundError,
    RecordSourceInterface,
    SourceUnavailableError,
    StorageError,
)

__all__ = [
    "AuditSinkInterface",
    "InMemoryAuditSink",
    "InMemoryRecordSource",
    "NotFoundError",
    "RecordSourceInterface",
    "SourceUnavailableError",
    "StorageError",
]
