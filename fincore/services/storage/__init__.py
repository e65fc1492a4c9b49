"""
Storage Services Package

Provides the abstract record source and audit sink interfaces plus an
in-memory implementation of both.
"""

from fincore.services.storage.interface import (
    AuditSinkInterface,
    NotFoundError,
    RecordSourceInterface,
    SourceUnavailableError,
    StorageError,
)
from fincore.services.storage.memory import (
    InMemoryAuditSink,
    InMemoryRecordSource,
)

__all__ = [
    # Interfaces
    "AuditSinkInterface",
    "RecordSourceInterface",
    # Exceptions
    "NotFoundError",
    "SourceUnavailableError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditSink",
    "InMemoryRecordSource",
]
