from atelier.store.documents import (
    CREATED_FIELD,
    UPDATED_FIELD,
    DocumentSnapshot,
    DocumentStore,
    WriteBatch,
    increment,
)
from atelier.store.pending import ErrorChannel, PendingWrite, StoreError, WriteTracker

__all__ = [
    "CREATED_FIELD",
    "UPDATED_FIELD",
    "DocumentSnapshot",
    "DocumentStore",
    "ErrorChannel",
    "PendingWrite",
    "StoreError",
    "WriteBatch",
    "WriteTracker",
    "increment",
]
