"""Hierarchical document store on top of SQLModel.

Each document lives in a single ``document`` row addressed by its full path.
Writes are either blocking (the call returns once committed) or
non-blocking (the call returns a :class:`PendingWrite` and failures are
published on :attr:`DocumentStore.errors`).
"""
import asyncio
import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from atelier.errors import NotFound, PersistenceFailure
from atelier.models import DocumentRecord, get_datetime_utc
from atelier.store import paths
from atelier.store.pending import ErrorChannel, PendingWrite, StoreError

logger = logging.getLogger(__name__)

CREATED_FIELD = "data_criacao"
UPDATED_FIELD = "data_atualizacao"
_RESERVED_FIELDS = {"id", CREATED_FIELD, UPDATED_FIELD}


@dataclass(frozen=True)
class Increment:
    delta: int | float


def increment(delta: int | float = 1) -> Increment:
    """Field transform adding ``delta`` to the stored number (missing counts as 0)."""
    return Increment(delta)


@dataclass
class DocumentSnapshot:
    id: str
    path: str
    data: dict[str, Any]
    create_time: datetime
    update_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.data,
            "id": self.id,
            CREATED_FIELD: self.create_time,
            UPDATED_FIELD: self.update_time,
        }


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back as naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _next_timestamp(previous: datetime | None) -> datetime:
    now = get_datetime_utc()
    if previous is not None:
        previous = _as_utc(previous)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now


def _snapshot(record: DocumentRecord) -> DocumentSnapshot:
    return DocumentSnapshot(
        id=record.doc_id,
        path=record.path,
        data=dict(record.data or {}),
        create_time=_as_utc(record.created_at),
        update_time=_as_utc(record.updated_at),
    )


def _merge(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in changes.items():
        if key in _RESERVED_FIELDS:
            continue
        if isinstance(value, Increment):
            merged[key] = (merged.get(key) or 0) + value.delta
        else:
            merged[key] = value
    return to_jsonable_python(merged)


def _field_expression(field: str):
    if field == CREATED_FIELD:
        return DocumentRecord.created_at
    if field == UPDATED_FIELD:
        return DocumentRecord.updated_at
    if field == "id":
        return DocumentRecord.doc_id
    return DocumentRecord.data[field]


def _equals(field: str, value: Any):
    expression = _field_expression(field)
    if field in _RESERVED_FIELDS:
        return expression == value
    if isinstance(value, bool):
        return expression.as_boolean() == value
    if isinstance(value, int):
        return expression.as_integer() == value
    if isinstance(value, float):
        return expression.as_float() == value
    return expression.as_string() == str(value)


@dataclass
class _Operation:
    kind: str  # create | set | update | delete
    path: str
    data: dict[str, Any] | None = None
    merge: bool = False
    recursive: bool = False


class WriteBatch:
    """Several writes committed atomically in one transaction."""

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._operations: list[_Operation] = []

    def create(self, collection_path: str, data: dict[str, Any], *, document_id: str | None = None) -> str:
        collection_path = paths.validate_collection_path(collection_path)
        document_id = document_id or uuid.uuid4().hex
        self._operations.append(
            _Operation("create", paths.join(collection_path, document_id), dict(data))
        )
        return document_id

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> "WriteBatch":
        self._operations.append(
            _Operation("set", paths.validate_document_path(path), dict(data), merge=merge)
        )
        return self

    def update(self, path: str, data: dict[str, Any]) -> "WriteBatch":
        self._operations.append(
            _Operation("update", paths.validate_document_path(path), dict(data))
        )
        return self

    def delete(self, path: str, *, recursive: bool = False) -> "WriteBatch":
        self._operations.append(
            _Operation("delete", paths.validate_document_path(path), recursive=recursive)
        )
        return self

    def commit(self) -> None:
        self._store._commit(self._operations)

    def commit_nowait(self) -> PendingWrite:
        target = self._operations[0].path if self._operations else ""
        return self._store._schedule("batch", target, self._store._commit, list(self._operations))


class DocumentStore:
    def __init__(self, engine: Engine, *, errors: ErrorChannel | None = None):
        self.engine = engine
        self.errors = errors or ErrorChannel()
        self._write_lock = threading.RLock()
        self._last_stamp: datetime | None = None
        self._inflight: set[asyncio.Task] = set()

    # ---------- Reads ----------

    def get(self, path: str) -> DocumentSnapshot | None:
        path = paths.validate_document_path(path)
        try:
            with Session(self.engine) as session:
                record = session.get(DocumentRecord, path)
                return _snapshot(record) if record else None
        except SQLAlchemyError as exc:
            logger.error("Failed to read %s: %s", path, exc)
            raise PersistenceFailure(f"Failed to read {path}") from exc

    def list_documents(
        self,
        collection_path: str,
        *,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        collection_path = paths.validate_collection_path(collection_path)
        statement = select(DocumentRecord).where(DocumentRecord.collection == collection_path)
        for field, value in (where or {}).items():
            statement = statement.where(_equals(field, value))
        if order_by:
            expression = _field_expression(order_by)
            if order_by not in _RESERVED_FIELDS:
                expression = expression.as_string()
            statement = statement.order_by(expression.desc() if descending else expression.asc())
        statement = statement.order_by(DocumentRecord.created_at.asc(), DocumentRecord.path.asc())
        if limit is not None:
            statement = statement.limit(limit)
        try:
            with Session(self.engine) as session:
                return [_snapshot(record) for record in session.exec(statement).all()]
        except SQLAlchemyError as exc:
            logger.error("Failed to list %s: %s", collection_path, exc)
            raise PersistenceFailure(f"Failed to list {collection_path}") from exc

    # ---------- Blocking writes ----------

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def create(self, collection_path: str, data: dict[str, Any], *, document_id: str | None = None) -> str:
        batch = self.batch()
        document_id = batch.create(collection_path, data, document_id=document_id)
        batch.commit()
        return document_id

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        self.batch().set(path, data, merge=merge).commit()

    def update(self, path: str, data: dict[str, Any]) -> None:
        self.batch().update(path, data).commit()

    def delete(self, path: str, *, recursive: bool = False) -> None:
        self.batch().delete(path, recursive=recursive).commit()

    # ---------- Non-blocking writes ----------

    def create_nowait(self, collection_path: str, data: dict[str, Any]) -> PendingWrite:
        batch = self.batch()
        document_id = batch.create(collection_path, data)
        write = batch.commit_nowait()
        write.result = document_id
        return write

    def set_nowait(self, path: str, data: dict[str, Any], *, merge: bool = False) -> PendingWrite:
        return self.batch().set(path, data, merge=merge).commit_nowait()

    def update_nowait(self, path: str, data: dict[str, Any]) -> PendingWrite:
        return self.batch().update(path, data).commit_nowait()

    def delete_nowait(self, path: str, *, recursive: bool = False) -> PendingWrite:
        return self.batch().delete(path, recursive=recursive).commit_nowait()

    async def drain(self) -> None:
        """Wait until every non-blocking write issued so far has settled."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # ---------- Internals ----------

    def _schedule(self, operation: str, path: str, func: Callable[..., Any], *args: Any) -> PendingWrite:
        write = PendingWrite(operation, path)

        async def runner() -> None:
            try:
                result = await asyncio.to_thread(func, *args)
            except Exception as exc:
                write.status = "failed"
                write.error = exc
                self.errors.publish(StoreError(operation=operation, path=path, error=exc))
                return
            if result is not None:
                write.result = result
            write.status = "confirmed"

        task = asyncio.get_running_loop().create_task(runner())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        write.attach(task)
        return write

    def _stamp(self, previous: datetime | None) -> datetime:
        # Called under the write lock; stamps never repeat within this store.
        now = _next_timestamp(previous)
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    def _commit(self, operations: list[_Operation]) -> None:
        if not operations:
            return
        with self._write_lock:
            try:
                with Session(self.engine) as session:
                    for operation in operations:
                        self._apply(session, operation)
                    session.commit()
            except (NotFound, PersistenceFailure):
                raise
            except SQLAlchemyError as exc:
                logger.error("Failed to commit %s write(s) starting at %s: %s",
                             len(operations), operations[0].path, exc)
                raise PersistenceFailure(f"Failed to write {operations[0].path}") from exc

    def _apply(self, session: Session, operation: _Operation) -> None:
        record = session.get(DocumentRecord, operation.path)

        if operation.kind == "delete":
            if record is not None:
                session.delete(record)
            if operation.recursive:
                descendants = select(DocumentRecord).where(
                    DocumentRecord.path.startswith(operation.path + "/", autoescape=True)
                )
                for child in session.exec(descendants).all():
                    session.delete(child)
            session.flush()
            return

        if operation.kind == "create" and record is not None:
            raise PersistenceFailure(f"Document already exists: {operation.path}")
        if operation.kind == "update" and record is None:
            raise NotFound(f"Document not found: {operation.path}", path=operation.path)

        if record is None:
            collection, document_id = paths.split_document_path(operation.path)
            now = self._stamp(None)
            record = DocumentRecord(
                path=operation.path,
                collection=collection,
                doc_id=document_id,
                data=_merge({}, operation.data or {}),
                created_at=now,
                updated_at=now,
            )
        else:
            keep_existing = operation.kind == "update" or operation.merge
            base = (record.data or {}) if keep_existing else {}
            # Reassign rather than mutate: JSON columns do not track in-place changes.
            record.data = _merge(base, operation.data or {})
            record.updated_at = self._stamp(record.updated_at)
        session.add(record)
        session.flush()
