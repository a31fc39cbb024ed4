"""Owner-scoped query surface over the SQLite-backed relational store.

Every read, update and delete issued through an :class:`OwnerScopedTable`
carries a ``user_id = ?`` predicate and every insert is stamped with the
owner's identifier, so call sites never build the owner filter themselves.
Calls return a :class:`QueryResult` instead of raising for store failures.
"""
from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import closing, contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from bnbmargins.data_access.models import (
    BookingCreate,
    BookingTransition,
    BookingUpdate,
    CategoryCreate,
    CategoryUpdate,
    PropertyCreate,
    PropertyUpdate,
    TERMINAL_BOOKING_STATUSES,
    TransactionCreate,
    TransactionUpdate,
)
from bnbmargins.utils.config import AppConfig, require_key
from bnbmargins.utils.date_helpers import parse_date
from bnbmargins.utils.sqlite_migrations import apply_migrations, connect

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Payload = Union[Mapping[str, Any], BaseModel]

STORE_ERROR = "store"
NOT_FOUND = "not_found"
INVALID = "invalid"


@dataclass
class QueryResult:
    """Outcome of a store call: ``data`` is only meaningful when ``error`` is None.

    ``kind`` classifies a failure as a store error, a missing row or an
    invalid payload.
    """

    data: Any = None
    error: Optional[str] = None
    kind: str = STORE_ERROR

    @property
    def ok(self) -> bool:
        return self.error is None


class Store:
    """Connection factory and entity registry for one SQLite database."""

    def __init__(self, db_path: Path, privileged: bool = False) -> None:
        self.db_path = Path(db_path)
        self.privileged = privileged
        self.properties = OwnerScopedTable(
            self, "properties", PropertyCreate, PropertyUpdate, order_by="name ASC"
        )
        self.bookings = BookingTable(
            self,
            "bookings",
            BookingCreate,
            BookingUpdate,
            order_by="check_in_date DESC",
            parents=(("property_id", "properties"),),
        )
        self.transactions = TransactionTable(
            self,
            "transactions",
            TransactionCreate,
            TransactionUpdate,
            order_by="date DESC, created_at DESC",
            parents=(("property_id", "properties"), ("booking_id", "bookings")),
        )
        self.categories = CategoryTable(
            self, "categories", CategoryCreate, CategoryUpdate, order_by="name ASC"
        )

    def initialize(self) -> int:
        """Create or upgrade the schema; returns the schema version."""
        return apply_migrations(self.db_path)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        with closing(connect(self.db_path)) as conn:
            with conn:
                yield conn


def create_client(config: AppConfig) -> Store:
    """Application client. Requires the public key tier."""
    require_key(config, "anon_key", "BNB_ANON_KEY")
    store = Store(config.store_url)
    store.initialize()
    return store


def create_service_client(config: AppConfig) -> Store:
    """Privileged client for seeding and maintenance scripts."""
    require_key(config, "service_role_key", "BNB_SERVICE_ROLE_KEY")
    store = Store(config.store_url, privileged=True)
    store.initialize()
    return store


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


_LABELS = {
    "properties": "Property",
    "bookings": "Booking",
    "transactions": "Transaction",
    "categories": "Category",
}


def _row_to_record(row: sqlite3.Row) -> Record:
    return {key: row[key] for key in row.keys()}


class OwnerScopedTable:
    """CRUD for one entity table, always filtered by the owning user."""

    def __init__(
        self,
        store: Store,
        table: str,
        create_model: Type[BaseModel],
        update_model: Type[BaseModel],
        order_by: str,
        parents: Sequence[Tuple[str, str]] = (),
    ) -> None:
        self.store = store
        self.table = table
        self.create_model = create_model
        self.update_model = update_model
        self.order_by = order_by
        self.parents = tuple(parents)
        self.label = _LABELS.get(table, table)

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def _select(
        self,
        owner_id: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        if not owner_id:
            raise ValueError("owner_id is required")
        clauses = ["user_id = ?"]
        params: List[Any] = [owner_id]
        for column, value in (filters or {}).items():
            clauses.append(f"{column} = ?")
            params.append(value)
        sql = (
            f"SELECT * FROM {self.table} WHERE {' AND '.join(clauses)} "
            f"ORDER BY {order_by or self.order_by}"
        )
        with self.store.connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._decode(_row_to_record(row)) for row in rows]

    def _decode(self, record: Record) -> Record:
        return record

    def _fail(self, action: str, exc: Exception) -> QueryResult:
        logger.error(f"Store error during {action} on {self.table}: {exc}")
        return QueryResult(error=str(exc))

    def _validate(self, model: Type[BaseModel], payload: Payload, **kwargs: Any) -> Record:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(exclude_unset=kwargs.get("exclude_unset", False))
        data = dict(payload)
        data.pop("user_id", None)
        validated = model.model_validate(data)
        return validated.model_dump(mode="json", **kwargs)

    def _check_parents(self, conn: sqlite3.Connection, record: Record, owner_id: str) -> Optional[str]:
        for column, parent_table in self.parents:
            parent_id = record.get(column)
            if parent_id is None:
                continue
            row = conn.execute(
                f"SELECT 1 FROM {parent_table} WHERE id = ? AND user_id = ?",
                (parent_id, owner_id),
            ).fetchone()
            if row is None:
                return f"Referenced {column} {parent_id} not found"
        return None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get_all(self, owner_id: str) -> QueryResult:
        try:
            return QueryResult(data=self._select(owner_id))
        except sqlite3.Error as exc:
            return self._fail("get_all", exc)

    def get_oldest_first(self, owner_id: str) -> QueryResult:
        """All rows in creation order; insertion order breaks timestamp ties."""
        try:
            return QueryResult(data=self._select(owner_id, order_by="created_at ASC, rowid ASC"))
        except sqlite3.Error as exc:
            return self._fail("get_oldest_first", exc)

    def get_by_id(self, record_id: str, owner_id: str) -> QueryResult:
        try:
            rows = self._select(owner_id, {"id": record_id})
        except sqlite3.Error as exc:
            return self._fail("get_by_id", exc)
        if not rows:
            return QueryResult(error=f"{self.label} not found", kind=NOT_FOUND)
        return QueryResult(data=rows[0])

    def create(self, payload: Payload, owner_id: str) -> QueryResult:
        """Insert a record owned by ``owner_id``.

        A payload carrying a different ``user_id`` is rejected.
        """
        if not owner_id:
            raise ValueError("owner_id is required")
        claimed_owner = payload.get("user_id") if isinstance(payload, Mapping) else None
        if claimed_owner is not None and claimed_owner != owner_id:
            return QueryResult(error="Record owner does not match caller", kind=INVALID)
        try:
            record = self._validate(self.create_model, payload)
        except ValidationError as exc:
            return QueryResult(error=str(exc), kind=INVALID)

        timestamp = _now()
        record.update(id=uuid.uuid4().hex, user_id=owner_id, created_at=timestamp, updated_at=timestamp)
        columns = ", ".join(record)
        placeholders = ", ".join("?" for _ in record)
        try:
            with self.store.connection() as conn:
                problem = self._check_parents(conn, record, owner_id)
                if problem:
                    return QueryResult(error=problem, kind=INVALID)
                conn.execute(
                    f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",
                    list(record.values()),
                )
        except sqlite3.Error as exc:
            return self._fail("create", exc)
        logger.debug("Created %s %s for owner %s", self.table, record["id"], owner_id)
        return QueryResult(data=self._decode(record))

    def update(self, record_id: str, patch: Payload, owner_id: str) -> QueryResult:
        return self._update(self.update_model, record_id, patch, owner_id)

    def _update(self, model: Type[BaseModel], record_id: str, patch: Payload, owner_id: str) -> QueryResult:
        if not owner_id:
            raise ValueError("owner_id is required")
        try:
            changes = self._validate(model, patch, exclude_unset=True)
        except ValidationError as exc:
            return QueryResult(error=str(exc), kind=INVALID)
        if not changes:
            return self.get_by_id(record_id, owner_id)

        changes["updated_at"] = _now()
        assignments = ", ".join(f"{column} = ?" for column in changes)
        try:
            with self.store.connection() as conn:
                problem = self._check_parents(conn, changes, owner_id)
                if problem:
                    return QueryResult(error=problem, kind=INVALID)
                cursor = conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id = ? AND user_id = ?",
                    [*changes.values(), record_id, owner_id],
                )
                updated = cursor.rowcount
        except sqlite3.Error as exc:
            return self._fail("update", exc)
        if not updated:
            return QueryResult(error=f"{self.label} not found", kind=NOT_FOUND)
        return self.get_by_id(record_id, owner_id)

    def delete(self, record_id: str, owner_id: str) -> QueryResult:
        if not owner_id:
            raise ValueError("owner_id is required")
        try:
            with self.store.connection() as conn:
                cursor = conn.execute(
                    f"DELETE FROM {self.table} WHERE id = ? AND user_id = ?",
                    (record_id, owner_id),
                )
                deleted = cursor.rowcount
        except sqlite3.Error as exc:
            return self._fail("delete", exc)
        if not deleted:
            return QueryResult(error=f"{self.label} not found", kind=NOT_FOUND)
        return QueryResult(data={"id": record_id, "deleted": True})


class BookingTable(OwnerScopedTable):
    def update(self, record_id: str, patch: Payload, owner_id: str) -> QueryResult:
        """Update a booking, re-deriving ``nights`` when the stay dates move.

        Cancelled and completed bookings keep their status.
        """
        if isinstance(patch, BaseModel):
            patch = patch.model_dump(exclude_unset=True)
        patch = dict(patch)
        dates_changed = "check_in_date" in patch or "check_out_date" in patch
        if dates_changed or "status" in patch:
            current = self.get_by_id(record_id, owner_id)
            if not current.ok:
                return current
            status = current.data["status"]
            if "status" in patch and status in TERMINAL_BOOKING_STATUSES and patch["status"] != status:
                return QueryResult(error=f"Booking is already {status}", kind=INVALID)
        if dates_changed:
            check_in = parse_date(patch.get("check_in_date") or current.data["check_in_date"])
            check_out = parse_date(patch.get("check_out_date") or current.data["check_out_date"])
            if check_in is None or check_out is None or check_out <= check_in:
                return QueryResult(error="check_out_date must be after check_in_date", kind=INVALID)
            patch["nights"] = (check_out - check_in).days
        return super().update(record_id, patch, owner_id)

    def transition(self, record_id: str, patch: Payload, owner_id: str) -> QueryResult:
        """Move an open booking to cancelled or completed.

        This is the only write that may set the cancellation details.
        """
        current = self.get_by_id(record_id, owner_id)
        if not current.ok:
            return current
        status = current.data["status"]
        if status in TERMINAL_BOOKING_STATUSES:
            return QueryResult(error=f"Booking is already {status}", kind=INVALID)
        return self._update(BookingTransition, record_id, patch, owner_id)

    def get_by_property(self, property_id: str, owner_id: str) -> QueryResult:
        try:
            return QueryResult(data=self._select(owner_id, {"property_id": property_id}))
        except sqlite3.Error as exc:
            return self._fail("get_by_property", exc)


class TransactionTable(OwnerScopedTable):
    def get_by_property(self, property_id: str, owner_id: str) -> QueryResult:
        """Transactions for one property, newest first."""
        try:
            return QueryResult(data=self._select(owner_id, {"property_id": property_id}))
        except sqlite3.Error as exc:
            return self._fail("get_by_property", exc)


class CategoryTable(OwnerScopedTable):
    def _decode(self, record: Record) -> Record:
        record["is_default"] = bool(record.get("is_default"))
        return record

    def get_by_type(self, category_type: str, owner_id: str) -> QueryResult:
        try:
            return QueryResult(data=self._select(owner_id, {"type": category_type}))
        except sqlite3.Error as exc:
            return self._fail("get_by_type", exc)
