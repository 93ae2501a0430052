"""
SQLite adapter for the subscription store and the broadcast reader.

Async access through aiosqlite. Connections are opened per operation (or per
transaction) and the number open at once is capped by a semaphore sized from
``database.max_connections``.

Tables: subscriptions, subscription_tokens (see migrations/).
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import TracebackType
from typing import Any
from uuid import UUID

import aiosqlite
import uuid6

from newsletter.core.entities import ConfirmedRecipient, Subscriber, SubscriptionStatus
from newsletter.core.ports.db import StorageError, TransactionPort
from newsletter.domain.subscriber import NewSubscriber, SubscriberEmail, ValidationError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def new_subscriber_id() -> UUID:
    """Generate a UUIDv7. Ids sort by creation time, also within one millisecond."""
    return UUID(int=uuid6.uuid7().int)


# -----------------------------------------------------------------------------
# Database handle
# -----------------------------------------------------------------------------


class SQLiteDatabase:
    """
    Shared handle for one SQLite file.

    Hands out short-lived connections and transactions; at most
    ``max_connections`` are open at the same time.
    """

    def __init__(self, db_path: str, max_connections: int = 10, timeout: float = 5.0):
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.db_path = db_path
        self.timeout = timeout
        self._slots = asyncio.Semaphore(max_connections)

    async def _open(self) -> aiosqlite.Connection:
        # isolation_level=None: autocommit unless an explicit BEGIN is issued
        conn = await aiosqlite.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        try:
            conn.row_factory = dict_factory
            await conn.execute("PRAGMA foreign_keys = ON;")
        except BaseException:
            await conn.close()
            raise
        return conn

    @asynccontextmanager
    async def connection(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Autocommit connection for one read or single-statement write."""
        async with self._slots:
            try:
                conn = await self._open()
            except aiosqlite.Error as e:
                raise StorageError(operation, e) from e
            try:
                yield conn
            finally:
                await conn.close()

    def transaction(self) -> SQLiteTransaction:
        return SQLiteTransaction(self)


class SQLiteTransaction:
    """
    Explicit transaction on a dedicated connection.

    Usage:
        async with db.transaction() as tx:
            await tx.execute(...)
            await tx.commit()

    Leaving the block without commit() (error, cancellation or plain
    return) rolls back.
    """

    def __init__(self, db: SQLiteDatabase):
        self._db = db
        self._conn: aiosqlite.Connection | None = None
        self._holding_slot = False
        self._finished = False

    async def __aenter__(self) -> SQLiteTransaction:
        await self._db._slots.acquire()
        self._holding_slot = True
        try:
            self._conn = await self._db._open()
            await self._conn.execute("BEGIN")
        except aiosqlite.Error as e:
            await self._close()
            raise StorageError("begin_transaction", e) from e
        except BaseException:
            # Cancelled before the block started: __aexit__ will not run
            await self._close()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if not self._finished:
                await self.rollback()
        except StorageError:
            # Closing the connection below discards the uncommitted writes anyway
            logger.warning("Rollback failed; discarding transaction by closing its connection")
        finally:
            await self._close()

    async def _close(self) -> None:
        try:
            if self._conn is not None:
                await self._conn.close()
                self._conn = None
        finally:
            if self._holding_slot:
                self._holding_slot = False
                self._db._slots.release()

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None or self._finished:
            raise RuntimeError("Transaction is not active")
        return self._conn

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        await self.connection.execute(sql, params)

    async def commit(self) -> None:
        conn = self.connection
        try:
            await conn.execute("COMMIT")
        except aiosqlite.Error as e:
            raise StorageError("commit", e) from e
        self._finished = True

    async def rollback(self) -> None:
        if self._conn is None or self._finished:
            return
        self._finished = True
        try:
            await self._conn.execute("ROLLBACK")
        except aiosqlite.Error as e:
            raise StorageError("rollback", e) from e


# -----------------------------------------------------------------------------
# Subscription Store
# -----------------------------------------------------------------------------


class SQLiteSubscriptionStore:
    """SQLite implementation of SubscriptionStorePort."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    def begin(self) -> SQLiteTransaction:
        return self.db.transaction()

    @staticmethod
    def _sqlite_tx(tx: TransactionPort) -> SQLiteTransaction:
        if not isinstance(tx, SQLiteTransaction):
            raise TypeError(f"Expected SQLiteTransaction, got {type(tx).__name__}")
        return tx

    async def insert_subscriber(self, tx: TransactionPort, new_subscriber: NewSubscriber) -> UUID:
        subscriber_id = new_subscriber_id()
        try:
            await self._sqlite_tx(tx).execute(
                """
                INSERT INTO subscriptions (id, email, name, subscribed_at, status)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(subscriber_id),
                    str(new_subscriber.email),
                    str(new_subscriber.name),
                    datetime.now(UTC).isoformat(),
                    SubscriptionStatus.PENDING_CONFIRMATION.value,
                ),
            )
        except aiosqlite.Error as e:
            raise StorageError("insert_subscriber", e) from e
        return subscriber_id

    async def store_token(self, tx: TransactionPort, subscriber_id: UUID, token: str) -> None:
        try:
            await self._sqlite_tx(tx).execute(
                """
                INSERT INTO subscription_tokens (subscription_token, subscriber_id)
                VALUES (?, ?)
                """,
                (token, str(subscriber_id)),
            )
        except aiosqlite.Error as e:
            raise StorageError("store_token", e) from e

    async def resolve_token(self, token: str) -> UUID | None:
        async with self.db.connection("resolve_token") as conn:
            try:
                async with conn.execute(
                    "SELECT subscriber_id FROM subscription_tokens WHERE subscription_token = ?",
                    (token,),
                ) as cursor:
                    row = await cursor.fetchone()
            except aiosqlite.Error as e:
                raise StorageError("resolve_token", e) from e
        return UUID(row["subscriber_id"]) if row else None

    async def confirm_subscriber(self, subscriber_id: UUID) -> None:
        # Zero matched rows is not an error
        async with self.db.connection("confirm_subscriber") as conn:
            try:
                await conn.execute(
                    "UPDATE subscriptions SET status = ? WHERE id = ?",
                    (SubscriptionStatus.CONFIRMED.value, str(subscriber_id)),
                )
            except aiosqlite.Error as e:
                raise StorageError("confirm_subscriber", e) from e

    async def get_subscriber(self, subscriber_id: UUID) -> Subscriber | None:
        async with self.db.connection("get_subscriber") as conn:
            try:
                async with conn.execute(
                    "SELECT * FROM subscriptions WHERE id = ?", (str(subscriber_id),)
                ) as cursor:
                    row = await cursor.fetchone()
            except aiosqlite.Error as e:
                raise StorageError("get_subscriber", e) from e
        return self._map_row(row) if row else None

    def _map_row(self, row: dict[str, Any]) -> Subscriber:
        return Subscriber(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            subscribed_at=datetime.fromisoformat(row["subscribed_at"]),
            status=SubscriptionStatus(row["status"]),
        )


# -----------------------------------------------------------------------------
# Confirmed-Recipient Reader
# -----------------------------------------------------------------------------


class SQLiteConfirmedSubscriberReader:
    """SQLite implementation of ConfirmedSubscriberReaderPort."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    async def list_confirmed(self) -> list[ConfirmedRecipient]:
        async with self.db.connection("list_confirmed") as conn:
            try:
                async with conn.execute(
                    "SELECT id, email FROM subscriptions WHERE status = ? "
                    "ORDER BY subscribed_at, id",
                    (SubscriptionStatus.CONFIRMED.value,),
                ) as cursor:
                    rows = await cursor.fetchall()
            except aiosqlite.Error as e:
                raise StorageError("list_confirmed", e) from e
        return [self._parse_row(row) for row in rows]

    def _parse_row(self, row: dict[str, Any]) -> ConfirmedRecipient:
        # Stored addresses may predate the current validation rules
        raw_email = row["email"]
        try:
            email = SubscriberEmail.parse(raw_email)
        except ValidationError as e:
            return ConfirmedRecipient(subscriber_id=row["id"], raw_email=raw_email, error=e)
        return ConfirmedRecipient(subscriber_id=row["id"], raw_email=raw_email, email=email)
