"""
Storage interfaces for the subscription lifecycle.

Implementations: SQLite via aiosqlite (newsletter.adapters.sqlite_db).

Invariants:
- A subscriber row and its token row are written in one transaction.
- Leaving a transaction without commit() discards its writes.
"""

from __future__ import annotations

from types import TracebackType
from typing import Protocol
from uuid import UUID

from newsletter.core.entities import ConfirmedRecipient
from newsletter.domain.subscriber import NewSubscriber


class StorageError(Exception):
    """Backing store failure (connectivity, constraint violation)."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage operation '{operation}' failed{detail}")


class TransactionPort(Protocol):
    """Unit of atomic work. Rolled back on exit unless committed."""

    async def __aenter__(self) -> TransactionPort: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SubscriptionStorePort(Protocol):
    """Persistence for subscribers and their confirmation tokens."""

    def begin(self) -> TransactionPort:
        """Open a transaction (use with ``async with``)."""
        ...

    async def insert_subscriber(self, tx: TransactionPort, new_subscriber: NewSubscriber) -> UUID:
        """Insert a pending subscriber inside ``tx`` and return its new id."""
        ...

    async def store_token(self, tx: TransactionPort, subscriber_id: UUID, token: str) -> None:
        """Insert the confirmation token row inside ``tx``."""
        ...

    async def resolve_token(self, token: str) -> UUID | None:
        """Return the owning subscriber id, or None for an unknown token."""
        ...

    async def confirm_subscriber(self, subscriber_id: UUID) -> None:
        """Mark the subscriber confirmed. Succeeds even if nothing matched."""
        ...


class ConfirmedSubscriberReaderPort(Protocol):
    """Read side used by the broadcast engine."""

    async def list_confirmed(self) -> list[ConfirmedRecipient]:
        """One entry per confirmed row, in storage order, parsed or not."""
        ...
