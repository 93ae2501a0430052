# Ports (Protocol interfaces); implementations live in newsletter.adapters

from newsletter.core.ports.db import (
    ConfirmedSubscriberReaderPort,
    StorageError,
    SubscriptionStorePort,
    TransactionPort,
)
from newsletter.core.ports.email import EmailPort, EmailResult, EmailStatus

__all__ = [
    # Storage
    "ConfirmedSubscriberReaderPort",
    "StorageError",
    "SubscriptionStorePort",
    "TransactionPort",
    # Email
    "EmailPort",
    "EmailResult",
    "EmailStatus",
]
