"""
Dependency providers.

Everything here comes from ``app.state``, filled once by the application
lifespan from the AppConfig passed to ``create_app``. Tests swap pieces with
``app.dependency_overrides``.
"""

from fastapi import Depends, Request

from newsletter.adapters.sqlite_db import SQLiteConfirmedSubscriberReader, SQLiteSubscriptionStore
from newsletter.components.subscriptions.models import SubscriptionConfig
from newsletter.config.models import AppConfig
from newsletter.core.ports.email import EmailPort


def get_config(request: Request) -> AppConfig:
    config: AppConfig = request.app.state.config
    return config


def get_subscription_store(request: Request) -> SQLiteSubscriptionStore:
    store: SQLiteSubscriptionStore = request.app.state.subscription_store
    return store


def get_confirmed_reader(request: Request) -> SQLiteConfirmedSubscriberReader:
    reader: SQLiteConfirmedSubscriberReader = request.app.state.confirmed_reader
    return reader


def get_email_sender(request: Request) -> EmailPort:
    sender: EmailPort = request.app.state.email_sender
    return sender


def get_subscription_config(config: AppConfig = Depends(get_config)) -> SubscriptionConfig:
    return SubscriptionConfig(base_url=config.application.base_url)
