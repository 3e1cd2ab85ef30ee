"""FastAPI dependencies for the chatsphere API."""

from __future__ import annotations

from datetime import timedelta
from typing import AsyncIterator, Optional

from fastapi import Depends

from ..application.chat.use_cases.identity import IdentityResolver
from ..application.payment.use_cases.payment import PaymentService
from ..domain.chat.repositories import GroupRepository, UserRepository
from ..domain.payment.order_repository import PaymentOrderRepository
from ..domain.shared import PaymentGatewayProtocol, UserDirectoryProtocol
from ..envs.server_env import Settings, get_settings
from ..infrastructure.chat.group_repository_impl import GroupRepositoryImpl
from ..infrastructure.chat.user_repository_impl import UserRepositoryImpl
from ..infrastructure.database import DatabaseClient, get_database_client
from ..infrastructure.gateway.razorpay_client import AsyncRazorpayClient
from ..infrastructure.payment.order_repository_impl import PaymentOrderRepositoryImpl
from ..infrastructure.storage import KeyValueStore, RedisKeyValueStore
from ..infrastructure.transport.stream_client import StreamUserDirectory


def get_database_client_with_settings(
    settings: Settings = Depends(get_settings),
) -> DatabaseClient:
    """Get database client with settings."""
    return get_database_client(settings)


def get_key_value_store(
    db_client: DatabaseClient = Depends(get_database_client_with_settings),
) -> KeyValueStore:
    """Get key-value store."""
    return RedisKeyValueStore(db_client)


def get_user_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> UserRepository:
    """Get user repository."""
    return UserRepositoryImpl(store)


def get_group_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> GroupRepository:
    """Get group repository."""
    return GroupRepositoryImpl(store)


def get_payment_order_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> PaymentOrderRepository:
    """Get payment order repository."""
    return PaymentOrderRepositoryImpl(store)


async def get_payment_gateway(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[Optional[PaymentGatewayProtocol]]:
    """Gateway client for the request, or None when credentials are missing."""
    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        yield None
        return
    async with AsyncRazorpayClient(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        settings.razorpay_base_url,
    ) as gateway:
        yield gateway


def get_payment_service(
    gateway: Optional[PaymentGatewayProtocol] = Depends(get_payment_gateway),
    order_repository: PaymentOrderRepository = Depends(get_payment_order_repository),
    settings: Settings = Depends(get_settings),
) -> PaymentService:
    """Get payment service."""
    return PaymentService(
        gateway=gateway,
        order_repository=order_repository,
        key_secret=settings.razorpay_key_secret,
        currency=settings.payment_currency,
    )


def get_user_directory(
    settings: Settings = Depends(get_settings),
) -> Optional[UserDirectoryProtocol]:
    """Transport user directory, or None when credentials are missing."""
    if not settings.stream_api_key or not settings.stream_api_secret:
        return None
    return StreamUserDirectory(
        settings.stream_api_key,
        settings.stream_api_secret,
        settings.stream_base_url,
    )


def get_identity_resolver(
    settings: Settings = Depends(get_settings),
    user_directory: Optional[UserDirectoryProtocol] = Depends(get_user_directory),
) -> IdentityResolver:
    """Get identity resolver."""
    return IdentityResolver(
        settings.stream_api_key,
        settings.stream_api_secret,
        token_ttl=timedelta(seconds=settings.stream_token_ttl_seconds),
        user_directory=user_directory,
    )
