"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from chatsphere.domain.chat.entities import AuthenticatedUser, Identity
from tests.fixtures.credentials import GATEWAY_KEY_SECRET


@pytest.fixture
def alice() -> AuthenticatedUser:
    return AuthenticatedUser(
        id="alice", full_name="Alice Sharma", profile_pic="https://img/alice.png"
    )


@pytest.fixture
def bob() -> AuthenticatedUser:
    return AuthenticatedUser(id="bob", full_name="Bob Rao")


@pytest.fixture
def alice_identity(alice: AuthenticatedUser) -> Identity:
    return Identity(
        local_user_id=alice.id,
        display_name=alice.full_name,
        avatar_ref=alice.profile_pic,
    )


@pytest.fixture
def bob_identity(bob: AuthenticatedUser) -> Identity:
    return Identity(local_user_id=bob.id, display_name=bob.full_name)


@pytest.fixture
def gateway_key_secret() -> str:
    return GATEWAY_KEY_SECRET
