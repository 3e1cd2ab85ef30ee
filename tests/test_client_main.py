"""Tests for the command line participant and its settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from chatsphere.application.chat.dtos import ChatTokenResponseDTO
from chatsphere.application.chat.use_cases.classifier import RenderAs
from chatsphere.application.chat.use_cases.identity import IdentityResolver
from chatsphere.application.payment.use_cases.confirmation import (
    build_confirmation_record,
)
from chatsphere.client_main import ConsoleCheckout, _build_parser, _print_message, run
from chatsphere.domain.chat.entities import GroupRecord, Identity
from chatsphere.domain.errors import Unauthenticated
from chatsphere.domain.payment.entities import PaymentOrder, PaymentOutcome
from chatsphere.envs.client_env import Settings, get_settings
from tests.fixtures import InMemoryTransportServer
from tests.fixtures.credentials import TRANSPORT_API_KEY, TRANSPORT_API_SECRET


def test_parse_pay_command() -> None:
    args = _build_parser().parse_args(
        [
            "--user-id", "alice",
            "--peer-id", "bob",
            "pay", "500",
            "--recipient-name", "Bob Rao",
            "--recipient-handle", "bob@upi",
        ]
    )
    assert args.command == "pay"
    assert args.amount == 500.0
    assert args.recipient_handle == "bob@upi"


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["--peer-id", "b"])


@pytest.mark.asyncio
async def test_print_plain_and_payment_messages(capsys) -> None:
    outcome = PaymentOutcome(
        order_id="order_N1",
        payment_id="pay_P1",
        signature_verified=True,
        amount=500,
        currency="INR",
        recipient_name="Bob Rao",
        recipient_handle="bob@upi",
        sender_name="Alice Sharma",
    )
    received = build_confirmation_record(outcome, "received").to_message()

    await _print_message({"text": "hi", "user": {"id": "bob", "name": "Bob"}}, RenderAs.PLAIN_TEXT)
    await _print_message(received, RenderAs.PAYMENT_NOTIFICATION)
    await _print_message({"type": "payment_confirmation"}, RenderAs.SUPPRESSED)

    assert capsys.readouterr().out.splitlines() == [
        "[Bob] hi",
        "== Money Received: ₹500 From Alice Sharma (txn pay_P1)",
    ]


@pytest.mark.asyncio
async def test_console_checkout_reads_result(monkeypatch) -> None:
    answers = iter(["pay_P1", "ab12"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    order = PaymentOrder(order_id="order_N1", amount=50000, currency="INR")

    result = await ConsoleCheckout().open(order)

    assert result.gateway_order_id == "order_N1"
    assert result.gateway_payment_id == "pay_P1"
    assert result.signature == "ab12"


@pytest.mark.asyncio
async def test_console_checkout_empty_input_cancels(monkeypatch) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt="": "")
    order = PaymentOrder(order_id="order_N1", amount=50000, currency="INR")

    assert await ConsoleCheckout().open(order) is None


def test_client_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CHATSPHERE_API_BASE_URL", "https://api.test/")
    monkeypatch.setenv("CHATSPHERE_SESSION_TOKEN", "session-token")
    monkeypatch.setenv("STREAM_API_KEY", "api-key")
    monkeypatch.setenv("CONFIRMATION_DELAY_SECONDS", "0.5")
    monkeypatch.delenv("STREAM_BASE_URL", raising=False)
    monkeypatch.delenv("CALL_ORIGIN", raising=False)

    settings = get_settings()

    assert settings.api_base_url == "https://api.test"
    assert settings.confirmation_delay_seconds == 0.5
    assert settings.call_origin == "http://localhost:5173"


@pytest.mark.parametrize(
    "override",
    [
        {"api_base_url": "api.test"},
        {"session_token": ""},
        {"confirmation_delay_seconds": -1},
    ],
)
def test_client_settings_validation(override) -> None:
    values = {
        "api_base_url": "https://api.test",
        "session_token": "session-token",
        "stream_api_key": "api-key",
    }
    values.update(override)
    with pytest.raises(ValidationError):
        Settings(**values)


class FakeApiClient:
    """Server answering `GET /chat/token` for whoever owns the session token."""

    owner = Identity(local_user_id="alice", display_name="Alice Sharma")

    def __init__(self, base_url: str, session_token: str) -> None:
        self.base_url = base_url
        self.session_token = session_token

    async def __aenter__(self) -> "FakeApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def get_chat_token(self) -> ChatTokenResponseDTO:
        resolver = IdentityResolver(TRANSPORT_API_KEY, TRANSPORT_API_SECRET)
        token = resolver.issue_access_token(self.owner)
        return ChatTokenResponseDTO.from_access_token(token, self.owner)

    async def get_group(self, group_id: str) -> GroupRecord:
        return GroupRecord(
            id=group_id,
            name="Goa Trip",
            member_ids=["alice", "bob", "carol"],
            stream_channel_id="group-abc",
        )


@pytest.fixture
def cli_transport(monkeypatch) -> InMemoryTransportServer:
    server = InMemoryTransportServer()
    monkeypatch.setattr("chatsphere.client_main.AsyncPaymentApiClient", FakeApiClient)
    monkeypatch.setattr(
        "chatsphere.client_main.StreamTransportClient",
        lambda *args, **kwargs: server.client(),
    )
    return server


@pytest.fixture
def cli_settings() -> Settings:
    return Settings(
        api_base_url="https://api.test",
        session_token="session-token",
        stream_api_key="api-key",
    )


@pytest.mark.asyncio
async def test_run_connects_as_session_owner(
    cli_transport: InMemoryTransportServer, cli_settings: Settings, capsys
) -> None:
    args = _build_parser().parse_args(["--peer-id", "bob", "call"])

    assert await run(args, cli_settings) == 0

    assert cli_transport.connect_calls == 1
    assert cli_transport.users["alice"] == {"id": "alice", "name": "Alice Sharma"}
    [invite] = cli_transport.messages_in("alice-bob")
    assert invite["user"]["id"] == "alice"
    assert "http://localhost:5173/call/alice-bob" in invite["text"]
    assert "http://localhost:5173/call/alice-bob" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_run_refuses_other_users_session(
    cli_transport: InMemoryTransportServer, cli_settings: Settings
) -> None:
    args = _build_parser().parse_args(
        ["--user-id", "mallory", "--peer-id", "bob", "call"]
    )

    with pytest.raises(Unauthenticated, match="alice"):
        await run(args, cli_settings)

    assert cli_transport.connect_calls == 0
    assert cli_transport.channels == {}


@pytest.mark.asyncio
async def test_run_opens_group_from_server(
    cli_transport: InMemoryTransportServer, cli_settings: Settings
) -> None:
    args = _build_parser().parse_args(["--group-id", "g1", "call"])

    assert await run(args, cli_settings) == 0

    channel = cli_transport.channels["messaging:group-abc"]
    assert channel.members == ["alice", "bob", "carol"]
    assert channel.data["name"] == "Goa Trip"
    [invite] = channel.messages
    assert "http://localhost:5173/group-call/group-abc" in invite["text"]


def test_peer_and_group_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["--peer-id", "bob", "--group-id", "g1", "call"])
