"""Command line participant: connect to a chat, send money, post call links."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Mapping, Optional

from .application.chat.use_cases.classifier import RenderAs, dispatch, payment_card
from .application.chat.use_cases.session import (
    ChatTarget,
    DirectTarget,
    GroupTarget,
    SessionEstablisher,
)
from .application.payment.dtos import PaymentRequestDTO
from .application.payment.use_cases.confirmation import ConfirmationEmitter
from .application.payment.use_cases.flow import ChatPaymentFlow, PaymentReceipt
from .application.payment.use_cases.orchestrator import PaymentOrchestrator
from .domain.errors import (
    ChatSphereError,
    DeliveryDegraded,
    GatewayUnavailable,
    Unauthenticated,
)
from .domain.payment.entities import GatewayCheckoutResult, PaymentOrder
from .envs.client_env import Settings, get_settings
from .infrastructure.api_client.payment_api_client import AsyncPaymentApiClient
from .infrastructure.transport.stream_client import StreamTransportClient

logger = logging.getLogger(__name__)


class ConsoleCheckout:
    """Checkout step for a terminal: the payer pastes the gateway's result."""

    async def open(self, order: PaymentOrder) -> Optional[GatewayCheckoutResult]:
        print(
            f"Complete payment of {order.major_amount} {order.currency} "
            f"for order {order.order_id}, then paste the result (empty to cancel)."
        )
        payment_id = (await asyncio.to_thread(input, "Payment id: ")).strip()
        if not payment_id:
            return None
        signature = (await asyncio.to_thread(input, "Signature: ")).strip()
        if not signature:
            return None
        return GatewayCheckoutResult(
            gateway_order_id=order.order_id,
            gateway_payment_id=payment_id,
            signature=signature,
        )


async def _print_message(message: Mapping[str, Any], render_as: RenderAs) -> None:
    if render_as is RenderAs.SUPPRESSED:
        return
    if render_as is RenderAs.PLAIN_TEXT:
        user = message.get("user") or {}
        print(f"[{user.get('name') or user.get('id', '?')}] {message.get('text', '')}")
        return
    card = payment_card(message)
    if card is not None:
        print(
            f"== {card.title}: {card.amount} {card.counterpart_label} "
            f"{card.counterpart_name} (txn {card.transaction_id})"
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatsphere-client")
    parser.add_argument(
        "--user-id",
        help="expected account; refuse to continue if the session belongs to another",
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--peer-id", help="chat one-to-one with this user")
    target.add_argument("--group-id", help="chat in this group")
    sub = parser.add_subparsers(dest="command", required=True)

    pay = sub.add_parser("pay", help="send money to the peer")
    pay.add_argument("amount", type=float)
    pay.add_argument("--recipient-name", required=True)
    pay.add_argument("--recipient-handle", required=True)

    sub.add_parser("call", help="post a video call link")
    sub.add_parser("listen", help="print incoming messages")
    return parser


async def _confirm_retry() -> bool:
    answer = await asyncio.to_thread(input, "Verification unreachable. Retry? [Y/n] ")
    return answer.strip().lower() in ("", "y", "yes")


async def _pay(flow: ChatPaymentFlow, args: argparse.Namespace) -> PaymentReceipt:
    request = PaymentRequestDTO(
        amount=args.amount,
        recipient_name=args.recipient_name,
        recipient_handle=args.recipient_handle,
    )
    try:
        return await flow.send_payment(request)
    except GatewayUnavailable:
        if not flow.orchestrator.awaiting_resubmission:
            raise
    # The payer already completed checkout; only verification is repeated
    while True:
        if not await _confirm_retry():
            raise GatewayUnavailable(
                "Payment completed but not verified; "
                f"order {flow.orchestrator.current_order.order_id}"
            )
        try:
            return await flow.resume_payment()
        except GatewayUnavailable as e:
            print(f"Error: {e}")


async def _target(
    api: AsyncPaymentApiClient, args: argparse.Namespace
) -> ChatTarget:
    if args.group_id:
        return GroupTarget(await api.get_group(args.group_id))
    return DirectTarget(peer_id=args.peer_id)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    async with AsyncPaymentApiClient(
        settings.api_base_url + "/api", settings.session_token
    ) as api:
        token = await api.get_chat_token()
        identity = token.to_identity()
        if args.user_id and args.user_id != identity.local_user_id:
            raise Unauthenticated(
                f"Session belongs to {identity.local_user_id}, not {args.user_id}"
            )
        transport = StreamTransportClient(
            settings.stream_api_key, settings.stream_base_url
        )
        async with SessionEstablisher(transport) as sessions:
            session = await sessions.connect(
                identity, token.token, await _target(api, args)
            )
            print(f"Connected to {session.title} ({session.key.cid})")

            if args.command == "call":
                print(await sessions.send_call_invite(settings.call_origin))
            elif args.command == "listen":
                await dispatch(session.channel.messages(), _print_message)
            elif args.command == "pay":
                flow = ChatPaymentFlow(
                    sessions,
                    PaymentOrchestrator(api, ConsoleCheckout()),
                    ConfirmationEmitter(
                        notification_delay=settings.confirmation_delay_seconds
                    ),
                )
                receipt = await _pay(flow, args)
                print(f"Payment {receipt.outcome.payment_id} verified")
                result = await receipt.delivery.wait()
                try:
                    result.raise_for_delivery()
                except DeliveryDegraded as e:
                    print(f"Warning: {e}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    try:
        return asyncio.run(run(args, settings))
    except ChatSphereError as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
