"""
Program Coach — LINE Webhook.

LINE is the only user interface. Every inbound event arrives on
POST /webhook; text messages go through the ResponseResolver and the
reply goes back through the reply token.

Events in one delivery are handled concurrently and independently: a
slow AI answer for one message never delays the others, and replies are
not ordered across messages.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from coachbot.data.models import ConversationIdentity, ConversationKind
from coachbot.ports.messaging_port import MessagingError

if TYPE_CHECKING:
    from coachbot.core.resolver import ResponseResolver
    from coachbot.data.state_store import InMemoryStateStore
    from coachbot.ports.messaging_port import ReplyPort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Webhook payload
# ---------------------------------------------------------------------------


class EventSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    user_id: str | None = Field(default=None, alias="userId")
    group_id: str | None = Field(default=None, alias="groupId")
    room_id: str | None = Field(default=None, alias="roomId")


class EventMessage(BaseModel):
    type: str
    text: str | None = None


class WebhookEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    reply_token: str | None = Field(default=None, alias="replyToken")
    source: EventSource | None = None
    message: EventMessage | None = None


class WebhookBody(BaseModel):
    events: list[WebhookEvent] = Field(default_factory=list)


_SOURCE_KINDS = {
    "user": (ConversationKind.DIRECT, "user_id"),
    "group": (ConversationKind.GROUP, "group_id"),
    "room": (ConversationKind.ROOM, "room_id"),
}


def identity_from_source(source: EventSource | None) -> ConversationIdentity | None:
    """Map a LINE event source to the conversation it belongs to."""
    if source is None or source.type not in _SOURCE_KINDS:
        return None
    kind, attr = _SOURCE_KINDS[source.type]
    conversation_id = getattr(source, attr)
    if not conversation_id:
        return None
    return ConversationIdentity(kind=kind, id=conversation_id)


def verify_signature(body: bytes, signature: str, channel_secret: str) -> bool:
    """Check X-Line-Signature: base64(HMAC-SHA256(channel secret, body))."""
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature or "")


# ---------------------------------------------------------------------------
# Event handling
# ---------------------------------------------------------------------------


async def handle_event(
    event: WebhookEvent,
    resolver: ResponseResolver,
    messenger: ReplyPort,
) -> None:
    """Resolve one event and send at most one reply. Never raises for reply failures."""
    if event.type != "message" or event.message is None or event.message.type != "text":
        return

    identity = identity_from_source(event.source)
    if identity is None:
        logger.warning("Ignoring message event without a usable source: %s", event.source)
        return

    text = (event.message.text or "").strip()
    logger.info("[MSG] %s %s: %r", identity.kind.value, identity.id, text)

    reply = await resolver.respond(identity, text)
    if reply is None:
        return

    if not event.reply_token:
        logger.warning("No reply token for message from %s", identity.id)
        return

    try:
        await messenger.send(event.reply_token, reply)
    except MessagingError as exc:
        logger.error("Reply to %s failed: %s", identity.id, exc)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def build_app(
    resolver: ResponseResolver | None = None,
    messenger: ReplyPort | None = None,
    channel_secret: str | None = None,
    store: InMemoryStateStore | None = None,
) -> FastAPI:
    """Build the FastAPI application serving the LINE webhook.

    Args:
        resolver: Response pipeline. Defaults to one wired from settings.
        messenger: Reply port implementation. Defaults to LineMessenger.
        channel_secret: Secret for signature checks. Defaults to settings.
        store: State store to drain on shutdown. Defaults to the one the
               default resolver is built with.
    """
    from coachbot.config import settings

    if resolver is None:
        from coachbot.adapters.resolver_factory import create_resolver, create_state_store

        store = store if store is not None else create_state_store()
        resolver = create_resolver(store=store)

    if messenger is None:
        from coachbot.adapters.line_messenger import LineMessenger
        messenger = LineMessenger(settings.LINE_CHANNEL_ACCESS_TOKEN)

    secret = channel_secret if channel_secret is not None else settings.LINE_CHANNEL_SECRET

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Program Coach webhook ready")
        yield
        if store is not None:
            await store.drain()
        logger.info("Program Coach webhook stopped")

    app = FastAPI(title="Program Coach", lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return "LINE Bot is running"

    @app.post("/webhook")
    async def webhook(
        request: Request,
        x_line_signature: str = Header(default=""),
    ) -> dict:
        body = await request.body()
        if not verify_signature(body, x_line_signature, secret):
            logger.warning("Rejected webhook call with invalid signature")
            raise HTTPException(status_code=401, detail="invalid signature")

        try:
            payload = WebhookBody.model_validate_json(body)
        except ValidationError as exc:
            logger.warning("Malformed webhook body: %s", exc)
            raise HTTPException(status_code=400, detail="malformed body") from exc

        await asyncio.gather(
            *(handle_event(event, resolver, messenger) for event in payload.events)
        )
        return {"status": "ok"}

    return app


def main() -> None:
    """Entry point: build the app and serve it with uvicorn."""
    import uvicorn

    from coachbot.config import settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Program Coach on port %d...", settings.PORT)
    uvicorn.run(build_app(), host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
