import asyncio
import hmac
import logging
from collections.abc import Awaitable, Callable

import uvicorn
from fastapi import FastAPI, Request, Response

from stickerbot.adapters.evolution_payload import (
    EVENT_CONNECTION_UPDATE,
    EVENT_MESSAGES_UPSERT,
    EVENT_QRCODE_UPDATED,
    InvalidPayloadError,
    normalize_event_name,
    parse_message_event,
    status_reason,
)
from stickerbot.core.models import InboundMessage
from stickerbot.utils.masking import mask_jid

logger = logging.getLogger(__name__)

InboundHandler = Callable[[InboundMessage], Awaitable[None]]
ConnectionUpdateHandler = Callable[[str, int | None], Awaitable[None]]


def build_webhook_app(
    on_message: InboundHandler,
    on_connection_update: ConnectionUpdateHandler,
    token: str = "",
) -> FastAPI:
    app = FastAPI(title="StickerBot WA webhook", docs_url=None, redoc_url=None)

    @app.post("/webhook/evolution")
    @app.post("/webhook/evolution/{event_path:path}")
    async def evolution_webhook(request: Request) -> Response:
        if token and not hmac.compare_digest(request.query_params.get("token", ""), token):
            logger.warning("Webhook ditolak: token tidak cocok")
            return Response(status_code=401)

        try:
            payload = await request.json()
        except ValueError:
            return Response(status_code=400)
        if not isinstance(payload, dict):
            return Response(status_code=400)

        event = normalize_event_name(payload.get("event"))
        data = payload.get("data")

        if event == EVENT_MESSAGES_UPSERT:
            items = data if isinstance(data, list) else [data]
            # Seluruh batch divalidasi dulu agar retry gateway tidak memproses ulang.
            messages: list[InboundMessage] = []
            for item in items:
                if not isinstance(item, dict):
                    return Response(status_code=400)
                try:
                    message = parse_message_event(item)
                except InvalidPayloadError as exc:
                    logger.info("Payload pesan tidak valid: %s", exc)
                    return Response(status_code=400)
                if message is not None:
                    messages.append(message)

            for message in messages:
                logger.debug(
                    "Pesan masuk: chat=%s media=%s",
                    mask_jid(message.chat_id),
                    message.media_kind,
                )
                await on_message(message)
            return Response(status_code=200)

        if event == EVENT_CONNECTION_UPDATE:
            data = data if isinstance(data, dict) else {}
            await on_connection_update(
                str(data.get("state") or "unknown"),
                status_reason(data.get("statusReason")),
            )
            return Response(status_code=200)

        if event == EVENT_QRCODE_UPDATED:
            logger.info("QR code baru tersedia. Scan lewat Evolution API untuk pairing.")
            return Response(status_code=200)

        logger.debug("Event webhook diabaikan: %s", event or "<kosong>")
        return Response(status_code=200)

    return app


class EvolutionWebhookReceiver:
    """Menerima event Evolution lewat webhook HTTP dan meneruskannya ke antrean."""

    def __init__(
        self,
        host: str,
        port: int,
        queue: "asyncio.Queue[InboundMessage]",
        on_connection_update: ConnectionUpdateHandler,
        token: str = "",
    ) -> None:
        self._host = host
        self._port = port
        self._queue = queue

        async def _enqueue(message: InboundMessage) -> None:
            self._queue.put_nowait(message)

        self.app = build_webhook_app(
            on_message=_enqueue,
            on_connection_update=on_connection_update,
            token=token,
        )

    async def run(self) -> None:
        config = uvicorn.Config(
            self.app,
            host=self._host,
            port=self._port,
            log_config=None,
        )
        server = uvicorn.Server(config)
        logger.info("Webhook Evolution mendengarkan di %s:%s", self._host, self._port)
        await server.serve()
