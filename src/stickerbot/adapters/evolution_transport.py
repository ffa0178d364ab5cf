import base64
import logging
from typing import Any

import httpx

from stickerbot.adapters.evolution_payload import quoted_message_from
from stickerbot.adapters.whatsapp_sticker import encode_whatsapp_sticker
from stickerbot.constants import GROUP_JID_SUFFIX, STICKER_AUTHOR
from stickerbot.core.models import (
    ChatInfo,
    DownloadedMedia,
    InboundMessage,
    MediaPayload,
    Participant,
    SendOptions,
)
from stickerbot.utils.masking import mask_jid, mask_url

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 30.0


class EvolutionApiError(RuntimeError):
    def __init__(self, action: str, status_code: int, payload: object) -> None:
        super().__init__(f"{action} gagal: status={status_code} payload={payload}")
        self.status_code = status_code
        self.payload = payload


class EvolutionTransport:
    """Transport WhatsApp lewat Evolution API (gateway HTTP yang memegang sesi)."""

    def __init__(
        self,
        base_url: str,
        instance: str,
        api_key: str,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._instance = instance
        self._api_key = api_key
        self._http_transport = http_transport
        logger.debug(
            "Evolution transport siap: base_url=%s instance=%s",
            mask_url(self._base_url),
            instance,
        )

    async def download_media(self, message: InboundMessage) -> DownloadedMedia | None:
        payload = await self._request(
            "POST",
            f"/chat/getBase64FromMediaMessage/{self._instance}",
            action="Download media",
            json={
                "message": {
                    "key": message.raw.get("key", {"id": message.message_id}),
                    "message": message.raw.get("message", {}),
                },
                "convertToMp4": False,
            },
        )
        if not payload:
            return None
        return DownloadedMedia(
            mime_type=str(payload.get("mimetype") or ""),
            data=payload.get("data"),
            media_base64=payload.get("base64"),
            file_name=payload.get("fileName"),
        )

    async def get_quoted_message(self, message: InboundMessage) -> InboundMessage | None:
        return quoted_message_from(message)

    async def get_chat(self, chat_id: str) -> ChatInfo:
        if not chat_id.endswith(GROUP_JID_SUFFIX):
            return ChatInfo(chat_id=chat_id, is_group=False)

        payload = await self._request(
            "GET",
            f"/group/findGroupInfos/{self._instance}",
            action="Ambil info grup",
            params={"groupJid": chat_id},
        )
        participants = tuple(
            Participant(id=str(item["id"]))
            for item in payload.get("participants") or []
            if isinstance(item, dict) and item.get("id")
        )
        return ChatInfo(
            chat_id=str(payload.get("id") or chat_id),
            is_group=True,
            name=str(payload.get("subject") or ""),
            participants=participants,
        )

    async def send_message(
        self,
        chat_id: str,
        content: str | MediaPayload,
        options: SendOptions | None = None,
    ) -> None:
        options = options or SendOptions()
        if isinstance(content, MediaPayload):
            if options.send_as_sticker:
                await self._send_sticker(chat_id, content, options)
            else:
                await self._send_media(chat_id, content)
            return

        body: dict[str, Any] = {"number": chat_id, "text": content}
        if options.mentions:
            body["mentioned"] = list(options.mentions)
        await self._request(
            "POST",
            f"/message/sendText/{self._instance}",
            action="Kirim teks",
            json=body,
        )
        logger.debug(
            "Teks terkirim: chat=%s mentions=%s",
            mask_jid(chat_id),
            len(options.mentions),
        )

    async def reply(self, message: InboundMessage, text: str) -> None:
        await self._request(
            "POST",
            f"/message/sendText/{self._instance}",
            action="Balas pesan",
            json={
                "number": message.chat_id,
                "text": text,
                "quoted": {
                    "key": message.raw.get("key", {"id": message.message_id}),
                    "message": message.raw.get("message", {}),
                },
            },
        )

    async def connection_state(self) -> str:
        payload = await self._request(
            "GET",
            f"/instance/connectionState/{self._instance}",
            action="Cek status koneksi",
        )
        instance = payload.get("instance") or {}
        return str(instance.get("state") or payload.get("state") or "unknown")

    async def connect(self) -> None:
        payload = await self._request(
            "GET",
            f"/instance/connect/{self._instance}",
            action="Sambungkan instance",
        )
        if payload.get("pairingCode") or payload.get("code"):
            logger.info(
                "Instance %s menunggu pairing. Selesaikan pairing lewat Evolution API.",
                self._instance,
            )

    async def _send_sticker(
        self,
        chat_id: str,
        media: MediaPayload,
        options: SendOptions,
    ) -> None:
        sticker = encode_whatsapp_sticker(
            media.content,
            author=options.sticker_author or STICKER_AUTHOR,
            name=options.sticker_name or "",
        )
        await self._request(
            "POST",
            f"/message/sendSticker/{self._instance}",
            action="Kirim sticker",
            json={
                "number": chat_id,
                "sticker": base64.b64encode(sticker).decode("ascii"),
            },
        )
        logger.debug(
            "Sticker terkirim: chat=%s name=%s size=%s",
            mask_jid(chat_id),
            options.sticker_name,
            len(sticker),
        )

    async def _send_media(self, chat_id: str, media: MediaPayload) -> None:
        await self._request(
            "POST",
            f"/message/sendMedia/{self._instance}",
            action="Kirim media",
            json={
                "number": chat_id,
                "mediatype": "image" if media.mime_type.startswith("image/") else "document",
                "mimetype": media.mime_type,
                "fileName": media.file_name,
                "media": base64.b64encode(media.content).decode("ascii"),
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=HTTP_TIMEOUT_SECONDS,
            transport=self._http_transport,
        ) as client:
            response = await client.request(
                method,
                path,
                headers={"apikey": self._api_key},
                **kwargs,
            )

        try:
            payload = response.json() if response.content else {}
        except ValueError:
            payload = {"raw_body": response.text}

        if response.status_code >= 400:
            raise EvolutionApiError(action, response.status_code, payload)
        if not isinstance(payload, dict):
            return {"items": payload}
        return payload
