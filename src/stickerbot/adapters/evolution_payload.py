"""Evolution API: validasi dan normalisasi payload event pesan."""

from typing import Any

from stickerbot.core.models import InboundMessage, MediaKind

EVENT_MESSAGES_UPSERT = "messages.upsert"
EVENT_CONNECTION_UPDATE = "connection.update"
EVENT_QRCODE_UPDATED = "qrcode.updated"

_MEDIA_KINDS: dict[str, MediaKind] = {
    "imageMessage": "image",
    "stickerMessage": "sticker",
    "videoMessage": "other",
    "audioMessage": "other",
    "documentMessage": "other",
    "documentWithCaptionMessage": "other",
}
_CAPTIONED_TYPES = ("imageMessage", "videoMessage", "documentMessage")


class InvalidPayloadError(Exception):
    """Payload webhook Evolution tidak berbentuk pesan yang valid."""


def normalize_event_name(event: object) -> str:
    # Evolution mengirim "messages.upsert" atau "MESSAGES_UPSERT" tergantung konfigurasi
    return str(event or "").strip().lower().replace("_", ".")


def parse_message_event(data: dict[str, Any]) -> InboundMessage | None:
    """
    Ubah ``data`` dari event messages.upsert menjadi InboundMessage.

    Pesan yang dikirim oleh bot sendiri (``fromMe``) dikembalikan sebagai None.
    """
    message = _build_inbound(data)
    if message.from_me:
        return None
    return message


def quoted_message_from(message: InboundMessage) -> InboundMessage | None:
    context_info = _context_info(message.raw)
    quoted = context_info.get("quotedMessage")
    if not isinstance(quoted, dict) or not quoted:
        return None

    participant = context_info.get("participant")
    return _build_inbound(
        {
            "key": {
                "id": context_info.get("stanzaId") or "",
                "remoteJid": message.chat_id,
                "participant": participant,
                "fromMe": False,
            },
            "message": quoted,
            "messageType": _message_type(quoted),
        }
    )


def _build_inbound(data: dict[str, Any]) -> InboundMessage:
    key = data.get("key")
    if not isinstance(key, dict):
        raise InvalidPayloadError("missing key")

    remote_jid = key.get("remoteJid")
    if not remote_jid or not isinstance(remote_jid, str):
        raise InvalidPayloadError("missing remoteJid")

    content = data.get("message") or {}
    if not isinstance(content, dict):
        raise InvalidPayloadError("invalid message")

    message_type = str(data.get("messageType") or _message_type(content))
    media_kind = _MEDIA_KINDS.get(message_type, "none")
    author = key.get("participant") or None

    return InboundMessage(
        message_id=str(key.get("id") or ""),
        chat_id=remote_jid,
        sender_id=author or remote_jid,
        author=author,
        body=_extract_text(content, message_type),
        has_media=media_kind != "none",
        media_kind=media_kind,
        has_quoted_message=bool(_context_info(data).get("quotedMessage")),
        from_me=bool(key.get("fromMe")),
        raw=data,
    )


def _message_type(content: dict[str, Any]) -> str:
    for name in content:
        if name != "messageContextInfo":
            return name
    return "unknown"


def _extract_text(content: dict[str, Any], message_type: str) -> str:
    if message_type == "conversation":
        return str(content.get("conversation") or "")
    if message_type == "extendedTextMessage":
        return str((content.get("extendedTextMessage") or {}).get("text") or "")
    if message_type in _CAPTIONED_TYPES:
        return str((content.get(message_type) or {}).get("caption") or "")
    if message_type == "documentWithCaptionMessage":
        inner = (content.get(message_type) or {}).get("message") or {}
        return str((inner.get("documentMessage") or {}).get("caption") or "")
    return ""


def _context_info(data: dict[str, Any]) -> dict[str, Any]:
    # Evolution v2 kadang menaruh contextInfo di level data, kadang di dalam isi pesan
    context_info = data.get("contextInfo")
    if isinstance(context_info, dict) and context_info:
        return context_info

    content = data.get("message") or {}
    if isinstance(content, dict):
        for value in content.values():
            if isinstance(value, dict) and isinstance(value.get("contextInfo"), dict):
                return value["contextInfo"]
    return {}


def status_reason(value: object) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
