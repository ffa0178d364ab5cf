from dataclasses import dataclass, field
from typing import Any, Literal

from stickerbot.constants import (
    DEFAULT_STICKER_NAME,
    GROUP_JID_SUFFIX,
    STATUS_BROADCAST_JID,
    STICKER_AUTHOR,
    STICKER_SIZE,
)

MediaKind = Literal["image", "sticker", "other", "none"]


@dataclass(frozen=True, slots=True)
class InboundMessage:
    message_id: str
    chat_id: str
    sender_id: str
    body: str
    author: str | None = None
    has_media: bool = False
    media_kind: MediaKind = "none"
    has_quoted_message: bool = False
    from_me: bool = False
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_status_broadcast(self) -> bool:
        return self.chat_id == STATUS_BROADCAST_JID

    @property
    def is_group(self) -> bool:
        return self.chat_id.endswith(GROUP_JID_SUFFIX)


# Pesan yang di-reply memakai bentuk yang sama dengan pesan masuk.
QuotedMessage = InboundMessage


@dataclass(frozen=True, slots=True)
class DownloadedMedia:
    """Hasil download dari transport.

    Data base64 bisa datang lewat salah satu dari dua field; ``encoded()``
    adalah satu-satunya tempat yang memilih field mana yang dipakai.
    """

    mime_type: str = ""
    data: str | None = None
    media_base64: str | None = None
    file_name: str | None = None

    def encoded(self) -> str | None:
        return self.media_base64 or self.data or None


@dataclass(frozen=True, slots=True)
class MediaPayload:
    mime_type: str
    content: bytes
    file_name: str


@dataclass(frozen=True, slots=True)
class StickerSpec:
    name_label: str = DEFAULT_STICKER_NAME
    author_label: str = STICKER_AUTHOR
    canvas_size_px: int = STICKER_SIZE


@dataclass(frozen=True, slots=True)
class Participant:
    id: str

    @property
    def user(self) -> str:
        return self.id.split("@", 1)[0]


@dataclass(frozen=True, slots=True)
class ChatInfo:
    chat_id: str
    is_group: bool
    name: str = ""
    participants: tuple[Participant, ...] = ()


@dataclass(frozen=True, slots=True)
class MentionMessage:
    text: str
    mentions: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SendOptions:
    send_as_sticker: bool = False
    sticker_author: str | None = None
    sticker_name: str | None = None
    mentions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CreateSticker:
    name: str


@dataclass(frozen=True, slots=True)
class RenameSticker:
    name: str


@dataclass(frozen=True, slots=True)
class TagAll:
    custom_message: str | None = None


@dataclass(frozen=True, slots=True)
class Help:
    pass


Command = CreateSticker | RenameSticker | TagAll | Help
