from typing import Protocol

from stickerbot.core.models import (
    ChatInfo,
    DownloadedMedia,
    InboundMessage,
    MediaPayload,
    SendOptions,
)


class Transport(Protocol):
    async def download_media(self, message: InboundMessage) -> DownloadedMedia | None:
        """Download media dari pesan; boleh lambat atau menggantung."""

    async def get_quoted_message(self, message: InboundMessage) -> InboundMessage | None:
        """Ambil pesan yang di-reply oleh ``message``."""

    async def get_chat(self, chat_id: str) -> ChatInfo:
        """Ambil info chat terbaru, termasuk daftar peserta grup."""

    async def send_message(
        self,
        chat_id: str,
        content: str | MediaPayload,
        options: SendOptions | None = None,
    ) -> None:
        """Kirim teks atau media ke chat."""

    async def reply(self, message: InboundMessage, text: str) -> None:
        """Balas pesan asal dengan teks."""


class StickerNormalizer(Protocol):
    async def normalize(self, content: bytes) -> bytes:
        """Ubah gambar menjadi kanvas sticker persegi transparan."""


class SessionControl(Protocol):
    async def connection_state(self) -> str:
        """Status koneksi sesi saat ini, misalnya ``open`` atau ``close``."""

    async def connect(self) -> None:
        """Minta transport menyambungkan ulang sesi."""
