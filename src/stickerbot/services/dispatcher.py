import asyncio
import logging

from stickerbot.constants import (
    DEFAULT_STICKER_NAME,
    STICKER_FILE_NAME,
    STICKER_MIME_TYPE,
)
from stickerbot.core.errors import (
    DownloadTimeoutError,
    EmptyBufferError,
    EmptyMediaError,
    InvalidMediaError,
    OversizeMediaError,
    UnsupportedFormatError,
)
from stickerbot.core.models import (
    Command,
    CreateSticker,
    Help,
    InboundMessage,
    MediaPayload,
    RenameSticker,
    SendOptions,
    StickerSpec,
    TagAll,
)
from stickerbot.core.ports import StickerNormalizer, Transport
from stickerbot.services.commands import recognize
from stickerbot.services.media_fetcher import fetch_media
from stickerbot.services.mentions import compose_mentions
from stickerbot.utils.masking import mask_jid

logger = logging.getLogger(__name__)

REPLY_WATERMARK_FORMAT = "❌ Format salah! Gunakan: *.wm nama-sticker*"
REPLY_WATERMARK_NOT_STICKER = "❌ Reply harus ke sticker!"
REPLY_WATERMARK_NO_QUOTE = "❌ Kirim command ini dengan reply ke sticker!"
REPLY_TAGALL_NOT_GROUP = "❌ Command ini hanya bisa digunakan di group!"
REPLY_TAGALL_FAILED = "❌ Gagal melakukan tagall: "
REPLY_REQUEST_FAILED = "❌ Maaf, terjadi error saat memproses permintaan."

REPLY_STICKER_FAILED = "❌ Maaf, terjadi error saat memproses sticker."
REPLY_STICKER_TOO_LARGE = "❌ Gambar terlalu besar! Maksimal 8MB."
REPLY_STICKER_INVALID = "❌ Sticker tidak valid. Coba dengan sticker lain."
REPLY_STICKER_UNSUPPORTED = "❌ Format tidak didukung."
REPLY_STICKER_TIMEOUT = "❌ Timeout saat mengunduh sticker. Coba lagi."


def build_help_text() -> str:
    return """
🤖 *BOT STICKER WA* 🤖

*Cara penggunaan:*

*1. Sticker dengan Nama Default:*
   - Kirim gambar dengan caption *".s"*
   - Nama sticker: "Bot WhatsApp"

*2. Sticker dengan Nama Custom:*
   - Kirim gambar dengan caption *".s nama-sticker"*
   - Contoh:
     • ".s Lucu" → nama sticker "Lucu"
     • ".s Keren Banget" → nama sticker "Keren Banget"

*3. Ganti Nama Sticker (.wm):*
   - *Reply* sebuah sticker dengan *".wm nama-baru"*
   - Contoh: Reply sticker + tulis ".wm Lucu"

*4. Tag All Members (.tagall):*
   - Ketik *".tagall"* di group untuk tag semua member
   - Atau *".tagall pesan-custom"* dengan pesan custom

*Note:*
• Maksimal ukuran gambar 8MB
• .wm harus reply ke sticker yang sudah ada
• .tagall hanya bekerja di group
"""


def sticker_failure_reply(error: Exception) -> str:
    """Pesan balasan untuk kegagalan di jalur sticker, lengkap dengan detail error."""
    if isinstance(error, OversizeMediaError):
        summary = REPLY_STICKER_TOO_LARGE
    elif isinstance(error, (EmptyMediaError, EmptyBufferError, InvalidMediaError)):
        summary = REPLY_STICKER_INVALID
    elif isinstance(error, UnsupportedFormatError):
        summary = REPLY_STICKER_UNSUPPORTED
    elif isinstance(error, DownloadTimeoutError):
        summary = REPLY_STICKER_TIMEOUT
    else:
        summary = REPLY_STICKER_FAILED
    return f"{summary}\n\nDetail: {error}"


class Dispatcher:
    """Orkestrasi per pesan masuk: recognize -> kerjakan command -> satu balasan."""

    def __init__(self, transport: Transport, normalizer: StickerNormalizer) -> None:
        self._transport = transport
        self._normalizer = normalizer
        self._in_flight: set[asyncio.Task[None]] = set()

    async def serve(self, queue: "asyncio.Queue[InboundMessage]") -> None:
        """Ambil event dari antrean dan proses masing-masing di task terpisah."""
        while True:
            message = await queue.get()
            task = asyncio.create_task(self.handle(message))
            self._in_flight.add(task)
            task.add_done_callback(self._on_task_done)
            queue.task_done()

    async def drain(self) -> None:
        """Tunggu semua pesan yang sedang diproses selesai."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            asyncio.get_running_loop().call_exception_handler(
                {
                    "message": "Task pemrosesan pesan gagal",
                    "exception": exc,
                    "task": task,
                }
            )

    async def handle(self, message: InboundMessage) -> None:
        if message.is_status_broadcast or message.from_me:
            return

        command = recognize(
            message.body,
            has_media=message.has_media,
            media_kind=message.media_kind,
            has_quoted_message=message.has_quoted_message,
        )
        if command is None:
            return

        try:
            await self._execute(message, command)
        except Exception:  # noqa: BLE001
            logger.exception("Error processing message: chat=%s", mask_jid(message.chat_id))
            await self._transport.reply(message, REPLY_REQUEST_FAILED)

    async def _execute(self, message: InboundMessage, command: Command) -> None:
        if isinstance(command, CreateSticker):
            await self._create_sticker(message, command.name)
        elif isinstance(command, RenameSticker):
            await self._rename_sticker(message, command.name)
        elif isinstance(command, TagAll):
            await self._tag_all(message, command.custom_message)
        elif isinstance(command, Help):
            await self._send_help(message)
        else:
            raise TypeError(f"Command tidak dikenal: {command!r}")

    async def send_sticker(self, chat_id: str, content: bytes, name: str) -> None:
        media = MediaPayload(
            mime_type=STICKER_MIME_TYPE,
            content=content,
            file_name=STICKER_FILE_NAME,
        )
        labels = StickerSpec(name_label=name)
        await self._transport.send_message(
            chat_id,
            media,
            SendOptions(
                send_as_sticker=True,
                sticker_author=labels.author_label,
                sticker_name=labels.name_label,
            ),
        )

    async def _create_sticker(self, message: InboundMessage, name: str) -> None:
        try:
            logger.info("Mendownload media...")
            media = await fetch_media(
                lambda: self._transport.download_media(message),
                enforce_size_limit=True,
            )

            logger.info("Processing gambar...")
            processed = await self._normalizer.normalize(media.content)

            await self.send_sticker(message.chat_id, processed, name)
            if name == DEFAULT_STICKER_NAME:
                await self._transport.reply(message, "✅ Sticker berhasil dibuat! 🎉")
            else:
                await self._transport.reply(message, f'✅ Sticker "{name}" berhasil dibuat! 🎉')
            logger.info("Sticker berhasil dikirim!")
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error konversi sticker")
            await self._transport.reply(message, sticker_failure_reply(exc))

    async def _rename_sticker(self, message: InboundMessage, name: str) -> None:
        if not name:
            await self._transport.reply(message, REPLY_WATERMARK_FORMAT)
            return

        if not message.has_quoted_message:
            await self._transport.reply(message, REPLY_WATERMARK_NO_QUOTE)
            return

        quoted = await self._transport.get_quoted_message(message)
        if quoted is None or not quoted.has_media or quoted.media_kind != "sticker":
            await self._transport.reply(message, REPLY_WATERMARK_NOT_STICKER)
            return

        try:
            logger.info("Mendownload sticker dari reply...")
            media = await fetch_media(
                lambda: self._transport.download_media(quoted),
                enforce_size_limit=False,
            )

            logger.info("Menggunakan sticker asli dengan nama baru: %s", name)
            await self.send_sticker(message.chat_id, media.content, name)
            await self._transport.reply(message, f'✅ Sticker "{name}" berhasil dibuat! 🎉')
            logger.info("Sticker dengan nama baru berhasil dikirim!")
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error mengubah nama sticker")
            await self._transport.reply(message, sticker_failure_reply(exc))

    async def _tag_all(self, message: InboundMessage, custom_message: str | None) -> None:
        try:
            chat = await self._transport.get_chat(message.chat_id)
            if not chat.is_group:
                await self._transport.reply(message, REPLY_TAGALL_NOT_GROUP)
                return

            broadcast = compose_mentions(chat.participants, message.author, custom_message)
            await self._transport.send_message(
                chat.chat_id,
                broadcast.text,
                SendOptions(mentions=broadcast.mentions),
            )
            logger.info(
                "✅ Tagall executed in group: %s (%s member)",
                chat.name,
                len(broadcast.mentions),
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error tagall")
            await self._transport.reply(message, f"{REPLY_TAGALL_FAILED}{exc}")

    async def _send_help(self, message: InboundMessage) -> None:
        await self._transport.reply(message, build_help_text())
        logger.info("Ada yang minta bantuan nih")
