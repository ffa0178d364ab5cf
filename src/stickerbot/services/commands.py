from stickerbot.constants import (
    DEFAULT_STICKER_NAME,
    HELP_ALIASES,
    TAGALL_COMMAND,
    TRIGGER_COMMAND,
    WATERMARK_COMMAND,
)
from stickerbot.core.models import (
    Command,
    CreateSticker,
    Help,
    MediaKind,
    RenameSticker,
    TagAll,
)


def recognize(
    body: str,
    has_media: bool,
    media_kind: MediaKind,
    has_quoted_message: bool = False,
) -> Command | None:
    """
    Klasifikasi teks pesan menjadi command. Urutan prioritas:
    - gambar + ".s [nama]" -> CreateSticker
    - ".wm <nama>" -> RenameSticker (nama boleh kosong, divalidasi Dispatcher)
    - ".tagall [pesan]" -> TagAll
    - ".help" / "!sticker" / "!stiker" -> Help

    ``has_quoted_message`` tidak dipakai di sini: jenis media pesan yang
    di-reply baru diketahui setelah Dispatcher mengambilnya.
    """
    del has_quoted_message
    text = body.strip() if body else ""

    if has_media and media_kind == "image" and _has_prefix(text, TRIGGER_COMMAND):
        return CreateSticker(name=_argument(text, TRIGGER_COMMAND) or DEFAULT_STICKER_NAME)

    if _has_prefix(text, WATERMARK_COMMAND):
        return RenameSticker(name=_argument(text, WATERMARK_COMMAND))

    if _has_prefix(text, TAGALL_COMMAND):
        return TagAll(custom_message=_argument(text, TAGALL_COMMAND) or None)

    if text in HELP_ALIASES:
        return Help()

    return None


def _has_prefix(text: str, command: str) -> bool:
    # Hanya keyword yang case-insensitive; argumen tetap apa adanya.
    return text[: len(command)].lower() == command


def _argument(text: str, command: str) -> str:
    return text[len(command) :].strip()
