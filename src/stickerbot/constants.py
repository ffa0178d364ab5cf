"""Konstanta tetap bot: batas ukuran, ukuran kanvas, label, dan prefix command."""

MAX_FILE_SIZE = 8 * 1024 * 1024  # 8MB
STICKER_SIZE = 512
STICKER_AUTHOR = "Bot Sticker WA"
DEFAULT_STICKER_NAME = "Bot WhatsApp"

STICKER_MIME_TYPE = "image/png"
STICKER_FILE_NAME = "sticker.png"

TRIGGER_COMMAND = ".s"
WATERMARK_COMMAND = ".wm"
TAGALL_COMMAND = ".tagall"
HELP_ALIASES = frozenset({".help", "!sticker", "!stiker"})

TAGALL_DEFAULT_HEADER = "📢 Tag All!"

DOWNLOAD_TIMEOUT_SECONDS = 30.0
RECONNECT_DELAY_SECONDS = 5.0

STATUS_BROADCAST_JID = "status@broadcast"
GROUP_JID_SUFFIX = "@g.us"
