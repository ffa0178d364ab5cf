import asyncio
import base64
import binascii
import logging
from collections.abc import Awaitable, Callable

from stickerbot.constants import DOWNLOAD_TIMEOUT_SECONDS, MAX_FILE_SIZE
from stickerbot.core.errors import (
    DownloadTimeoutError,
    EmptyBufferError,
    EmptyMediaError,
    InvalidMediaError,
    OversizeMediaError,
)
from stickerbot.core.models import DownloadedMedia, MediaPayload

logger = logging.getLogger(__name__)

MediaDownloader = Callable[[], Awaitable[DownloadedMedia | None]]


async def fetch_media(
    download: MediaDownloader,
    *,
    enforce_size_limit: bool,
    timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
    max_size: int = MAX_FILE_SIZE,
) -> MediaPayload:
    """
    Download media dengan batas waktu lalu decode base64 menjadi bytes.

    Estimasi ukuran (panjang base64 * 3/4) diperiksa sebelum decode, dan hanya
    jika ``enforce_size_limit`` aktif (jalur pembuatan sticker).
    """
    media = await _download_with_timeout(download, timeout)

    if media is None:
        raise EmptyMediaError("Media tidak ditemukan")

    encoded = media.encoded()
    if not encoded:
        raise EmptyMediaError("Data media kosong")

    if enforce_size_limit:
        estimated_size = len(encoded) * 3 / 4
        if estimated_size > max_size:
            raise OversizeMediaError(estimated_size)

    try:
        content = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as exc:
        raise InvalidMediaError("Data media tidak valid") from exc

    if not content:
        raise EmptyBufferError("Buffer gambar kosong")

    logger.debug(
        "Media berhasil didownload: mime=%s size=%s",
        media.mime_type,
        len(content),
    )
    return MediaPayload(
        mime_type=media.mime_type,
        content=content,
        file_name=media.file_name or "",
    )


async def _download_with_timeout(
    download: MediaDownloader,
    timeout: float,
) -> DownloadedMedia | None:
    # Timeout hanya berhenti menunggu; request download di transport tetap berjalan.
    task = asyncio.ensure_future(download())
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()

    task.add_done_callback(_log_abandoned_download)
    raise DownloadTimeoutError(timeout)


def _log_abandoned_download(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Download yang sudah timeout akhirnya gagal: %s", exc)
