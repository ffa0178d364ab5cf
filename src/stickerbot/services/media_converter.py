import asyncio
import logging
import os
import tempfile
from pathlib import Path

from stickerbot.constants import STICKER_SIZE
from stickerbot.core.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)


def build_contain_filter(size: int = STICKER_SIZE) -> str:
    """
    Filter ffmpeg untuk resize "contain" ke kanvas persegi.

    Gambar diubah ke rgba, diskalakan agar muat di dalam size x size tanpa
    crop maupun distorsi, lalu diletakkan di tengah kanvas transparan penuh.
    """
    return (
        f"format=rgba,"
        f"scale={size}:{size}:force_original_aspect_ratio=decrease:flags=lanczos,"
        f"pad={size}:{size}:(ow-iw)/2:(oh-ih)/2:color=0x00000000,"
        f"format=rgba"
    )


class FfmpegStickerNormalizer:
    """Ubah gambar apa pun menjadi PNG sticker 512x512 dengan padding transparan."""

    def __init__(self, size: int = STICKER_SIZE) -> None:
        self._size = size

    async def normalize(self, content: bytes) -> bytes:
        logger.debug("Mulai normalisasi sticker: size=%s bytes", len(content))

        with tempfile.NamedTemporaryFile(delete=False, suffix=".img") as in_file:
            in_file.write(content)
            in_path = Path(in_file.name)

        with tempfile.NamedTemporaryFile(delete=False, suffix=".png") as out_file:
            out_path = Path(out_file.name)

        try:
            await _run_ffmpeg(
                [
                    "-i",
                    str(in_path),
                    "-vf",
                    build_contain_filter(self._size),
                    "-frames:v",
                    "1",
                    "-f",
                    "image2",
                    "-c:v",
                    "png",
                    str(out_path),
                ]
            )
            output = out_path.read_bytes()
        finally:
            _safe_unlink(in_path)
            _safe_unlink(out_path)

        if not output:
            raise UnsupportedFormatError("Format gambar tidak didukung: hasil konversi kosong")
        return output


async def _run_ffmpeg(args: list[str]) -> None:
    try:
        process = await asyncio.create_subprocess_exec(
            "ffmpeg",
            "-y",
            "-loglevel",
            "error",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise RuntimeError("ffmpeg tidak ditemukan di PATH") from exc

    _, stderr = await process.communicate()
    if process.returncode != 0:
        error_text = stderr.decode("utf-8", errors="ignore").strip()
        raise UnsupportedFormatError(f"Format gambar tidak didukung: {error_text}")


def _safe_unlink(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        return
