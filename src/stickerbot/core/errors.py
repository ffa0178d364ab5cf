"""Kegagalan bertipe pada jalur sticker.

Setiap operasi yang gagal melempar salah satu subclass ``MediaFailure``;
Dispatcher memetakan tipe tersebut ke pesan balasan.
"""


class MediaFailure(Exception):
    """Dasar semua kegagalan media yang dikenali."""


class DownloadTimeoutError(MediaFailure):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Timeout download media ({timeout:g} detik)")
        self.timeout = timeout


class EmptyMediaError(MediaFailure):
    """Transport tidak mengembalikan media atau datanya kosong."""


class InvalidMediaError(MediaFailure):
    """Data media bukan base64 yang valid."""


class EmptyBufferError(MediaFailure):
    """Hasil decode media berukuran nol byte."""


class OversizeMediaError(MediaFailure):
    def __init__(self, size_bytes: float) -> None:
        self.size_bytes = size_bytes
        super().__init__(
            f"Ukuran gambar terlalu besar ({self.size_mb:.2f}MB). Maksimal 8MB."
        )

    @property
    def size_mb(self) -> float:
        return self.size_bytes / 1024 / 1024


class UnsupportedFormatError(MediaFailure):
    """Format gambar tidak bisa dikonversi menjadi sticker."""
