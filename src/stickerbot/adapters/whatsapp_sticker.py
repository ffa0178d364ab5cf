"""Encode sticker WhatsApp: WebP dengan metadata pack di chunk EXIF."""

import io
import json
import struct
import uuid
from collections.abc import Iterator

from PIL import Image, TiffImagePlugin, TiffTags

# Tag EXIF 0x5741 ("AW") yang dibaca WhatsApp sebagai JSON sticker pack.
STICKER_PACK_TAG = 0x5741
_TIFF_LITTLE_ENDIAN_HEAD = b"II*\x00\x08\x00\x00\x00"

_VP8X_FLAG_ALPHA = 0x10
_VP8X_FLAG_EXIF = 0x08


class InvalidWebPError(ValueError):
    """Container RIFF/WebP rusak atau terpotong."""


def build_sticker_exif(author: str, name: str, pack_id: str | None = None) -> bytes:
    payload = json.dumps(
        {
            "sticker-pack-id": pack_id or uuid.uuid4().hex,
            "sticker-pack-name": name,
            "sticker-pack-publisher": author,
            "emojis": [""],
        },
        ensure_ascii=False,
    ).encode("utf-8")

    ifd = TiffImagePlugin.ImageFileDirectory_v2(ifh=_TIFF_LITTLE_ENDIAN_HEAD)
    ifd.tagtype[STICKER_PACK_TAG] = TiffTags.UNDEFINED
    ifd[STICKER_PACK_TAG] = payload
    return _TIFF_LITTLE_ENDIAN_HEAD + ifd.tobytes(offset=len(_TIFF_LITTLE_ENDIAN_HEAD))


def read_sticker_metadata(exif: bytes) -> dict[str, object]:
    parsed = Image.Exif()
    parsed.load(exif)
    payload = parsed[STICKER_PACK_TAG]
    return json.loads(bytes(payload).decode("utf-8"))


def encode_whatsapp_sticker(content: bytes, author: str, name: str) -> bytes:
    """
    Beri label pack pada sticker. WebP (statis maupun animasi) hanya diganti
    chunk EXIF-nya sehingga frame, ukuran dan durasi tetap sama persis;
    gambar lain (PNG hasil normalisasi) di-encode ke WebP lossless.
    """
    exif = build_sticker_exif(author=author, name=name)
    if _is_webp(content):
        return relabel_webp(content, exif)

    buffer = io.BytesIO()
    with Image.open(io.BytesIO(content)) as image:
        image.convert("RGBA").save(buffer, format="WEBP", lossless=True, exif=exif)
    return buffer.getvalue()


def relabel_webp(content: bytes, exif: bytes) -> bytes:
    chunks = list(_iter_chunks(content))
    if not chunks:
        raise InvalidWebPError("WebP tanpa chunk gambar")

    if chunks[0][0] == b"VP8X":
        header = bytearray(chunks[0][1])
        header[0] |= _VP8X_FLAG_EXIF
        chunks[0] = (b"VP8X", bytes(header))
    else:
        chunks.insert(0, (b"VP8X", _vp8x_for_simple(chunks[0])))

    chunks = [chunk for chunk in chunks if chunk[0] != b"EXIF"]
    # EXIF harus berada setelah data gambar dan sebelum XMP.
    position = next(
        (index for index, (fourcc, _) in enumerate(chunks) if fourcc == b"XMP "),
        len(chunks),
    )
    chunks.insert(position, (b"EXIF", exif))

    body = b"WEBP" + b"".join(_pack_chunk(fourcc, payload) for fourcc, payload in chunks)
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _is_webp(content: bytes) -> bool:
    return len(content) >= 12 and content[:4] == b"RIFF" and content[8:12] == b"WEBP"


def _iter_chunks(content: bytes) -> Iterator[tuple[bytes, bytes]]:
    if not _is_webp(content):
        raise InvalidWebPError("Bukan container RIFF/WebP")
    (riff_size,) = struct.unpack_from("<I", content, 4)
    end = min(len(content), 8 + riff_size)
    offset = 12
    while offset + 8 <= end:
        fourcc = content[offset : offset + 4]
        (size,) = struct.unpack_from("<I", content, offset + 4)
        payload = content[offset + 8 : offset + 8 + size]
        if len(payload) != size:
            raise InvalidWebPError(f"Chunk {fourcc!r} terpotong")
        yield fourcc, payload
        offset += 8 + size + (size & 1)


def _pack_chunk(fourcc: bytes, payload: bytes) -> bytes:
    padding = b"\x00" if len(payload) & 1 else b""
    return fourcc + struct.pack("<I", len(payload)) + payload + padding


def _vp8x_for_simple(chunk: tuple[bytes, bytes]) -> bytes:
    fourcc, payload = chunk
    flags = _VP8X_FLAG_EXIF
    if fourcc == b"VP8L" and len(payload) >= 5:
        (bits,) = struct.unpack_from("<I", payload, 1)
        width = (bits & 0x3FFF) + 1
        height = ((bits >> 14) & 0x3FFF) + 1
        if (bits >> 28) & 1:
            flags |= _VP8X_FLAG_ALPHA
    elif fourcc == b"VP8 " and len(payload) >= 10:
        width = struct.unpack_from("<H", payload, 6)[0] & 0x3FFF
        height = struct.unpack_from("<H", payload, 8)[0] & 0x3FFF
    else:
        raise InvalidWebPError(f"Chunk gambar tidak dikenal: {fourcc!r}")
    return (
        bytes([flags, 0, 0, 0])
        + (width - 1).to_bytes(3, "little")
        + (height - 1).to_bytes(3, "little")
    )
