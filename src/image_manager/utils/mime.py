from collections.abc import Mapping

from image_manager.utils.constants import (
    DEFAULT_CONTENT_TYPE,
    FORMAT_ENCODINGS,
    MIME_TYPE_EXTENSION_MAP,
)

MAGIC_BYTES: Mapping[bytes, str] = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
}


def detect_mime_type(file_data: bytes) -> str:
    for signature, mime in MAGIC_BYTES.items():
        if file_data.startswith(signature):
            return mime

    # RIFF containers are only images when tagged WEBP
    if file_data[:4] == b"RIFF" and file_data[8:12] == b"WEBP":
        return "image/webp"

    raise ValueError("Unsupported or unknown file type")


def extension_for_mime(mime_type: str) -> str:
    """Return the preferred file extension for a MIME type."""
    extensions = MIME_TYPE_EXTENSION_MAP.get(mime_type)
    if not extensions:
        raise ValueError(f"No extension known for '{mime_type}'")
    return extensions[0]


def content_type_for_format(image_format: str | None) -> str:
    """Map an output/Pillow format name (e.g. 'webp', 'JPEG') to a MIME type."""
    if not image_format:
        return DEFAULT_CONTENT_TYPE
    encoding = FORMAT_ENCODINGS.get(image_format.lower())
    return encoding[1] if encoding else DEFAULT_CONTENT_TYPE
