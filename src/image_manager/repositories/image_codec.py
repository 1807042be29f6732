"""Contract for the image decode/resize/encode engine."""

from typing import Protocol


class CodecImage(Protocol):
    """A decoded image. Transformations return new images."""

    @property
    def format(self) -> str | None:
        """Detected source format (e.g. 'JPEG'), None if unknown."""
        ...

    @property
    def size(self) -> tuple[int, int]: ...

    def cover(self, width: int, height: int) -> "CodecImage":
        """Resize and crop to exactly width x height."""
        ...

    def scale(self, width: int, height: int) -> "CodecImage":
        """Resize proportionally to fit inside width x height."""
        ...

    def resize(self, width: int, height: int) -> "CodecImage":
        """Resize to exactly width x height, ignoring the aspect ratio."""
        ...

    def encode(self, image_format: str, quality: int) -> bytes:
        """Encode to bytes. 'original' keeps the source format."""
        ...


class ImageCodec(Protocol):
    def decode(self, data: bytes) -> CodecImage:
        """Decode raw bytes.

        Raises:
            ValidationError: If the bytes are not a decodable image
        """
        ...
