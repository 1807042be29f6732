"""Pillow implementation of the image codec."""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from image_manager.models.errors import ValidationError
from image_manager.utils.constants import FORMAT_ENCODINGS

ORIGINAL_FORMAT = "original"

# Formats that cannot store an alpha channel
_OPAQUE_FORMATS = frozenset({"JPEG"})


class PillowImage:
    """Immutable wrapper around a Pillow image; every transform returns a copy."""

    def __init__(self, image: Image.Image, source_format: str | None) -> None:
        self._image = image
        self._source_format = source_format

    @property
    def format(self) -> str | None:
        return self._source_format

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def cover(self, width: int, height: int) -> "PillowImage":
        fitted = ImageOps.fit(self._image, (width, height), Image.Resampling.LANCZOS)
        return PillowImage(fitted, self._source_format)

    def scale(self, width: int, height: int) -> "PillowImage":
        new_size = self.calculate_scaled_size(self._image.width, self._image.height, width, height)
        scaled = self._image.resize(new_size, Image.Resampling.LANCZOS)
        return PillowImage(scaled, self._source_format)

    def resize(self, width: int, height: int) -> "PillowImage":
        resized = self._image.resize((width, height), Image.Resampling.LANCZOS)
        return PillowImage(resized, self._source_format)

    def encode(self, image_format: str, quality: int) -> bytes:
        pillow_format = self._pillow_format(image_format)
        image = self._image

        if pillow_format in _OPAQUE_FORMATS and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        elif pillow_format == "WEBP" and image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

        buffer = io.BytesIO()
        if pillow_format == "PNG":
            image.save(buffer, format=pillow_format, optimize=True)
        else:
            image.save(buffer, format=pillow_format, quality=quality)
        return buffer.getvalue()

    def _pillow_format(self, image_format: str) -> str:
        if image_format.lower() == ORIGINAL_FORMAT:
            if not self._source_format:
                raise ValidationError(
                    message="Unable to determine the source image format",
                )
            return self._source_format.upper()

        encoding = FORMAT_ENCODINGS.get(image_format.lower())
        if encoding is None:
            raise ValidationError(
                message=f"Unsupported output format '{image_format}'",
                details={"format": image_format},
            )
        return encoding[0]

    @staticmethod
    def calculate_scaled_size(
        original_width: int,
        original_height: int,
        width: int,
        height: int,
    ) -> tuple[int, int]:
        """Largest size with the original aspect ratio that fits in width x height."""
        ratio = min(width / original_width, height / original_height)
        return (
            max(1, round(original_width * ratio)),
            max(1, round(original_height * ratio)),
        )


class PillowImageCodec:
    """Decodes uploads with Pillow, applying EXIF orientation."""

    def decode(self, data: bytes) -> PillowImage:
        try:
            image = Image.open(io.BytesIO(data))
            source_format = image.format
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ValidationError(
                message="Invalid image data",
                details={"size": len(data)},
            ) from exc

        transposed = ImageOps.exif_transpose(image)
        return PillowImage(transposed if transposed is not None else image, source_format)
