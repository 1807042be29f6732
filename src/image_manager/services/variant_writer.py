"""Encoding and storage of the variants of one image."""

from aws_lambda_powertools import Logger

from image_manager.models.config import FitMode, OutputFormat, SizeDefinition
from image_manager.models.errors import ImageServiceError, StorageWriteError, ValidationError
from image_manager.repositories.blob_store import BlobStore
from image_manager.repositories.image_codec import CodecImage, ImageCodec
from image_manager.services.path_resolver import PathResolver
from image_manager.services.size_config import SizeConfig
from image_manager.utils.constants import (
    ERROR_CODE_IMAGE_PROCESSING_FAILED,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    ORIGINAL_SIZE_LABEL,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)
from image_manager.utils.mime import (
    content_type_for_format,
    detect_mime_type,
    extension_for_mime,
)

logger = Logger(UTC=True)


class VariantWriter:
    """Writes the 'original' encoding plus one encoding per configured size."""

    def __init__(
        self,
        *,
        codec: ImageCodec,
        blob_store: BlobStore,
        paths: PathResolver,
        sizes: SizeConfig,
    ) -> None:
        self.codec = codec
        self.blob_store = blob_store
        self.paths = paths
        self.sizes = sizes

    def extension_for(self, source: bytes) -> str:
        """Return the file extension new names should carry for this source.

        Raises:
            ValidationError: If the format is 'original' and the source type
                             cannot be detected
        """
        output_format = self.sizes.output_format
        if output_format != OutputFormat.ORIGINAL:
            return output_format.value

        mime_type = self._source_mime_type(source)
        try:
            return extension_for_mime(mime_type)
        except ValueError as exc:
            raise ValidationError(
                message="Unsupported image type",
                error_code=ERROR_CODE_UNSUPPORTED_MIME_TYPE,
                details={"mime_type": mime_type},
            ) from exc

    def content_type_for(self, source: bytes) -> str:
        """Return the content type the variants of this source are stored with.

        With format 'original' this is the type detected from the source
        bytes, the same detection that picks the name extension.
        """
        output_format = self.sizes.output_format
        if output_format != OutputFormat.ORIGINAL:
            return content_type_for_format(output_format.value)
        return self._source_mime_type(source)

    def write(self, source: bytes, owner_type: str, category: str, name: str) -> list[str]:
        """Encode and store every variant of `source` under `name`.

        The source is decoded once and each size is derived from the decoded
        image, never from another variant. Writes are sequential and stop at
        the first failure; rolling back what was written is the caller's job.

        Args:
            source: Raw uploaded image bytes
            owner_type: Type discriminator of the owner
            category: Image category
            name: Generated file name shared by all variants

        Returns:
            Storage paths written, 'original' first

        Raises:
            ConfigurationError: If the owner type / category is not configured
            ValidationError: If the source cannot be decoded (nothing written)
            StorageWriteError: If a write fails; `details` hold `name`, the
                               failing `path` and the paths already `written`
        """
        sizes = self.sizes.sizes_for(owner_type, category)
        visibility = (
            VISIBILITY_PUBLIC if self.sizes.is_public(owner_type, category) else VISIBILITY_PRIVATE
        )
        image = self.codec.decode(source)

        output_format = self.sizes.output_format.value
        quality = self.sizes.quality
        content_type = self.content_type_for(source)

        logger.debug(
            "Writing variants",
            extra={"name": name, "category": category, "sizes": list(sizes), "visibility": visibility},
        )

        written: list[str] = []
        for label in [ORIGINAL_SIZE_LABEL, *sizes]:
            path = self.paths.resolve_path(owner_type, category, label, name)
            data = self._render(image, sizes.get(label), output_format, quality, name=name, label=label)

            try:
                self.blob_store.put(
                    path,
                    data,
                    visibility=visibility,
                    content_type=content_type,
                )
            except StorageWriteError as exc:
                logger.error("Variant write failed", extra={"name": name, "path": path})
                raise StorageWriteError(
                    message=exc.message,
                    error_code=exc.error_code,
                    details={"name": name, "path": path, "written": list(written)},
                ) from exc
            except Exception as exc:
                logger.exception("Unexpected error writing variant", extra={"name": name, "path": path})
                raise StorageWriteError(
                    message="Unable to store image variant",
                    details={"name": name, "path": path, "written": list(written)},
                ) from exc

            written.append(path)

        logger.info("Variants written", extra={"name": name, "count": len(written)})
        return written

    @staticmethod
    def _source_mime_type(source: bytes) -> str:
        try:
            return detect_mime_type(source)
        except ValueError as exc:
            raise ValidationError(
                message="Unsupported image type",
                error_code=ERROR_CODE_UNSUPPORTED_MIME_TYPE,
            ) from exc

    def _render(
        self,
        image: CodecImage,
        size: SizeDefinition | None,
        output_format: str,
        quality: int,
        *,
        name: str,
        label: str,
    ) -> bytes:
        """Derive and encode one variant; codec failures become ValidationError."""
        try:
            variant = image if size is None else self._derive(image, size)
            return variant.encode(output_format, quality)

        except ImageServiceError:
            raise

        except Exception as exc:
            logger.exception("Variant encoding failed", extra={"name": name, "size": label})
            raise ValidationError(
                message="Unable to process image",
                error_code=ERROR_CODE_IMAGE_PROCESSING_FAILED,
                details={"name": name, "size": label},
            ) from exc

    @staticmethod
    def _derive(image: CodecImage, size: SizeDefinition) -> CodecImage:
        if size.mode == FitMode.SCALE:
            return image.scale(size.width, size.height)
        if size.mode == FitMode.RESIZE:
            return image.resize(size.width, size.height)
        return image.cover(size.width, size.height)
