"""Read-only lookup of configured variant sizes."""

from image_manager.models.config import (
    CategoryConfig,
    ImageManagerConfig,
    OutputFormat,
    SizeDefinition,
)
from image_manager.models.errors import ConfigurationError
from image_manager.utils.constants import ERROR_CODE_UNKNOWN_IMAGE_TYPE
from image_manager.utils.naming import normalize_owner_type


class SizeConfig:
    """Answers which sizes and visibility apply to an owner type and category."""

    def __init__(self, config: ImageManagerConfig) -> None:
        self._config = config

    @property
    def output_format(self) -> OutputFormat:
        return self._config.format

    @property
    def quality(self) -> int:
        return self._config.quality

    def sizes_for(self, owner_type: str, category: str) -> dict[str, SizeDefinition]:
        """Return label -> SizeDefinition in configuration order.

        Raises:
            ConfigurationError: If the owner type / category pair is not declared
        """
        return dict(self._category(owner_type, category).sizes)

    def is_public(self, owner_type: str, category: str) -> bool:
        return self._category(owner_type, category).public

    def is_private(self, owner_type: str, category: str) -> bool:
        return not self.is_public(owner_type, category)

    def _category(self, owner_type: str, category: str) -> CategoryConfig:
        model_key = normalize_owner_type(owner_type)
        owner_config = self._config.models.get(model_key)
        category_config = owner_config.types.get(category) if owner_config else None

        if category_config is None:
            raise ConfigurationError(
                message="Invalid model or image type",
                error_code=ERROR_CODE_UNKNOWN_IMAGE_TYPE,
                details={"owner_type": model_key, "category": category},
            )
        return category_config
