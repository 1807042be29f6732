"""Configuration models for image sizes, formats and storage disks."""

import os
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StrictBool,
    field_validator,
    model_validator,
)

from image_manager.utils.constants import (
    DEFAULT_BASE_PATH,
    DEFAULT_FORMAT,
    DEFAULT_LOCAL_ROOT,
    DEFAULT_PUBLIC_ROOT,
    DEFAULT_PUBLIC_URL,
    DEFAULT_QUALITY,
    DEFAULT_STORAGE_DISK,
    ENV_BASE_PATH,
    ENV_FORMAT,
    ENV_QUALITY,
    ENV_STORAGE_DISK,
    LABEL_PATTERN,
    MAX_QUALITY,
    MIN_QUALITY,
    ORIGINAL_SIZE_LABEL,
)
from image_manager.utils.naming import normalize_owner_type


class FitMode(str, Enum):
    """How a variant is derived from the source image."""

    COVER = "cover"  # resize and crop to exact dimensions
    SCALE = "scale"  # proportional resize bounded by the dimensions
    RESIZE = "resize"  # exact dimensions, may distort


class OutputFormat(str, Enum):
    WEBP = "webp"
    JPEG = "jpeg"
    PNG = "png"
    ORIGINAL = "original"


class SizeDefinition(BaseModel):
    """A named variant size."""

    model_config = ConfigDict(frozen=True)

    label: str = Field("", description="Size label, filled from the configuration key")
    width: PositiveInt
    height: PositiveInt
    mode: FitMode = FitMode.COVER


class CategoryConfig(BaseModel):
    """Sizes and visibility of one image category."""

    sizes: dict[str, SizeDefinition] = Field(default_factory=dict)
    public: StrictBool = False

    @field_validator("sizes", mode="before")
    @classmethod
    def label_sizes(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value

        labelled: dict[str, Any] = {}
        for label, definition in value.items():
            if label == ORIGINAL_SIZE_LABEL:
                raise ValueError(f"'{ORIGINAL_SIZE_LABEL}' is reserved and cannot be a size label")
            _check_label(label, "size label")

            if isinstance(definition, SizeDefinition):
                labelled[label] = definition.model_copy(update={"label": label})
            elif isinstance(definition, Mapping):
                labelled[label] = {**definition, "label": label}
            else:
                labelled[label] = definition
        return labelled


class OwnerTypeConfig(BaseModel):
    """Image categories declared for one owner type."""

    types: dict[str, CategoryConfig] = Field(default_factory=dict)

    @field_validator("types")
    @classmethod
    def validate_categories(cls, value: dict[str, CategoryConfig]) -> dict[str, CategoryConfig]:
        for category in value:
            _check_label(category, "category")
        return value


class DiskConfig(BaseModel):
    """A named storage backend."""

    driver: Literal["local", "s3"] = "local"

    # local driver
    root: str = DEFAULT_LOCAL_ROOT
    url: str | None = None

    # s3 driver
    bucket: str | None = None
    region: str | None = None
    endpoint_url: str | None = None
    acl_enabled: StrictBool = True


def _default_disks() -> dict[str, DiskConfig]:
    return {
        "local": DiskConfig(driver="local", root=DEFAULT_LOCAL_ROOT),
        "public": DiskConfig(driver="local", root=DEFAULT_PUBLIC_ROOT, url=DEFAULT_PUBLIC_URL),
        "s3": DiskConfig(driver="s3"),
    }


class ImageManagerConfig(BaseModel):
    """Top-level image manager configuration."""

    storage_disk: str = DEFAULT_STORAGE_DISK
    base_path: str = DEFAULT_BASE_PATH
    format: OutputFormat = OutputFormat(DEFAULT_FORMAT)
    quality: int = Field(DEFAULT_QUALITY, ge=MIN_QUALITY, le=MAX_QUALITY)
    models: dict[str, OwnerTypeConfig] = Field(default_factory=dict)
    disks: dict[str, DiskConfig] = Field(default_factory=_default_disks)

    @field_validator("base_path")
    @classmethod
    def strip_base_path(cls, value: str) -> str:
        return value.strip().strip("/")

    @field_validator("models", mode="before")
    @classmethod
    def normalize_model_keys(cls, value: Any) -> Any:
        """Key owner types by their normalized name ('App\\Models\\User' -> 'user')."""
        if not isinstance(value, Mapping):
            return value
        return {normalize_owner_type(str(key)): config for key, config in value.items()}

    @model_validator(mode="after")
    def check_storage_disk(self) -> "ImageManagerConfig":
        if self.storage_disk not in self.disks:
            raise ValueError(
                f"storage_disk '{self.storage_disk}' is not one of: {', '.join(sorted(self.disks))}"
            )
        return self

    @classmethod
    def from_env(
        cls,
        *,
        models: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "ImageManagerConfig":
        """Build configuration from IMAGE_MANAGER_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ

        data: dict[str, Any] = {}
        if env.get(ENV_STORAGE_DISK):
            data["storage_disk"] = env[ENV_STORAGE_DISK]
        if env.get(ENV_BASE_PATH) is not None:
            data["base_path"] = env[ENV_BASE_PATH]
        if env.get(ENV_FORMAT):
            data["format"] = env[ENV_FORMAT].strip().lower()
        if env.get(ENV_QUALITY):
            data["quality"] = int(env[ENV_QUALITY])
        if models is not None:
            data["models"] = models

        data.update(overrides)
        return cls.model_validate(data)


def _check_label(value: str, kind: str) -> None:
    if not re.match(LABEL_PATTERN, value):
        raise ValueError(f"Invalid {kind} '{value}': only letters, digits, '_' and '-' are allowed")
