"""
Unit tests for image_manager.models.config
"""

import pytest
from pydantic import ValidationError

from image_manager.models.config import (
    CategoryConfig,
    FitMode,
    ImageManagerConfig,
    OutputFormat,
    SizeDefinition,
)


class TestImageManagerConfigDefaults:
    def test_defaults(self) -> None:
        config = ImageManagerConfig()

        assert config.storage_disk == "public"
        assert config.base_path == "uploads"
        assert config.format == OutputFormat.WEBP
        assert config.quality == 90
        assert config.models == {}
        assert set(config.disks) == {"local", "public", "s3"}

    def test_public_disk_is_local_with_url(self) -> None:
        disk = ImageManagerConfig().disks["public"]

        assert disk.driver == "local"
        assert disk.url == "/storage"


class TestImageManagerConfigValidation:
    @pytest.mark.parametrize("quality", [0, 101])
    def test_quality_out_of_range(self, quality: int) -> None:
        with pytest.raises(ValidationError):
            ImageManagerConfig(quality=quality)

    def test_unknown_format(self) -> None:
        with pytest.raises(ValidationError):
            ImageManagerConfig(format="bmp")

    def test_unknown_storage_disk(self) -> None:
        with pytest.raises(ValidationError):
            ImageManagerConfig(storage_disk="ftp")

    def test_base_path_slashes_stripped(self) -> None:
        assert ImageManagerConfig(base_path="/media/images/").base_path == "media/images"

    def test_model_keys_are_normalized(self) -> None:
        config = ImageManagerConfig(
            models={"App\\Models\\BlogPost": {"types": {"cover": {"sizes": {}}}}}
        )

        assert list(config.models) == ["blog_post"]

    def test_invalid_category_name(self) -> None:
        with pytest.raises(ValidationError):
            ImageManagerConfig(models={"User": {"types": {"bad/name": {"sizes": {}}}}})


class TestCategoryConfig:
    def test_sizes_get_labels_and_keep_order(self) -> None:
        category = CategoryConfig(
            sizes={
                "thumbnail": {"width": 100, "height": 100},
                "medium": {"width": 300, "height": 200, "mode": "scale"},
            }
        )

        assert list(category.sizes) == ["thumbnail", "medium"]
        assert category.sizes["thumbnail"].label == "thumbnail"
        assert category.sizes["thumbnail"].mode == FitMode.COVER
        assert category.sizes["medium"].mode == FitMode.SCALE
        assert category.public is False

    def test_size_definition_instances_are_relabelled(self) -> None:
        category = CategoryConfig(sizes={"small": SizeDefinition(width=10, height=10)})

        assert category.sizes["small"].label == "small"

    def test_original_label_is_reserved(self) -> None:
        with pytest.raises(ValidationError):
            CategoryConfig(sizes={"original": {"width": 10, "height": 10}})

    def test_invalid_label_characters(self) -> None:
        with pytest.raises(ValidationError):
            CategoryConfig(sizes={"../x": {"width": 10, "height": 10}})

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1)])
    def test_non_positive_dimensions(self, width: int, height: int) -> None:
        with pytest.raises(ValidationError):
            CategoryConfig(sizes={"small": {"width": width, "height": height}})

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValidationError):
            CategoryConfig(sizes={"small": {"width": 10, "height": 10, "mode": "stretch"}})


class TestFromEnv:
    def test_reads_environment(self) -> None:
        config = ImageManagerConfig.from_env(
            environ={
                "IMAGE_MANAGER_STORAGE_DISK": "s3",
                "IMAGE_MANAGER_BASE_PATH": "media",
                "IMAGE_MANAGER_FORMAT": "JPEG",
                "IMAGE_MANAGER_QUALITY": "75",
            }
        )

        assert config.storage_disk == "s3"
        assert config.base_path == "media"
        assert config.format == OutputFormat.JPEG
        assert config.quality == 75

    def test_empty_environment_uses_defaults(self) -> None:
        config = ImageManagerConfig.from_env(environ={})

        assert config.storage_disk == "public"
        assert config.format == OutputFormat.WEBP

    def test_overrides_win(self) -> None:
        config = ImageManagerConfig.from_env(
            environ={"IMAGE_MANAGER_QUALITY": "75"},
            quality=50,
            models={"User": {"types": {"avatar": {"sizes": {}}}}},
        )

        assert config.quality == 50
        assert "user" in config.models
