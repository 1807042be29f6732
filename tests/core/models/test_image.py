"""
Unit tests for image_manager.models.image
"""

from dataclasses import dataclass

import pytest
from pydantic import ValidationError

from image_manager.models.image import ImageOwner, ImageRecord, OwnerRef, as_owner_ref


@dataclass
class BlogPost:
    id: int

    @property
    def owner_ref(self) -> OwnerRef:
        return OwnerRef(owner_type="BlogPost", owner_id=self.id)


class TestOwnerRef:
    def test_int_owner_id_is_coerced(self) -> None:
        owner = OwnerRef(owner_type="app.models.User", owner_id=1)

        assert owner.owner_id == "1"

    def test_normalized_type_and_key(self) -> None:
        owner = OwnerRef(owner_type="App\\Models\\BlogPost", owner_id="7")

        assert owner.normalized_type == "blog_post"
        assert owner.key == "blog_post#7"

    def test_qualified_and_bare_types_share_key(self) -> None:
        qualified = OwnerRef(owner_type="app.models.User", owner_id=1)
        bare = OwnerRef(owner_type="User", owner_id=1)

        assert qualified.key == bare.key

    def test_empty_owner_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OwnerRef(owner_type="...", owner_id=1)

    def test_is_frozen(self) -> None:
        owner = OwnerRef(owner_type="User", owner_id=1)

        with pytest.raises(ValidationError):
            owner.owner_id = "2"  # type: ignore[misc]

    def test_for_entity(self) -> None:
        owner = OwnerRef.for_entity(BlogPost(id=3))

        assert owner.owner_type.endswith("BlogPost")
        assert owner.owner_id == "3"
        assert owner.normalized_type == "blog_post"


class TestAsOwnerRef:
    def test_owner_ref_passthrough(self) -> None:
        owner = OwnerRef(owner_type="User", owner_id=1)

        assert as_owner_ref(owner) is owner

    def test_image_owner_protocol(self) -> None:
        post = BlogPost(id=5)

        assert isinstance(post, ImageOwner)
        assert as_owner_ref(post).key == "blog_post#5"

    def test_rejects_other_objects(self) -> None:
        with pytest.raises(TypeError):
            as_owner_ref("user#1")  # type: ignore[arg-type]


class TestImageRecord:
    def test_defaults_and_owner(self) -> None:
        record = ImageRecord(
            image_id="img_1",
            name="abc.webp",
            owner_type="User",
            owner_id=9,
            created_at="2024-01-01T00:00:00.000000+00:00",
        )

        assert record.category == "default"
        assert record.updated_at is None
        assert record.owner == OwnerRef(owner_type="User", owner_id="9")

    def test_extra_store_attributes_ignored(self) -> None:
        record = ImageRecord.model_validate(
            {
                "image_id": "img_1",
                "name": "abc.webp",
                "category": "avatar",
                "owner_type": "User",
                "owner_id": "1",
                "created_at": "2024-01-01T00:00:00.000000+00:00",
                "owner_key": "user#1",
                "sort_key": "2024-01-01T00:00:00.000000+00:00#img_1",
            }
        )

        assert record.category == "avatar"
