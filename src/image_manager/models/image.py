"""Shared image record and owner models."""

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from image_manager.utils.constants import DEFAULT_CATEGORY
from image_manager.utils.naming import normalize_owner_type


def _coerce_identifier(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


class OwnerRef(BaseModel):
    """Reference to the entity an image belongs to."""

    model_config = ConfigDict(frozen=True)

    owner_type: StrictStr = Field(..., min_length=1, description="Type discriminator of the owner")
    owner_id: StrictStr = Field(..., min_length=1, description="Identifier of the owner")

    @field_validator("owner_id", mode="before")
    @classmethod
    def coerce_owner_id(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @field_validator("owner_type")
    @classmethod
    def validate_owner_type(cls, value: str) -> str:
        normalize_owner_type(value)
        return value

    @property
    def normalized_type(self) -> str:
        return normalize_owner_type(self.owner_type)

    @property
    def key(self) -> str:
        """Store-level owner key, stable across qualified/unqualified type tags."""
        return f"{self.normalized_type}#{self.owner_id}"

    @classmethod
    def for_entity(cls, entity: Any, *, id_attr: str = "id") -> "OwnerRef":
        """Build a reference from any object with an identifier attribute."""
        entity_type = type(entity)
        return cls(
            owner_type=f"{entity_type.__module__}.{entity_type.__qualname__}",
            owner_id=getattr(entity, id_attr),
        )


@runtime_checkable
class ImageOwner(Protocol):
    """Capability implemented by entities that own images."""

    @property
    def owner_ref(self) -> OwnerRef: ...


OwnerLike = OwnerRef | ImageOwner


def as_owner_ref(owner: OwnerLike) -> OwnerRef:
    """Resolve an owner argument into an OwnerRef."""
    if isinstance(owner, OwnerRef):
        return owner
    if isinstance(owner, ImageOwner):
        return owner.owner_ref
    raise TypeError(f"Expected OwnerRef or ImageOwner, got {type(owner).__name__}")


class ImageRecord(BaseModel):
    """Persisted metadata for one logical image."""

    image_id: StrictStr = Field(..., description="Store-assigned image identifier")
    name: StrictStr = Field(..., description="Generated file name shared by all variants")
    category: StrictStr = Field(DEFAULT_CATEGORY, description="Caller-supplied image category")
    owner_type: StrictStr = Field(..., description="Type discriminator of the owner")
    owner_id: StrictStr = Field(..., description="Identifier of the owner")

    created_at: StrictStr = Field(..., description="ISO-8601 creation timestamp (UTC)")
    updated_at: StrictStr | None = Field(None, description="ISO-8601 last update timestamp (UTC)")

    @field_validator("owner_id", mode="before")
    @classmethod
    def coerce_owner_id(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @property
    def owner(self) -> OwnerRef:
        return OwnerRef(owner_type=self.owner_type, owner_id=self.owner_id)


class RecordPage(BaseModel):
    """One keyset page of image records."""

    records: list[ImageRecord] = Field(default_factory=list)
    next_cursor: StrictStr | None = Field(
        None,
        description="Opaque cursor for the next page, None on the last page",
    )
