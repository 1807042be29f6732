"""Mapping of image coordinates to storage-relative paths."""

from image_manager.utils.naming import normalize_owner_type


class PathResolver:
    """Builds `{base_path}/{owner_type}/{category}/{size_label}/{name}` paths.

    Pure and deterministic. `owner_type` is reduced to the snake_case form of
    its bare type name, so 'app.models.BlogPost' and 'BlogPost' share paths.
    """

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path.strip().strip("/")

    def resolve_path(self, owner_type: str, category: str, size_label: str, name: str) -> str:
        segments = [
            normalize_owner_type(owner_type),
            category,
            size_label,
            name,
        ]
        if self.base_path:
            segments.insert(0, self.base_path)
        return "/".join(segments)
