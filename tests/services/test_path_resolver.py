import pytest

from image_manager.services.path_resolver import PathResolver


class TestPathResolver:
    def test_layout(self) -> None:
        resolver = PathResolver("uploads")

        path = resolver.resolve_path("app.models.User", "avatar", "thumbnail", "abc.webp")

        assert path == "uploads/user/avatar/thumbnail/abc.webp"

    def test_owner_type_normalization(self) -> None:
        resolver = PathResolver("uploads")

        assert (
            resolver.resolve_path("App\\Models\\BlogPost", "cover", "original", "x.jpg")
            == "uploads/blog_post/cover/original/x.jpg"
        )

    def test_base_path_slashes_and_empty_base(self) -> None:
        assert PathResolver("/media/").resolve_path("User", "a", "original", "n") == "media/user/a/original/n"
        assert PathResolver("").resolve_path("User", "a", "original", "n") == "user/a/original/n"

    def test_deterministic_and_injective_in_name(self) -> None:
        resolver = PathResolver("uploads")
        names = [f"{i:032x}.webp" for i in range(50)]

        first = [resolver.resolve_path("User", "avatar", "thumbnail", n) for n in names]
        second = [resolver.resolve_path("User", "avatar", "thumbnail", n) for n in names]

        assert first == second
        assert len(set(first)) == len(names)

    def test_distinct_sizes_do_not_collide(self) -> None:
        resolver = PathResolver("uploads")

        assert resolver.resolve_path("User", "avatar", "thumbnail", "a") != resolver.resolve_path(
            "User", "avatar", "medium", "a"
        )

    def test_empty_owner_type(self) -> None:
        with pytest.raises(ValueError):
            PathResolver("uploads").resolve_path("", "avatar", "original", "a")
