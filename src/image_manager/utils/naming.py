"""Helpers for turning owner type tags into path segments."""

import re

_QUALIFIER_SEPARATORS = re.compile(r"[.\\:/]")
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD = re.compile(r"[\s\-]+")


def class_basename(type_tag: str) -> str:
    """Strip module or namespace qualification from a type tag.

    >>> class_basename("app.models.BlogPost")
    'BlogPost'
    >>> class_basename("App\\\\Models\\\\User")
    'User'
    """
    parts = [part for part in _QUALIFIER_SEPARATORS.split(type_tag.strip()) if part]
    return parts[-1] if parts else ""


def snake_case(value: str) -> str:
    """Convert a CamelCase or spaced name into lower snake_case.

    >>> snake_case("BlogPost")
    'blog_post'
    >>> snake_case("HTTPRequest")
    'http_request'
    """
    value = _NON_WORD.sub("_", value.strip())
    value = _WORD_BOUNDARY.sub("_", value)
    return re.sub(r"_+", "_", value).strip("_").lower()


def normalize_owner_type(type_tag: str) -> str:
    """Return the lowercase, word-separated form of a bare type name."""
    normalized = snake_case(class_basename(type_tag))
    if not normalized:
        raise ValueError(f"Owner type '{type_tag}' has no usable type name")
    return normalized
