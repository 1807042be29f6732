"""Image Manager Package."""

__version__ = "1.0.0"
__description__ = (
    "Image variant lifecycle management with pluggable codec, blob and metadata stores"
)

__all__ = ["infrastructure", "models", "repositories", "services", "utils"]
