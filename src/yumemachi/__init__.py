"""Yumemachi Canvas - kiosk service for AI-edited plaza photos."""

__version__ = "0.1.0"

from yumemachi.core.config import YumemachiConfig, config
from yumemachi.core.model_adapters import ImageAdapterBase, model_registry

# Import adapters to ensure they're registered
from yumemachi.core.adapters import FalInpaintingAdapter, OpenAIImageAdapter  # noqa: F401

__all__ = [
    "ImageAdapterBase",
    "model_registry",
    "YumemachiConfig",
    "config",
    "FalInpaintingAdapter",
    "OpenAIImageAdapter",
]
