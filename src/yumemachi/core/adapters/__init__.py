"""Image vendor adapters.

Importing this package registers every adapter with
:data:`~yumemachi.core.model_adapters.model_registry`.
"""

from .fal_inpainting import FalInpaintingAdapter
from .openai_image import OpenAIImageAdapter

__all__ = ["FalInpaintingAdapter", "OpenAIImageAdapter"]
