"""Base classes and registry for image-generation adapters.

The kiosk talks to two image vendors through one interface:

- **inpainting**: edit the masked central plaza of the base photo
  (fal.ai ``flux-general/inpainting``)
- **text-to-image**: generate a whole new image from a prompt alone
  (OpenAI ``gpt-image-1``, used by image-centered mode)

Each vendor has an adapter that accepts a fully assembled
:class:`~yumemachi.core.models.GenerationRequest` and returns a reference to
the generated image: an HTTPS URL, or a ``data:`` URI when the vendor
returns inline bytes.

Usage Example
-------------
    >>> from yumemachi.core.model_adapters import model_registry
    >>> from yumemachi.core.config import config
    >>>
    >>> model_registry.list_available()
    ['fal-inpainting', 'openai-image']
    >>> adapter = model_registry.instantiate_for_type("inpainting", config)
    >>> image_url = await adapter.generate(request)

See Also
--------
- yumemachi.core.adapters: Concrete vendor adapters
- yumemachi.core.generation: The service that picks an adapter per request
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Literal

from .config import YumemachiConfig
from .models import GenerationRequest

logger = logging.getLogger(__name__)

ModelType = Literal["inpainting", "text-to-image"]


class ImageAdapterBase(ABC):
    """Abstract base class for all image-generation adapters.

    Each adapter must implement :meth:`generate`, which performs exactly one
    vendor call and either returns an image reference or raises
    :class:`~yumemachi.core.errors.CollaboratorError`.  Adapters hold no
    per-request state; everything a call needs travels in the request.

    Attributes
    ----------
    name : str
        Registry key (e.g., "fal-inpainting")
    description : str
        Brief description of the vendor model
    model_type : ModelType
        Which kind of :class:`GenerationRequest` the adapter accepts
    config : YumemachiConfig
        Configuration carrying credentials and endpoints
    """

    name: str = "base"
    description: str = "Base class for image adapters"
    model_type: ModelType = "inpainting"
    version: str = "0.1.0"

    def __init__(self, config: YumemachiConfig) -> None:
        self.config = config
        logger.info(f"Initialized {self.name} adapter")

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> str:
        """Send *request* to the vendor and return the image reference.

        Raises
        ------
        CollaboratorError
            On missing credentials, non-success status, transport failure,
            or a response without an image
        """
        pass

    def check_request(self, request: GenerationRequest) -> None:
        """Reject requests assembled for a different model type."""
        if request.target != self.model_type:
            raise ValueError(
                f"{self.name} handles '{self.model_type}' requests, got '{request.target}'"
            )

    async def aclose(self) -> None:
        """Release any client the adapter keeps between calls."""


class ModelRegistry:
    """Registry for managing available image adapters.

    Usage
    -----
    Registering a new adapter:

        >>> model_registry.register(MyAdapter)

    Instantiating an adapter by name or by model type:

        >>> adapter = model_registry.instantiate("fal-inpainting", config)
        >>> adapter = model_registry.instantiate_for_type("text-to-image", config)
    """

    def __init__(self) -> None:
        self._adapters: dict[str, type[ImageAdapterBase]] = {}

    def register(self, adapter_class: type[ImageAdapterBase]) -> None:
        """Register an adapter class, replacing any adapter with the same name."""
        adapter_name = adapter_class.name

        if adapter_name in self._adapters:
            logger.warning(f"Image adapter '{adapter_name}' is already registered, overwriting")

        self._adapters[adapter_name] = adapter_class
        logger.info(f"Registered image adapter: {adapter_name}")

    def instantiate(
        self, adapter_name: str, config: YumemachiConfig, **kwargs: Any
    ) -> ImageAdapterBase:
        """Create an instance of a registered adapter.

        Args:
            adapter_name: Name of the adapter to instantiate
            config: Configuration object
            **kwargs: Adapter-specific keyword arguments (e.g. a transport
                or client to use instead of the default one)

        Raises
        ------
        KeyError
            If adapter_name is not registered
        """
        if adapter_name not in self._adapters:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"Image adapter '{adapter_name}' not found. Available adapters: {available}"
            )

        instance = self._adapters[adapter_name](config, **kwargs)
        logger.debug(f"Instantiated image adapter: {adapter_name}")
        return instance

    def instantiate_for_type(
        self, model_type: ModelType, config: YumemachiConfig, **kwargs: Any
    ) -> ImageAdapterBase:
        """Instantiate the first registered adapter of *model_type*.

        Raises
        ------
        KeyError
            If no adapter of that type is registered
        """
        for name, adapter_class in self._adapters.items():
            if adapter_class.model_type == model_type:
                return self.instantiate(name, config, **kwargs)
        raise KeyError(f"No image adapter registered for model type '{model_type}'")

    def list_available(self) -> list[str]:
        return list(self._adapters.keys())

    def get_adapter_info(self, adapter_name: str) -> dict[str, Any] | None:
        if adapter_name not in self._adapters:
            return None

        adapter_class = self._adapters[adapter_name]
        return {
            "name": adapter_class.name,
            "description": adapter_class.description,
            "model_type": adapter_class.model_type,
            "version": adapter_class.version,
        }


# Global model registry instance
model_registry = ModelRegistry()
