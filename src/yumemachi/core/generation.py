"""One generation attempt, end to end.

:class:`GenerationService` chains the steps of a single attempt::

    normalize -> validate -> [expand] -> assemble -> [encode images] -> generate

Each step awaits the previous one; there is no fan-out and no cancellation.
Everything an attempt needs (options, expansion, image payloads) is passed
along explicitly, so concurrent attempts from different kiosks share nothing
but the configuration and the adapters, which hold no per-request state.

Failures propagate as :class:`~yumemachi.core.errors.YumemachiError`
subclasses.  Because session transitions return new objects, the caller's
session is untouched when an attempt fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import YumemachiConfig
from .images import encode_plaza_images
from .model_adapters import ImageAdapterBase, ModelType, model_registry
from .models import GenerationOptions, GenerationRequest, GenerationResult
from .prompt_builder import build_generation_request, normalize_options
from .prompt_expander import PromptExpander
from .session import KioskSession, Screen
from .validation import validate_options, validate_parameters, validate_prompt_content

logger = logging.getLogger(__name__)


@dataclass
class GenerationOutcome:
    """Everything one successful attempt produced."""

    options: GenerationOptions
    request: GenerationRequest
    result: GenerationResult
    session: KioskSession


class GenerationService:
    """Runs generation attempts against the configured collaborators.

    Args:
        config: Configuration with credentials, endpoints and asset paths
        expander: Text-completion collaborator (default: OpenAI-backed)
        adapters: Image adapters keyed by model type; missing types are
            instantiated from the registry on first use
    """

    def __init__(
        self,
        config: YumemachiConfig,
        expander: PromptExpander | None = None,
        adapters: dict[ModelType, ImageAdapterBase] | None = None,
    ) -> None:
        self.config = config
        self.expander = expander or PromptExpander(config)
        self._adapters: dict[ModelType, ImageAdapterBase] = dict(adapters or {})

    def adapter_for(self, model_type: ModelType) -> ImageAdapterBase:
        if model_type not in self._adapters:
            self._adapters[model_type] = model_registry.instantiate_for_type(
                model_type, self.config
            )
        return self._adapters[model_type]

    async def aclose(self) -> None:
        """Close the adapters this service created or was given."""
        for adapter in self._adapters.values():
            await adapter.aclose()

    async def prepare(
        self, options: GenerationOptions
    ) -> tuple[GenerationOptions, GenerationRequest]:
        """Normalize, validate, expand and assemble, without calling an image vendor.

        Returns:
            Tuple of (normalized options, ready-to-send request)

        Raises:
            ValidationError: If the options are invalid
            PromptGenerationError: If auto-prompt expansion fails
        """
        options = normalize_options(options)
        validate_options(options)

        logger.info(
            f"Generation: mode={options.image_mode.value} building={options.building.value} "
            f"auto_prompt={options.auto_prompt}"
        )

        expansion = None
        if options.auto_prompt:
            expansion = await self.expander.expand(options.free_text)

        request = build_generation_request(options, expansion)
        validate_prompt_content(request.prompt)
        if request.parameters is not None:
            validate_parameters(request.parameters)

        if request.target == "inpainting":
            image_uri, mask_uri = encode_plaza_images(
                self.config.base_image_path, self.config.mask_image_path
            )
            request.image_data_uri = image_uri
            request.mask_data_uri = mask_uri

        logger.debug(f"Final prompt:\n{request.prompt}")
        logger.debug(f"Negative prompt: {request.negative_prompt}")
        logger.debug(f"Parameters: {request.parameters}")
        return options, request

    async def generate(
        self, options: GenerationOptions, session: KioskSession | None = None
    ) -> GenerationOutcome:
        """Run one attempt and advance *session* to the result screen.

        Args:
            options: The visitor's choices
            session: Current session; a fresh one is started when omitted

        Raises:
            SessionStateError: If *session* is not on the image-display screen
            ValidationError: If the options are invalid
            CollaboratorError: If prompt expansion or image generation fails
        """
        session = session or KioskSession().start()
        session.require_screen(Screen.IMAGE_DISPLAY)

        options, request = await self.prepare(options)
        adapter = self.adapter_for(request.target)

        image_url = await adapter.generate(request)
        result = GenerationResult.ok(image_url)
        logger.info(f"Generation complete via {adapter.name}")

        return GenerationOutcome(
            options=options,
            request=request,
            result=result,
            session=session.record_generation(options, request, result),
        )
