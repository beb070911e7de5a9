"""OpenAI direct image generation adapter (image-centered mode).

Image-centered mode does not edit the base photo; it sends a long-form
prompt to ``images.generate`` and takes whatever the model returns.  The
model may answer with a hosted URL or with inline base64 bytes, which are
turned into a ``data:image/png;base64,...`` URI so callers only ever see one
kind of image reference.
"""

import logging

from openai import AsyncOpenAI, OpenAIError

from ..errors import CollaboratorError, MissingCredentialsError
from ..model_adapters import ImageAdapterBase, model_registry
from ..models import GenerationRequest

logger = logging.getLogger(__name__)


class OpenAIImageAdapter(ImageAdapterBase):
    """Prompt-only generation through the OpenAI Images API."""

    name = "openai-image"
    description = "OpenAI gpt-image-1 text-to-image generation"
    model_type = "text-to-image"
    version = "0.1.0"

    def __init__(self, config, client: AsyncOpenAI | None = None) -> None:
        super().__init__(config)
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is not None:
            return self._client
        if not self.config.openai_api_key:
            raise MissingCredentialsError("OpenAI API key is not configured")
        self._client = AsyncOpenAI(
            api_key=self.config.openai_api_key,
            base_url=self.config.openai_base_url,
            timeout=self.config.request_timeout,
        )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def generate(self, request: GenerationRequest) -> str:
        self.check_request(request)
        client = self._get_client()

        logger.info(f"Calling OpenAI images: {self.config.creative_image_model}")
        try:
            response = await client.images.generate(
                model=self.config.creative_image_model,
                prompt=request.prompt,
                n=1,
                size=self.config.creative_image_size,
                quality=self.config.creative_image_quality,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI images API error: {e}")
            raise CollaboratorError(f"OpenAI images API error: {e}") from e

        if response.data:
            image = response.data[0]
            if image.url:
                return image.url
            if image.b64_json:
                return f"data:image/png;base64,{image.b64_json}"

        raise CollaboratorError("OpenAI images API returned no image")


model_registry.register(OpenAIImageAdapter)
