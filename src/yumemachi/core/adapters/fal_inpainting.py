"""fal.ai inpainting adapter.

Posts the base photo, mask and prompt to fal.ai's synchronous endpoint
(``https://fal.run/<model_id>``).  Both images travel inline as data URIs,
so nothing is uploaded to vendor storage first and no URL is remembered
between requests.

Request body::

    {
        "image_url": "data:image/jpeg;base64,...",
        "mask_url": "data:image/png;base64,...",
        "prompt": "...",
        "negative_prompt": "...",
        "strength": 0.75,
        "num_inference_steps": 45,
        "guidance_scale": 9.5,
        "num_images": 1,
        "enable_safety_checker": true,
        "output_format": "jpeg"
    }

The response carries ``images[0].url``.
"""

import logging

import httpx

from ..errors import CollaboratorError, MissingCredentialsError
from ..model_adapters import ImageAdapterBase, model_registry
from ..models import GenerationRequest

logger = logging.getLogger(__name__)


class FalInpaintingAdapter(ImageAdapterBase):
    """Masked inpainting through the fal.ai REST API."""

    name = "fal-inpainting"
    description = "fal.ai FLUX inpainting of the central plaza"
    model_type = "inpainting"
    version = "0.1.0"

    def __init__(self, config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(config)
        # Tests substitute an httpx.MockTransport here.
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.config.fal_base_url.rstrip('/')}/{self.config.inpainting_model_id}"

    def build_payload(self, request: GenerationRequest) -> dict:
        """Translate a :class:`GenerationRequest` into the fal.ai request body."""
        self.check_request(request)
        if request.parameters is None:
            raise ValueError("Inpainting requests require generation parameters")
        if not request.image_data_uri or not request.mask_data_uri:
            raise ValueError("Inpainting requests require base image and mask data")

        payload = {
            "image_url": request.image_data_uri,
            "mask_url": request.mask_data_uri,
            "prompt": request.prompt,
            "strength": request.parameters.strength,
            "num_inference_steps": request.parameters.steps,
            "guidance_scale": request.parameters.guidance,
            "num_images": 1,
            "enable_safety_checker": True,
            "output_format": "jpeg",
        }
        if request.negative_prompt:
            payload["negative_prompt"] = request.negative_prompt
        return payload

    async def generate(self, request: GenerationRequest) -> str:
        if not self.config.fal_key:
            raise MissingCredentialsError("fal.ai API key is not configured")

        payload = self.build_payload(request)
        headers = {"Authorization": f"Key {self.config.fal_key}"}

        logger.info(f"Calling fal.ai inpainting: {self.config.inpainting_model_id}")
        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout, transport=self._transport
            ) as client:
                response = await client.post(self.endpoint, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"fal.ai API error: {e.response.status_code} {e.response.text[:500]}")
            raise CollaboratorError(f"fal.ai API error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"fal.ai request failed: {e}")
            raise CollaboratorError(f"fal.ai request failed: {e}") from e
        except ValueError as e:
            raise CollaboratorError(f"fal.ai returned an unreadable response: {e}") from e

        images = data.get("images") if isinstance(data, dict) else None
        if not images or not isinstance(images[0], dict) or not images[0].get("url"):
            raise CollaboratorError("fal.ai returned no images")

        logger.info("fal.ai inpainting complete")
        return images[0]["url"]


model_registry.register(FalInpaintingAdapter)
