"""Auto-prompt: expand a visitor's short Japanese request into an English
inpainting prompt with a chat-completion model.

The system message below is the whole contract with the model: imperative
construction verbs only, a fixed first line declaring the flower bed
removed, a mandatory crowd with a numeric range, and a trailing negative
section.  The returned text is not checked against these rules.  It is
trimmed and handed to :func:`~yumemachi.core.prompt_builder.build_prompt`,
which embeds it inside the fixed scaffold anyway.
"""

import logging

from openai import AsyncOpenAI, OpenAIError

from .config import YumemachiConfig
from .errors import MissingCredentialsError, PromptGenerationError, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = """\
You are a prompt generator for fal.ai image inpainting using the model fal-ai/flux-general/inpainting.

Your task:
- Convert a short Japanese user request into a SINGLE English image-generation prompt.
- The output MUST be construction-style instructions, not a description or narration.
- The output MUST be directly usable as a fal.ai inpainting prompt.

Strict rules:
- Write in English ONLY.
- Output ONLY the final prompt text. No explanations, no greetings, no acknowledgements.
- NEVER use first-person language (I, we, understood, will, should, here is, etc.).
- NEVER write descriptive or narrative sentences.
- Use ONLY imperative construction verbs such as:
  Remove, Install, Include, Keep, Capture.
- Allow imperative prohibition sentences such as:
  "Do not generate the scene without people."

Inpainting rules:
- Always assume the original central flower bed is completely removed.
- ALWAYS include the following sentence as the FIRST line of the output:
  "The original flower bed is completely removed and replaced."
- Modify ONLY the masked central plaza area.
- Keep existing station buildings, roads, and rotary completely unchanged.

Physical specification rules:
- Always specify numeric ranges for size and scale (meters).
- Always specify whether the installation is active, operating, or open to the public.
- Always specify ground contact, base structure, or foundation type.

People rules (ENHANCED, MANDATORY):
- If the request implies public use, ALWAYS include people.
- People are a mandatory structural element of the scene.
- The output is INVALID if people are not included.
- Explicitly forbid generating scenes without people.
- Increase crowd density by default:
  specify no fewer than 10 people unless explicitly requested otherwise.
- Specify the number of people with numeric ranges (e.g., 20–40 people).
- Specify age ranges for children if children are implied.
- Specify clear, observable actions using verbs such as:
  playing, running, laughing, talking, pointing, watching, walking.
- Explicitly require visible facial expressions and gestures
  (e.g., smiling faces, expressive body language).
- Explicitly state that people are clearly visible, expressive, and in focus.

Architectural creativity rules (CONTROLLED):
- Allow creative and contemporary architectural design elements.
- Encourage distinctive forms, materials, or structures
  (e.g., curved geometry, layered volumes, canopy structures),
  while maintaining realistic, buildable architecture.
- Do NOT allow abstract, surreal, or non-physical designs.
- Always ensure the structure appears functional and structurally plausible.

Photography rules:
- Always include photorealistic, professional photography.
- Always include natural daylight.
- Always include wide-angle composition that shows both people and architecture clearly.

Negative constraints:
- Always include a negative section at the end.
- Include at least:
  No text, no logos, no watermarks.
  No signage changes.
  No distorted geometry, no extra buildings.
  No blurry faces, no deformed hands, no extra limbs.
  No cartoon, no illustration, no low resolution."""


class PromptExpander:
    """Text-completion collaborator for auto-prompt.

    The OpenAI client is created on first use and reused for every later
    call until :meth:`aclose`.  A missing API key only fails the call that
    needs the client.

    Attributes:
        config: Configuration carrying the OpenAI key, endpoint and model
    """

    def __init__(self, config: YumemachiConfig, client: AsyncOpenAI | None = None) -> None:
        self.config = config
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

    async def expand(self, text: str) -> str:
        """Return the model's inpainting prompt for *text*.

        Raises:
            ValidationError: If *text* is blank
            PromptGenerationError: On API or transport errors, or when the
                completion is empty or missing
        """
        if not text or not text.strip():
            raise ValidationError("Text is required for auto-prompt")

        client = self._get_client()
        logger.info(f"Expanding prompt with {self.config.prompt_model}")
        logger.debug(f"Auto-prompt input: {text}")

        try:
            response = await client.chat.completions.create(
                model=self.config.prompt_model,
                messages=[
                    {"role": "system", "content": SYSTEM_MESSAGE},
                    {"role": "user", "content": text},
                ],
                temperature=self.config.prompt_temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI chat API error: {e}")
            raise PromptGenerationError(f"OpenAI API error: {e}") from e

        content = None
        if response.choices:
            message = response.choices[0].message
            content = message.content if message is not None else None

        generated = (content or "").strip()
        if not generated:
            raise PromptGenerationError("The language model returned an empty prompt")

        logger.debug(f"Auto-prompt output: {generated}")
        return generated
