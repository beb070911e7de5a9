"""Validation utilities for kiosk form inputs.

All checks here run before any vendor call, so a rejected form never costs
an API request.
"""

import logging

from .errors import ValidationError
from .models import (
    FREE_TEXT_MAX_LENGTH,
    NICKNAME_MAX_LENGTH,
    OTHER_BUILDING_MAX_LENGTH,
    Building,
    GenerationOptions,
    GenerationParameters,
)

logger = logging.getLogger(__name__)


def validate_options(options: GenerationOptions) -> None:
    """Validate generation options with user-friendly messages.

    Free text is optional in every mode except auto-prompt, which has
    nothing to expand without it.

    Args:
        options: Options to validate (after normalization)

    Raises:
        ValidationError: If validation fails with user-friendly message
    """
    if len(options.free_text) > FREE_TEXT_MAX_LENGTH:
        raise ValidationError(
            f"Free text is too long ({len(options.free_text)} characters). "
            f"Maximum is {FREE_TEXT_MAX_LENGTH} characters."
        )

    if options.building is Building.OTHER and len(options.other_building) > OTHER_BUILDING_MAX_LENGTH:
        raise ValidationError(
            f"Building description is too long ({len(options.other_building)} characters). "
            f"Maximum is {OTHER_BUILDING_MAX_LENGTH} characters."
        )

    if options.auto_prompt and not options.free_text.strip():
        raise ValidationError("Free text is required when auto-prompt is enabled")


def validate_parameters(params: GenerationParameters) -> None:
    """Validate numeric parameters, converting range errors to ValidationError."""
    try:
        params.validate()
    except ValueError as e:
        raise ValidationError(str(e)) from e


def validate_nickname(nickname: str) -> str:
    """Validate and normalize the nickname entered on the confirm screen.

    Returns:
        The stripped nickname (may be empty; the nickname is optional)

    Raises:
        ValidationError: If the nickname is too long
    """
    stripped = nickname.strip()
    if len(stripped) > NICKNAME_MAX_LENGTH:
        raise ValidationError(
            f"Nickname is too long ({len(stripped)} characters). "
            f"Maximum is {NICKNAME_MAX_LENGTH} characters."
        )
    return stripped


def validate_prompt_content(prompt: str) -> None:
    """Reject prompts that are empty after stripping.

    Raises:
        ValidationError: If the prompt is blank
    """
    if not prompt or not prompt.strip():
        logger.warning("Refusing to send an empty prompt")
        raise ValidationError("Prompt must not be empty")
