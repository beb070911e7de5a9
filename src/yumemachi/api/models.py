"""Pydantic request models for the Yumemachi Canvas API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for request parsing and OpenAPI documentation; the character limits
are enforced by :mod:`yumemachi.core.validation` so that an over-long field
is reported as a 400 with the same message the kiosk form shows.

Models
------
OptionsPayload
    The options form: free text, mode, building and the optional
    style / lighting / composition triple.
GenerateRequest
    Payload for ``POST /api/generate`` and ``POST /api/prompt/compile``.
TranslateRequest
    Payload for ``POST /api/translate-prompt``.
EmailRequest
    Payload for ``POST /api/send-email``.
SessionTransitionRequest
    Payload for ``POST /api/session/transition``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from yumemachi.core.models import Building, GenerationOptions, ImageMode


class OptionsPayload(BaseModel):
    """The visitor's choices as submitted by the options form.

    Attributes:
        free_text: What the visitor wants to see in the plaza.
        image_mode: One of ``faithful``, ``modern``, ``creative`` or
            ``image-centered``.
        building: One of ``fountain``, ``merry-go-round``, ``cafe-stand`` or
            ``other``.
        other_building: Free-text building name, used when ``building`` is
            ``other``.
        auto_prompt: Expand ``free_text`` through the language model first.
        style: Optional style key or Japanese label (e.g. ``"anime"``,
            ``"アニメ風"``).
        lighting: Optional lighting key or Japanese label.
        composition: Optional composition key or Japanese label.
    """

    free_text: str = Field(
        default="",
        description="What the visitor wants to see in the plaza.",
    )
    image_mode: ImageMode = Field(
        default=ImageMode.FAITHFUL,
        description="Generation mode.",
    )
    building: Building = Field(
        default=Building.FOUNTAIN,
        description="Installation to place in the plaza.",
    )
    other_building: str = Field(
        default="",
        description="Building name when building='other'.",
    )
    auto_prompt: bool = Field(
        default=False,
        description="Expand free_text with the language model before assembly.",
    )
    style: str | None = Field(default=None, description="Optional style key or label.")
    lighting: str | None = Field(default=None, description="Optional lighting key or label.")
    composition: str | None = Field(
        default=None, description="Optional composition key or label."
    )

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            free_text=self.free_text,
            image_mode=self.image_mode,
            building=self.building,
            other_building=self.other_building,
            auto_prompt=self.auto_prompt,
            style=self.style,
            lighting=self.lighting,
            composition=self.composition,
        )


class GenerateRequest(OptionsPayload):
    """Request body for ``POST /api/generate`` and ``POST /api/prompt/compile``.

    Attributes:
        session: The browser's ``sessionStorage`` entries.  When omitted, a
            fresh session on the image-display screen is assumed.
    """

    session: dict[str, str] | None = Field(
        default=None,
        description="Current sessionStorage entries (JSON-encoded values).",
    )


class TranslateRequest(BaseModel):
    """Request body for ``POST /api/translate-prompt``."""

    text: str = Field(..., description="Free text to expand into an English prompt.")


class EmailRequest(BaseModel):
    """Request body for ``POST /api/send-email``.

    The summary comes from ``session`` when given; otherwise from
    ``options`` and ``image_url``.

    Attributes:
        nickname: Display name entered on the confirm screen.
        options: The options to summarize.
        image_url: Generated image (URL or ``data:`` URI) to attach.
        session: The browser's ``sessionStorage`` entries.
    """

    nickname: str = Field(default="", description="Display name (max 20 characters).")
    options: OptionsPayload | None = Field(default=None, description="Options to summarize.")
    image_url: str | None = Field(default=None, description="Image to attach.")
    session: dict[str, str] | None = Field(
        default=None,
        description="Current sessionStorage entries; must be on the confirm screen.",
    )


class SessionTransitionRequest(BaseModel):
    """Request body for ``POST /api/session/transition``."""

    action: Literal["start", "retry", "confirm", "reset"] = Field(
        ..., description="Screen transition to apply."
    )
    session: dict[str, str] | None = Field(
        default=None, description="Current sessionStorage entries."
    )
