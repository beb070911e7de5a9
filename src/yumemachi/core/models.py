"""Data models for generation options, parameters, requests and results."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import ConfigDict


FREE_TEXT_MAX_LENGTH = 100
OTHER_BUILDING_MAX_LENGTH = 30
NICKNAME_MAX_LENGTH = 20


class ImageMode(str, Enum):
    """How far the generated image may depart from the visitor's text."""

    FAITHFUL = "faithful"
    MODERN = "modern"
    CREATIVE = "creative"
    IMAGE_CENTERED = "image-centered"


class Building(str, Enum):
    """Installation placed in the central plaza."""

    FOUNTAIN = "fountain"
    MERRY_GO_ROUND = "merry-go-round"
    CAFE_STAND = "cafe-stand"
    OTHER = "other"


GenerationTarget = Literal["inpainting", "text-to-image"]


@dataclass
class GenerationOptions:
    """The visitor's choices for one generation attempt.

    ``style``, ``lighting`` and ``composition`` are only set by the styled
    form; when all three are ``None`` the fixed photorealistic / natural
    light / full view configuration applies.
    """

    # Session storage validates against these fields; unknown keys are errors.
    __pydantic_config__ = ConfigDict(extra="forbid")

    free_text: str = ""
    image_mode: ImageMode = ImageMode.FAITHFUL
    building: Building = Building.FOUNTAIN
    other_building: str = ""
    auto_prompt: bool = False
    style: str | None = None
    lighting: str | None = None
    composition: str | None = None

    def __post_init__(self) -> None:
        # Accept raw strings from forms and session storage
        self.image_mode = ImageMode(self.image_mode)
        self.building = Building(self.building)

    @property
    def is_image_centered(self) -> bool:
        return self.image_mode is ImageMode.IMAGE_CENTERED

    @property
    def is_styled(self) -> bool:
        """True when any of the style/lighting/composition triple is set."""
        return any(v is not None for v in (self.style, self.lighting, self.composition))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["image_mode"] = self.image_mode.value
        data["building"] = self.building.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationOptions":
        return cls(**data)


@dataclass(frozen=True)
class GenerationParameters:
    """Numeric knobs for the inpainting call.

    Attributes:
        strength: Fraction of the source image allowed to change (0.0-1.0)
        steps: Diffusion inference steps
        guidance: Classifier-free guidance scale
    """

    strength: float
    steps: int
    guidance: float

    def validate(self) -> None:
        """Validate parameters against the vendor's accepted ranges.

        Raises:
            ValueError: If any parameter is out of range
        """
        if not 0.0 <= self.strength <= 1.0:
            raise ValueError(f"Strength must be 0.0-1.0, got {self.strength}")
        if self.steps < 1:
            raise ValueError(f"Inference steps must be positive, got {self.steps}")
        if self.guidance <= 0:
            raise ValueError(f"Guidance scale must be positive, got {self.guidance}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationParameters":
        return cls(
            strength=float(data["strength"]),
            steps=int(data["steps"]),
            guidance=float(data["guidance"]),
        )


@dataclass
class GenerationRequest:
    """Fully assembled payload for one image-generation call.

    ``parameters``, ``image_data_uri`` and ``mask_data_uri`` only apply to the
    inpainting target; the text-to-image target receives the prompt alone.
    """

    prompt: str
    target: GenerationTarget
    negative_prompt: str | None = None
    parameters: GenerationParameters | None = None
    image_data_uri: str | None = field(default=None, repr=False)
    mask_data_uri: str | None = field(default=None, repr=False)

    def summary(self) -> dict[str, Any]:
        """Return the request without image payloads, for logs and sessions."""
        return {
            "prompt": self.prompt,
            "target": self.target,
            "negative_prompt": self.negative_prompt,
            "parameters": self.parameters.to_dict() if self.parameters else None,
        }


@dataclass
class GenerationResult:
    """Outcome of one generation attempt."""

    __pydantic_config__ = ConfigDict(extra="forbid")

    success: bool
    image_url: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, image_url: str) -> "GenerationResult":
        return cls(success=True, image_url=image_url)

    @classmethod
    def failed(cls, error: str) -> "GenerationResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationResult":
        return cls(**data)
