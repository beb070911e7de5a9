"""Prompt and parameter assembly for the Yumemachi Canvas kiosk.

The assembler turns a :class:`~yumemachi.core.models.GenerationOptions` value
into the prompt, negative prompt and numeric parameters for one image call.
It is pure: no I/O, no randomness, no module state.  The only external input
it accepts is the already-fetched language-model expansion text.

Scaffold Structure
------------------
Every mode except image-centered joins the same ordered segments::

    [Scene anchor: existing station-front plaza and rotary]
    [Modification scope: only the central flower bed and plaza change]
    [Building instruction, or the visitor's "other" text verbatim]
    [Mode instruction (modern / creative only)]
    [Style tag]
    [Lighting tag]
    [Composition tag]
    [Crowd / visibility clause: 30-50 people, no empty scenes]
    [Language-model expansion (auto-prompt only)]
    [Visitor free text, verbatim]

Blank segments are dropped before joining, and segments are joined with
``",\\n"``.  The expansion is embedded in the scaffold, never substituted for
it: the language model is instructed to keep the same structure, but nothing
guarantees that structure survives the trip back from the model.

Image-Centered Mode
-------------------
Image-centered mode is the inverse of the scaffold: it preserves the whole
background, replaces the central plaza with a non-literal installation, and
keeps people to a minimum.  It ignores the building selection, never uses
auto-prompt, and targets a direct text-to-image model instead of inpainting,
so it has no mask, negative prompt or numeric parameters.

Parameter Selection
-------------------
Forms without the style/lighting triple use :data:`FIXED_PARAMETERS`.  The
styled form looks up a style row and lighting column in
:data:`PARAMETER_TABLE` (unknown style -> photorealistic row, unknown
lighting -> natural column) and then applies two safety tweaks:

- backlit lighting caps guidance at :data:`BACKLIT_GUIDANCE_CEILING`
- dramatic lighting caps steps at the table value minus
  :data:`DRAMATIC_STEP_REDUCTION`, floored at :data:`MIN_STEPS`

Both tweaks are caps anchored to the table, so applying them twice is the
same as applying them once.

Usage
-----
::

    options = GenerationOptions(free_text="親子で遊べる噴水広場", building="fountain")
    request = build_generation_request(options)
    request.prompt.startswith(SCENE_BASE)  # True
"""

from __future__ import annotations

import dataclasses
import logging

from yumemachi.core.models import (
    Building,
    GenerationOptions,
    GenerationParameters,
    GenerationRequest,
    ImageMode,
)

logger = logging.getLogger(__name__)

SEGMENT_SEPARATOR = ",\n"

# ---------------------------------------------------------------------------
# Scene scaffold.
# ---------------------------------------------------------------------------

SCENE_BASE = "In an existing station-front urban plaza and rotary"

MODIFICATION_INSTRUCTION = (
    "Modify only the central flower bed and surrounding plaza area. "
    "Keep the existing station buildings, roads, and rotary unchanged."
)

MIN_CROWD_SIZE = 30
MAX_CROWD_SIZE = 50

VISIBILITY_TAG = (
    f"Include AT LEAST {MIN_CROWD_SIZE} to {MAX_CROWD_SIZE} people as a mandatory and "
    "essential part of the scene. "
    "People are distributed across the entire plaza, visible in the foreground and midground. "
    "People are clearly visible, expressive, and in focus. "
    "Do not generate the scene without people. "
    "Do not generate scenes with sparse crowds or only a few people."
)

# ---------------------------------------------------------------------------
# Buildings.
# ---------------------------------------------------------------------------

BUILDING_PROMPTS: dict[Building, str] = {
    Building.FOUNTAIN: (
        "Install an elegant fountain with water jets in the central plaza area.\n"
        "The fountain should have a modern design with multiple water streams.\n"
        "Include decorative elements and proper lighting fixtures."
    ),
    Building.MERRY_GO_ROUND: (
        "Install a colorful merry-go-round carousel in the central plaza area.\n"
        "The carousel should have classic horses and decorative elements.\n"
        "Include ornate canopy and lighting."
    ),
    Building.CAFE_STAND: (
        "Install a stylish outdoor cafe stand in the central plaza area.\n"
        "The cafe should have modern furniture, umbrellas, and attractive display.\n"
        "Include seating area for customers."
    ),
}

BUILDING_NAMES: dict[Building, str] = {
    Building.FOUNTAIN: "fountain",
    Building.MERRY_GO_ROUND: "merry-go-round",
    Building.CAFE_STAND: "Stylish cafe stand",
}

BUILDING_NAMES_JA: dict[Building, str] = {
    Building.FOUNTAIN: "噴水",
    Building.MERRY_GO_ROUND: "メリーゴーランド",
    Building.CAFE_STAND: "おしゃれなカフェスタンド",
    Building.OTHER: "その他",
}

# ---------------------------------------------------------------------------
# Image modes.
# ---------------------------------------------------------------------------

MODE_INSTRUCTIONS: dict[ImageMode, str] = {
    ImageMode.MODERN: (
        "Apply modern, contemporary design aesthetics. Use clean lines, minimalist forms, "
        "and current architectural trends."
    ),
    ImageMode.CREATIVE: (
        "Apply creative and imaginative design. Allow artistic expression, unique forms, "
        "and innovative concepts while maintaining realism."
    ),
}

IMAGE_MODE_NAMES_JA: dict[ImageMode, str] = {
    ImageMode.FAITHFUL: "指示に忠実",
    ImageMode.MODERN: "モダン性加味",
    ImageMode.CREATIVE: "創造性加味",
    ImageMode.IMAGE_CENTERED: "生成画像中心",
}

IMAGE_CENTERED_TEMPLATE = """\
Preserve all existing background elements exactly as they are, including station buildings, \
surrounding roads, sidewalks, trees, sky, lighting, perspective, and camera angle.
Do not modify, replace, stylize, reinterpret, or regenerate any background structures or \
environment outside the central circular plaza area.

Replace ONLY the central circular plaza area with a highly creative, non-traditional \
public-space installation.
Do not assume or default to any conventional plaza, playground, or fountain design.

Install an imaginative, sculptural, or experiential centerpiece that may include water, light, \
landscape, art, or play elements, but is not limited to a fountain.
Allow abstract, organic, or story-like forms that prioritize artistic expression and emotional \
impact over clear function or usability.

Use low-height elements, gentle curves, and human-scale proportions suitable for families and \
children.
The design should feel safe, approachable, and emotionally engaging rather than monumental or \
architectural.

Maintain realistic materials, believable physics, and accurate scale.
Ensure the installation integrates naturally with the existing plaza paving and surroundings.

Do NOT include people unless strictly required for scale reference.
If included, keep them minimal and visually subordinate.

Maintain photorealistic quality with natural daylight, consistent shadows, and color \
temperature matching the original image.
Ensure seamless blending at the boundary between the modified central plaza and the unchanged \
background.

Output a single, cohesive, high-resolution photorealistic image."""

# ---------------------------------------------------------------------------
# Style / lighting / composition tags.
# Keys are the canonical English identifiers; the *_ALIASES tables map the
# Japanese form labels onto them.
# ---------------------------------------------------------------------------

DEFAULT_STYLE = "photorealistic"
DEFAULT_LIGHTING = "natural"
DEFAULT_COMPOSITION = "full-view"

STYLE_TAGS: dict[str, str] = {
    "photorealistic": "photorealistic, professional photography, high resolution",
    "illustration": "detailed digital illustration, clean linework, vibrant flat colors",
    "anime": "anime style, cel shading, bright saturated colors, crisp outlines",
    "watercolor": "soft watercolor painting, gentle color bleeding, textured paper",
}

LIGHTING_TAGS: dict[str, str] = {
    "natural": "natural lighting, daylight",
    "sunset": "warm golden hour lighting, sunset glow, long soft shadows",
    "night": "night scene, warm street lights, illuminated installation",
    "dramatic": "dramatic lighting, strong contrast, deep shadows",
    "backlit": "backlit, rim lighting, sun behind the subject, soft lens flare",
}

COMPOSITION_TAGS: dict[str, str] = {
    "full-view": "full body shot, wide angle",
    "close-up": "close-up shot, shallow depth of field, installation in focus",
    "birds-eye": "high angle bird's-eye view, entire plaza visible",
}

STYLE_ALIASES: dict[str, str] = {
    "写真風": "photorealistic",
    "イラスト風": "illustration",
    "アニメ風": "anime",
    "水彩画風": "watercolor",
}

LIGHTING_ALIASES: dict[str, str] = {
    "自然光": "natural",
    "夕焼け": "sunset",
    "夜景": "night",
    "ドラマチック": "dramatic",
    "逆光": "backlit",
}

COMPOSITION_ALIASES: dict[str, str] = {
    "全体像": "full-view",
    "クローズアップ": "close-up",
    "俯瞰": "birds-eye",
}

# ---------------------------------------------------------------------------
# Negative prompts.
# The first entry is per style family; the remainder is shared.
# ---------------------------------------------------------------------------

_NEGATIVE_COMMON = [
    "low quality, blurry, noise, jpeg artifacts",
    "distorted face, deformed hands, extra limbs, bad anatomy",
    "text, watermark, logo, signage, subtitles",
    "overexposed, underexposed, unnatural colors",
]

_NEGATIVE_STYLE_HEAD: dict[str, str] = {
    "photorealistic": "cartoon, anime, illustration, painting, 3d render",
    "illustration": "photograph, photorealistic, 3d render, messy sketch lines",
    "anime": "photograph, photorealistic, 3d render, western cartoon",
    "watercolor": "photograph, photorealistic, 3d render, harsh digital outlines",
}

NEGATIVE_PROMPTS: dict[str, str] = {
    style: ", ".join([head, *_NEGATIVE_COMMON]) for style, head in _NEGATIVE_STYLE_HEAD.items()
}

# ---------------------------------------------------------------------------
# Numeric parameters.
# ---------------------------------------------------------------------------

FIXED_PARAMETERS = GenerationParameters(strength=0.75, steps=45, guidance=9.5)

BACKLIT_GUIDANCE_CEILING = 7.0
DRAMATIC_STEP_REDUCTION = 5
MIN_STEPS = 30

_P = GenerationParameters

PARAMETER_TABLE: dict[str, dict[str, GenerationParameters]] = {
    "photorealistic": {
        "natural": _P(0.75, 45, 9.5),
        "sunset": _P(0.75, 45, 9.0),
        "night": _P(0.72, 50, 8.5),
        "dramatic": _P(0.78, 48, 10.0),
        "backlit": _P(0.75, 45, 9.0),
    },
    "illustration": {
        "natural": _P(0.85, 40, 8.0),
        "sunset": _P(0.85, 40, 8.0),
        "night": _P(0.85, 42, 7.5),
        "dramatic": _P(0.88, 44, 9.0),
        "backlit": _P(0.85, 40, 8.5),
    },
    "anime": {
        "natural": _P(0.88, 38, 8.0),
        "sunset": _P(0.88, 38, 8.0),
        "night": _P(0.88, 40, 7.5),
        "dramatic": _P(0.90, 42, 9.0),
        "backlit": _P(0.88, 38, 8.5),
    },
    "watercolor": {
        "natural": _P(0.82, 40, 7.0),
        "sunset": _P(0.82, 40, 7.0),
        "night": _P(0.82, 42, 6.5),
        "dramatic": _P(0.85, 44, 8.0),
        "backlit": _P(0.82, 40, 7.5),
    },
}

del _P


# ---------------------------------------------------------------------------
# Key resolution.
# ---------------------------------------------------------------------------


def _resolve(value: str | None, table: dict, aliases: dict[str, str], default: str) -> str:
    """Map a form value (English key or Japanese label) onto a table key.

    Unknown and empty values resolve to *default*.
    """
    if not value or not value.strip():
        return default
    key = value.strip()
    key = aliases.get(key, key.lower())
    if key not in table:
        logger.debug(f"Unknown key {value!r}, falling back to {default!r}")
        return default
    return key


def resolve_style(style: str | None) -> str:
    """Resolve a style to a :data:`STYLE_TAGS` key (fallback: photorealistic)."""
    return _resolve(style, STYLE_TAGS, STYLE_ALIASES, DEFAULT_STYLE)


def resolve_lighting(lighting: str | None) -> str:
    """Resolve a lighting choice to a :data:`LIGHTING_TAGS` key (fallback: natural)."""
    return _resolve(lighting, LIGHTING_TAGS, LIGHTING_ALIASES, DEFAULT_LIGHTING)


def resolve_composition(composition: str | None) -> str:
    """Resolve a composition to a :data:`COMPOSITION_TAGS` key (fallback: full view)."""
    return _resolve(composition, COMPOSITION_TAGS, COMPOSITION_ALIASES, DEFAULT_COMPOSITION)


# ---------------------------------------------------------------------------
# Prompt assembly.
# ---------------------------------------------------------------------------


def normalize_options(options: GenerationOptions) -> GenerationOptions:
    """Return *options* with mode-dependent preconditions enforced.

    Image-centered mode routes to a different collaborator with a fixed
    template, so auto-prompt is always switched off for it regardless of
    what the caller sent.
    """
    if options.is_image_centered and options.auto_prompt:
        logger.info("Auto-prompt disabled for image-centered mode")
        return dataclasses.replace(options, auto_prompt=False)
    return options


def building_instruction(options: GenerationOptions) -> str:
    """Return the building segment for *options*.

    For ``other`` the visitor's text is used verbatim, untranslated; a blank
    ``other`` value yields an empty segment.
    """
    if options.building is Building.OTHER:
        return options.other_building.strip()
    return BUILDING_PROMPTS[options.building]


def join_segments(segments: list[str | None]) -> str:
    """Drop blank segments and join the rest with :data:`SEGMENT_SEPARATOR`."""
    return SEGMENT_SEPARATOR.join(s for s in segments if s and s.strip())


def build_image_centered_prompt(free_text: str) -> str:
    """Compile the fixed image-centered template plus the visitor's request."""
    stripped = free_text.strip()
    if not stripped:
        return IMAGE_CENTERED_TEMPLATE
    return f"{IMAGE_CENTERED_TEMPLATE}\n\nUser request: {stripped}"


def build_prompt(options: GenerationOptions, expansion: str | None = None) -> str:
    """Compile the final prompt for *options*.

    Args:
        options: The visitor's choices.  Callers should pass them through
            :func:`normalize_options` first.
        expansion: Language-model output for auto-prompt.  Required when
            ``options.auto_prompt`` is set, forbidden in image-centered mode.

    Returns:
        The compiled prompt.  Never empty.

    Raises:
        ValueError: If *expansion* is missing for auto-prompt, or supplied in
            image-centered mode.
    """
    if options.is_image_centered:
        if expansion is not None:
            raise ValueError("Auto-prompt expansion is not available in image-centered mode")
        return build_image_centered_prompt(options.free_text)

    if options.auto_prompt and not (expansion and expansion.strip()):
        raise ValueError("Auto-prompt is enabled but no expansion text was supplied")

    segments = [
        SCENE_BASE,
        MODIFICATION_INSTRUCTION,
        building_instruction(options),
        MODE_INSTRUCTIONS.get(options.image_mode),
        STYLE_TAGS[resolve_style(options.style)],
        LIGHTING_TAGS[resolve_lighting(options.lighting)],
        COMPOSITION_TAGS[resolve_composition(options.composition)],
        VISIBILITY_TAG,
        expansion.strip() if options.auto_prompt and expansion else None,
        options.free_text.strip(),
    ]
    return join_segments(segments)


# ---------------------------------------------------------------------------
# Negative prompt and parameter selection.
# ---------------------------------------------------------------------------


def select_negative_prompt(style: str | None = None) -> str:
    """Return the comma-joined exclusion list for *style*.

    Unknown styles fall back to the photorealistic list.
    """
    return NEGATIVE_PROMPTS[resolve_style(style)]


def apply_safety_tweaks(
    params: GenerationParameters,
    style: str | None,
    lighting: str | None,
) -> GenerationParameters:
    """Apply the lighting-dependent caps to *params*.

    - backlit: guidance is capped at :data:`BACKLIT_GUIDANCE_CEILING`
    - dramatic: steps are capped at the table value for this cell minus
      :data:`DRAMATIC_STEP_REDUCTION`, and never drop below :data:`MIN_STEPS`

    The caps are anchored to the table rather than to *params*, so the
    function is idempotent.
    """
    style_key = resolve_style(style)
    lighting_key = resolve_lighting(lighting)

    guidance = params.guidance
    steps = params.steps

    if lighting_key == "backlit":
        guidance = min(guidance, BACKLIT_GUIDANCE_CEILING)

    if lighting_key == "dramatic":
        table_steps = PARAMETER_TABLE[style_key][lighting_key].steps
        steps = max(MIN_STEPS, min(steps, table_steps - DRAMATIC_STEP_REDUCTION))

    return dataclasses.replace(params, guidance=guidance, steps=steps)


def select_parameters(
    mode: ImageMode | str,
    style: str | None = None,
    lighting: str | None = None,
) -> GenerationParameters | None:
    """Select inpainting parameters for a mode and optional style/lighting.

    Returns:
        ``None`` for image-centered mode, :data:`FIXED_PARAMETERS` when neither
        style nor lighting is given, otherwise the tweaked table cell.
    """
    if ImageMode(mode) is ImageMode.IMAGE_CENTERED:
        return None

    if style is None and lighting is None:
        return FIXED_PARAMETERS

    style_key = resolve_style(style)
    lighting_key = resolve_lighting(lighting)
    params = apply_safety_tweaks(PARAMETER_TABLE[style_key][lighting_key], style_key, lighting_key)
    params.validate()
    return params


def build_generation_request(
    options: GenerationOptions,
    expansion: str | None = None,
) -> GenerationRequest:
    """Assemble prompt, negative prompt and parameters into a request.

    Image payloads are not attached here; the generation service adds them
    for the inpainting target.
    """
    options = normalize_options(options)
    prompt = build_prompt(options, expansion)

    if options.is_image_centered:
        return GenerationRequest(prompt=prompt, target="text-to-image")

    return GenerationRequest(
        prompt=prompt,
        target="inpainting",
        negative_prompt=select_negative_prompt(options.style),
        parameters=select_parameters(options.image_mode, options.style, options.lighting),
    )
