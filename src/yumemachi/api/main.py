"""Yumemachi Canvas - FastAPI Application.

This module is the single entry point for the kiosk web service.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application follows a stateless REST pattern:

- **Configuration** comes from ``YUMEMACHI_*`` environment variables via
  :data:`~yumemachi.core.config.config`; the kiosk's choice lists are served
  to the frontend via ``GET /api/config``.
- **Image generation** is performed by
  :class:`~yumemachi.core.generation.GenerationService`, which assembles the
  prompt and calls the fal.ai or OpenAI adapter.
- **Session state** is never stored server-side.  The browser sends its
  ``sessionStorage`` entries with each request and receives the updated
  entries in the response.
- **Static assets** (CSS, JS, the plaza photo and mask) are served by
  FastAPI's ``StaticFiles`` middleware.
- **The HTML page** is served as a raw ``HTMLResponse``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Serve the kiosk HTML page
GET       ``/api/config``               Buildings, modes, styles, limits
POST      ``/api/prompt/compile``       Preview the assembled request
POST      ``/api/translate-prompt``     Expand free text with the LLM
POST      ``/api/generate``             Generate one image
POST      ``/api/send-email``           Send the confirmation email
POST      ``/api/session/transition``   Apply a screen transition
========  ============================  ====================================

Error mapping
-------------
- :class:`~yumemachi.core.errors.ValidationError` -> 400
- :class:`~yumemachi.core.errors.SessionStateError` -> 409
- :class:`~yumemachi.core.errors.MissingCredentialsError` -> 500
- :class:`~yumemachi.core.errors.CollaboratorError` -> 502

Usage
-----
CLI (installed entry point)::

    yumemachi

Direct invocation::

    python -m yumemachi.api.main
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from yumemachi import __version__
from yumemachi.api.models import (
    EmailRequest,
    GenerateRequest,
    SessionTransitionRequest,
    TranslateRequest,
)
from yumemachi.core.config import config
from yumemachi.core.errors import (
    CollaboratorError,
    MissingCredentialsError,
    PromptGenerationError,
    SessionStateError,
    ValidationError,
)
from yumemachi.core.generation import GenerationService
from yumemachi.core.mailer import EmailSummary, Mailer
from yumemachi.core.model_adapters import model_registry
from yumemachi.core.models import (
    FREE_TEXT_MAX_LENGTH,
    NICKNAME_MAX_LENGTH,
    OTHER_BUILDING_MAX_LENGTH,
    Building,
    ImageMode,
)
from yumemachi.core.prompt_builder import (
    BUILDING_NAMES_JA,
    COMPOSITION_ALIASES,
    DEFAULT_COMPOSITION,
    DEFAULT_LIGHTING,
    DEFAULT_STYLE,
    IMAGE_MODE_NAMES_JA,
    LIGHTING_ALIASES,
    STYLE_ALIASES,
    build_generation_request,
    normalize_options,
)
from yumemachi.core.prompt_expander import PromptExpander
from yumemachi.core.session import KioskSession
from yumemachi.core.validation import validate_nickname, validate_options

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle - collaborator setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates the prompt expander, the generation service and the mailer
        and stores them on ``app.state``.  No vendor is contacted until the
        first request that needs it, so missing credentials only fail the
        endpoints that use them.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    expander = PromptExpander(config)
    app.state.prompt_expander = expander
    service = GenerationService(config, expander=expander)
    app.state.generation_service = service
    app.state.mailer = Mailer(config)
    logger.info("Collaborators initialised (no vendor contacted yet).")

    yield  # Application runs here.

    logger.info("Shutting down.")
    await service.aclose()
    await expander.aclose()


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Yumemachi Canvas",
    description="Kiosk API that reimagines a station-front plaza with AI image generation.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# The plaza photo and mask are read from disk by the service, so a missing
# static directory only disables asset serving.
if config.static_dir.is_dir():
    app.mount("/static", StaticFiles(directory=str(config.static_dir)), name="static")


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _load_session(storage: dict[str, str] | None) -> KioskSession | None:
    if storage is None:
        return None
    try:
        return KioskSession.from_storage(storage)
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _choices(aliases: dict[str, str], default: str) -> list[dict]:
    """Turn a Japanese-label alias table into ``[{id, label, default}]``."""
    return [
        {"id": key, "label": label, "default": key == default}
        for label, key in aliases.items()
    ]


def _http_error(e: Exception, failure_prefix: str) -> HTTPException:
    """Map a core exception to the HTTP error the frontend expects."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, SessionStateError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, MissingCredentialsError):
        return HTTPException(status_code=500, detail=str(e))
    if isinstance(e, CollaboratorError):
        return HTTPException(status_code=502, detail=f"{failure_prefix}: {e}")
    return HTTPException(status_code=500, detail=f"{failure_prefix}: {e}")


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the kiosk HTML page.

    Raises:
        HTTPException: 404 if ``index.html`` is not found.
    """
    index_path = config.templates_dir / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise HTTPException(status_code=404, detail="index.html not found")


@app.get("/api/config")
async def get_config() -> dict:
    """Return the kiosk's choice lists and character limits.

    Returns:
        Dictionary with keys ``version``, ``image_modes``, ``buildings``,
        ``styles``, ``lightings``, ``compositions``, ``adapters`` and
        ``limits``.
    """
    return {
        "version": __version__,
        "image_modes": [
            {"id": mode.value, "label": IMAGE_MODE_NAMES_JA[mode]} for mode in ImageMode
        ],
        "buildings": [
            {"id": building.value, "label": BUILDING_NAMES_JA[building]}
            for building in Building
        ],
        "styles": _choices(STYLE_ALIASES, DEFAULT_STYLE),
        "lightings": _choices(LIGHTING_ALIASES, DEFAULT_LIGHTING),
        "compositions": _choices(COMPOSITION_ALIASES, DEFAULT_COMPOSITION),
        "adapters": [
            model_registry.get_adapter_info(name) for name in model_registry.list_available()
        ],
        "limits": {
            "free_text": FREE_TEXT_MAX_LENGTH,
            "other_building": OTHER_BUILDING_MAX_LENGTH,
            "nickname": NICKNAME_MAX_LENGTH,
        },
    }


@app.post("/api/prompt/compile")
async def compile_prompt(req: GenerateRequest) -> dict:
    """Preview the assembled request without calling any vendor.

    With auto-prompt on, the preview is assembled from the raw free text and
    ``expansion_pending`` is set, since the real expansion needs the
    language model.

    Returns:
        Dictionary with ``prompt``, ``target``, ``negative_prompt``,
        ``parameters`` and ``expansion_pending``.

    Raises:
        HTTPException: 400 for invalid options.
    """
    options = normalize_options(req.to_options())
    try:
        validate_options(options)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    pending = options.auto_prompt
    if pending:
        options = dataclasses.replace(options, auto_prompt=False)

    request = build_generation_request(options)
    return {**request.summary(), "expansion_pending": pending}


@app.post("/api/translate-prompt")
async def translate_prompt(req: TranslateRequest) -> dict:
    """Expand free text into an English inpainting prompt.

    Returns:
        Dictionary with ``success``, ``prompt`` and ``original_text``.

    Raises:
        HTTPException: 400 for blank text, 500 without an OpenAI key,
            502 when the language model fails.
    """
    expander: PromptExpander = app.state.prompt_expander
    try:
        prompt = await expander.expand(req.text)
    except (ValidationError, CollaboratorError) as e:
        logger.error(f"Prompt translation failed: {e}")
        raise _http_error(e, "Prompt generation failed") from e

    return {"success": True, "prompt": prompt, "original_text": req.text}


@app.post("/api/generate")
async def generate_image(req: GenerateRequest) -> dict:
    """Generate one image from the visitor's options.

    This endpoint:

    1. Restores the session from ``req.session`` (or starts a fresh one).
    2. Validates the options before any network call.
    3. Expands the free text when auto-prompt is on.
    4. Assembles the prompt and parameters.
    5. Calls fal.ai inpainting, or OpenAI for image-centered mode.

    Returns:
        Dictionary with ``success``, ``result``, ``request`` (summary
        without image payloads) and ``session`` (updated storage entries).

    Raises:
        HTTPException: 400 for invalid options or session data, 409 when
            the session is not on the image-display screen, 500 for missing
            credentials, 502 when a vendor call fails.
    """
    session = _load_session(req.session)
    service: GenerationService = app.state.generation_service

    try:
        outcome = await service.generate(req.to_options(), session)
    except PromptGenerationError as e:
        logger.error(f"Generation aborted, prompt expansion failed: {e}")
        raise _http_error(e, "Prompt generation failed") from e
    except (ValidationError, SessionStateError, CollaboratorError) as e:
        logger.error(f"Generation failed: {e}")
        raise _http_error(e, "Image generation failed") from e
    except FileNotFoundError as e:
        logger.error(f"Plaza image missing: {e}")
        raise HTTPException(status_code=500, detail=f"Image generation failed: {e}") from e

    return {
        "success": True,
        "result": outcome.result.to_dict(),
        "request": outcome.request.summary(),
        "session": outcome.session.to_storage(),
    }


@app.post("/api/send-email")
async def send_email(req: EmailRequest) -> dict:
    """Send the confirmation email.

    The visitor's flow never depends on delivery: once the request is
    valid, the response is always ``success: true``, with provider or
    transport errors reported only in ``debug``.

    Returns:
        Dictionary with ``success``, ``message``, optional ``debug`` and,
        when a session was sent, the completed ``session``.

    Raises:
        HTTPException: 400 for an over-long nickname or unreadable session,
            409 when the session is not on the confirm screen.
    """
    try:
        nickname = validate_nickname(req.nickname)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    session = _load_session(req.session)
    completed = None
    if session is not None:
        try:
            completed = session.complete(nickname)
        except SessionStateError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        options = session.options
        image_url = session.result.image_url if session.result else None
    else:
        options = req.options.to_options() if req.options else None
        image_url = req.image_url

    mailer: Mailer = app.state.mailer
    outcome = await mailer.send(EmailSummary.from_options(options, nickname), image_url)

    response: dict = {"success": outcome.success, "message": outcome.message}
    if outcome.debug is not None:
        response["debug"] = outcome.debug
    if completed is not None:
        response["session"] = completed.to_storage()
    return response


@app.post("/api/session/transition")
async def transition_session(req: SessionTransitionRequest) -> dict:
    """Apply a screen transition and return the new storage entries.

    Raises:
        HTTPException: 400 for unreadable session data, 409 for a
            transition the current screen does not allow.
    """
    session = _load_session(req.session) or KioskSession()
    try:
        updated = getattr(session, req.action)()
    except SessionStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    logger.info(f"Session {req.action}: {session.screen.value} -> {updated.screen.value}")
    return {"screen": updated.screen.value, "session": updated.to_storage()}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from
    :data:`~yumemachi.core.config.config` (``YUMEMACHI_SERVER_HOST``,
    ``YUMEMACHI_SERVER_PORT``, ``YUMEMACHI_LOG_LEVEL``).  Defaults to
    ``0.0.0.0:8787``.

    This function is registered as the ``yumemachi`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "yumemachi.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
