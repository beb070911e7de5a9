"""Typed kiosk session state.

The kiosk walks a visitor through five screens::

    top -> image-display -> result -> confirm -> complete
                 ^             |
                 +-- retry ----+

:class:`KioskSession` carries everything one screen hands to the next: the
submitted options, a summary of the assembled request, the result, and the
visitor's nickname.  It is never persisted server-side.  The browser keeps
it in ``sessionStorage`` and sends it back with each request, and
:meth:`KioskSession.to_storage` / :meth:`KioskSession.from_storage` are the
only places its shape is converted to or from strings.

Transitions return new instances and leave the original untouched, so a
failed generation attempt can simply discard the candidate state and the
visitor retries from exactly where they were.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import TypeAdapter

from .errors import SessionStateError
from .models import GenerationOptions, GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    """Kiosk screens in visiting order."""

    TOP = "top"
    IMAGE_DISPLAY = "image-display"
    RESULT = "result"
    CONFIRM = "confirm"
    COMPLETE = "complete"


# sessionStorage keys; every value stored under them is a JSON document.
STORAGE_KEYS = {
    "screen": "screen",
    "options": "generationOptions",
    "request": "generationRequest",
    "result": "generationResult",
    "nickname": "nickname",
}


@dataclass(frozen=True)
class KioskSession:
    """State carried between kiosk screens for one visitor."""

    screen: Screen = Screen.TOP
    options: GenerationOptions | None = None
    request: dict[str, Any] | None = None
    result: GenerationResult | None = None
    nickname: str = ""

    def require_screen(self, *screens: Screen) -> None:
        """Raise SessionStateError unless the session is on one of *screens*."""
        if self.screen not in screens:
            allowed = ", ".join(s.value for s in screens)
            raise SessionStateError(
                f"Cannot leave screen '{self.screen.value}' this way (expected: {allowed})"
            )

    # -- Transitions --------------------------------------------------------

    def start(self) -> KioskSession:
        """Begin a fresh visit on the image-display screen."""
        return KioskSession(screen=Screen.IMAGE_DISPLAY)

    def record_generation(
        self,
        options: GenerationOptions,
        request: GenerationRequest,
        result: GenerationResult,
    ) -> KioskSession:
        """Store a successful attempt and move to the result screen."""
        self.require_screen(Screen.IMAGE_DISPLAY)
        if not result.success:
            raise SessionStateError("Only successful results are recorded")
        return dataclasses.replace(
            self,
            screen=Screen.RESULT,
            options=options,
            request=request.summary(),
            result=result,
        )

    def retry(self) -> KioskSession:
        """Return to the options form, keeping the previous options."""
        self.require_screen(Screen.RESULT, Screen.CONFIRM)
        return dataclasses.replace(self, screen=Screen.IMAGE_DISPLAY)

    def confirm(self) -> KioskSession:
        """Move to the confirmation screen."""
        self.require_screen(Screen.RESULT)
        if self.result is None or not self.result.success:
            raise SessionStateError("No generated image to confirm")
        return dataclasses.replace(self, screen=Screen.CONFIRM)

    def complete(self, nickname: str) -> KioskSession:
        """Record the nickname and finish the visit."""
        self.require_screen(Screen.CONFIRM)
        return dataclasses.replace(self, screen=Screen.COMPLETE, nickname=nickname)

    def reset(self) -> KioskSession:
        """Discard everything and go back to the top screen."""
        return KioskSession()

    # -- Serialization boundary ---------------------------------------------

    def to_storage(self) -> dict[str, str]:
        """Serialize to flat ``sessionStorage`` entries.

        Only populated fields are written, so a reset session serializes to
        just the screen key.
        """
        storage = {STORAGE_KEYS["screen"]: json.dumps(self.screen.value)}
        if self.options is not None:
            storage[STORAGE_KEYS["options"]] = json.dumps(
                self.options.to_dict(), ensure_ascii=False
            )
        if self.request is not None:
            storage[STORAGE_KEYS["request"]] = json.dumps(self.request, ensure_ascii=False)
        if self.result is not None:
            storage[STORAGE_KEYS["result"]] = json.dumps(self.result.to_dict(), ensure_ascii=False)
        if self.nickname:
            storage[STORAGE_KEYS["nickname"]] = json.dumps(self.nickname, ensure_ascii=False)
        return storage

    @classmethod
    def from_storage(cls, storage: dict[str, str]) -> KioskSession:
        """Rebuild a session from ``sessionStorage`` entries.

        Every entry is parsed and type-checked here, so a session that
        loads is safe to hand to the mailer and the generation service.

        Raises:
            SessionStateError: If an entry is not valid JSON, has unknown
                fields, or holds a value of the wrong type
        """
        values: dict[str, Any] = {}
        try:
            for name, adapter in _STORAGE_ADAPTERS.items():
                raw = storage.get(STORAGE_KEYS[name])
                if raw is not None:
                    values[name] = adapter.validate_json(raw)
        except ValueError as e:  # pydantic.ValidationError included
            logger.warning(f"Discarding unreadable session storage: {e}")
            raise SessionStateError(f"Invalid session data: {e}") from e

        return cls(
            screen=values.get("screen") or Screen.TOP,
            options=values.get("options"),
            request=values.get("request"),
            result=values.get("result"),
            nickname=values.get("nickname") or "",
        )


# One validator per storage key, applied to the raw JSON string.
_STORAGE_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "screen": TypeAdapter(Screen),
    "options": TypeAdapter(GenerationOptions),
    "request": TypeAdapter(dict[str, Any]),
    "result": TypeAdapter(GenerationResult),
    "nickname": TypeAdapter(str | None),
}
