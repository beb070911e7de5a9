"""Confirmation email through the Resend API.

After the visitor confirms, the service mails a plain-text summary of
their choices (and the generated image, as an attachment) to a fixed
recipient.  The visitor never sees the outcome: every failure is logged and
reported as success, with details only in the optional ``debug`` field.

Without a Resend API key the email is written to the log instead of sent.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx

from .config import YumemachiConfig
from .images import decode_data_uri, is_data_uri
from .models import Building, GenerationOptions
from .prompt_builder import BUILDING_NAMES_JA, IMAGE_MODE_NAMES_JA

logger = logging.getLogger(__name__)

NOT_ENTERED = "（未入力）"


@dataclass
class EmailSummary:
    """The confirm-screen summary, already rendered for display."""

    nickname: str
    image_mode: str
    building: str
    free_text: str
    auto_prompt: str

    @classmethod
    def from_options(cls, options: GenerationOptions | None, nickname: str = "") -> EmailSummary:
        """Render *options* the way the confirm screen shows them."""
        if options is None:
            return cls(
                nickname=nickname or NOT_ENTERED,
                image_mode="-",
                building="-",
                free_text=NOT_ENTERED,
                auto_prompt="未使用",
            )

        if options.building is Building.OTHER:
            building = options.other_building.strip() or BUILDING_NAMES_JA[Building.OTHER]
        else:
            building = BUILDING_NAMES_JA[options.building]

        return cls(
            nickname=nickname or NOT_ENTERED,
            image_mode=IMAGE_MODE_NAMES_JA[options.image_mode],
            building=building,
            free_text=options.free_text or NOT_ENTERED,
            auto_prompt="使用" if options.auto_prompt else "未使用",
        )

    def to_body(self) -> str:
        return (
            f"名前：{self.nickname}\n"
            f"生成タイプ：{self.image_mode}\n"
            f"建物：{self.building}\n"
            f"自由文：{self.free_text}\n"
            f"自動プロンプト：{self.auto_prompt}"
        )


@dataclass
class EmailOutcome:
    """Result reported to the caller. ``success`` is always True."""

    message: str
    success: bool = True
    debug: dict[str, Any] | None = field(default=None)


def attachment_filename(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"yumemachi_canvas_{stamp}.jpg"


class Mailer:
    """Email collaborator."""

    def __init__(
        self, config: YumemachiConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self._transport = transport

    async def _fetch_attachment(
        self, client: httpx.AsyncClient, image_url: str
    ) -> dict[str, str] | None:
        """Fetch *image_url* and return a Resend attachment, or None on failure."""
        try:
            if is_data_uri(image_url):
                content, _ = decode_data_uri(image_url)
            else:
                response = await client.get(image_url, follow_redirects=True)
                response.raise_for_status()
                content = response.content
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not fetch generated image, sending without attachment: {e}")
            return None

        filename = attachment_filename()
        logger.info(f"Attaching {filename} ({len(content)} bytes)")
        return {"filename": filename, "content": base64.b64encode(content).decode("ascii")}

    async def send(self, summary: EmailSummary, image_url: str | None = None) -> EmailOutcome:
        """Send the confirmation email. Never raises."""
        body = summary.to_body()

        if not self.config.resend_api_key:
            logger.info(
                f"Email (log only, no API key) to={self.config.email_to} "
                f"subject={self.config.email_subject!r} image={image_url or 'none'}\n{body}"
            )
            return EmailOutcome(message="Email recorded to log (no API key configured)")

        email_data: dict[str, Any] = {
            "from": self.config.email_from,
            "to": [self.config.email_to],
            "subject": self.config.email_subject,
            "text": body,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout, transport=self._transport
            ) as client:
                if image_url:
                    attachment = await self._fetch_attachment(client, image_url)
                    if attachment:
                        email_data["attachments"] = [attachment]

                response = await client.post(
                    f"{self.config.resend_base_url.rstrip('/')}/emails",
                    json=email_data,
                    headers={"Authorization": f"Bearer {self.config.resend_api_key}"},
                )
        except Exception as e:
            # Email never blocks the visitor's flow.
            logger.exception(f"Email send failed: {e}")
            return EmailOutcome(message=f"Email send attempted (error: {e})", debug={"error": str(e)})

        if response.is_success:
            logger.info(f"Email sent to {self.config.email_to}")
            return EmailOutcome(message="Email sent")

        try:
            error_body: Any = response.json()
        except ValueError:
            error_body = response.text
        logger.error(f"Resend API error: {response.status_code} {error_body}")
        return EmailOutcome(
            message="Email send attempted (provider error)",
            debug={"status": response.status_code, "error": error_body},
        )
