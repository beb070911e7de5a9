"""Configuration management for the Yumemachi Canvas kiosk service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the YUMEMACHI_ prefix,
allowing vendor credentials and asset locations to change without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (YUMEMACHI_* prefix)
2. .env file in the project root
3. Default values defined in YumemachiConfig

Example .env file:
    YUMEMACHI_FAL_KEY=fal-xxxxxxxx
    YUMEMACHI_OPENAI_API_KEY=sk-xxxxxxxx
    YUMEMACHI_RESEND_API_KEY=re_xxxxxxxx
    YUMEMACHI_EMAIL_TO=kiosk-owner@example.com

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Route handlers and collaborators read from it unless a custom instance is
passed in explicitly (as the tests do).

Vendor Credentials
------------------
All three credentials are optional at load time:
- fal_key: required by the inpainting adapter when it is actually called
- openai_api_key: required by auto-prompt and the image-centered adapter
- resend_api_key: when absent, emails are logged instead of sent

A missing credential therefore surfaces as a request-time error on the
endpoint that needs it, never as a startup failure.

See Also
--------
- YumemachiConfig: Full configuration class documentation
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class YumemachiConfig(BaseSettings):
    """Main configuration for the Yumemachi Canvas service.

    Values are loaded from environment variables with the YUMEMACHI_ prefix,
    with fallback to the defaults defined here.

    Attributes
    ----------
    Vendor Credentials:
        fal_key : str | None
            fal.ai API key used by the inpainting adapter
        openai_api_key : str | None
            OpenAI API key used for prompt expansion and direct generation
        resend_api_key : str | None
            Resend API key; emails are only logged when unset

    Inpainting Settings:
        fal_base_url : str
            Base URL of the synchronous fal.ai endpoint
        inpainting_model_id : str
            fal.ai model path for masked inpainting

    OpenAI Settings:
        openai_base_url : str | None
            Override for the OpenAI API base URL (proxies, tests)
        prompt_model : str
            Chat model used to expand free text into an inpainting prompt
        prompt_temperature : float
            Sampling temperature for prompt expansion
        creative_image_model : str
            Image model used by image-centered mode
        creative_image_size : str
            Output size requested from the image model
        creative_image_quality : str
            Quality tier requested from the image model

    Email Settings:
        resend_base_url : str
            Base URL of the Resend API
        email_from, email_to, email_subject : str
            Envelope and subject for the confirmation email

    Network:
        request_timeout : float | None
            Timeout in seconds for vendor calls (None = wait indefinitely)

    Assets:
        static_dir, templates_dir : Path
            Static asset and HTML template directories
        base_image_path : Path
            The plaza photo every generation starts from
        mask_image_path : Path
            Inpainting mask (white = editable); synthesized when missing

    Server:
        server_host : str
            Server bind address
        server_port : int
            Server port (1024-65535)
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root log level applied by the CLI entry point

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = YumemachiConfig(
        ...     fal_key="test-key",
        ...     request_timeout=30.0,
        ... )

    Use the global configuration instance:

        >>> from yumemachi.core.config import config
        >>> print(config.inpainting_model_id)
        'fal-ai/flux-general/inpainting'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="YUMEMACHI_",
        case_sensitive=False,
    )

    # Vendor credentials
    fal_key: str | None = Field(
        default=None,
        description="fal.ai API key for the inpainting adapter",
    )
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key for prompt expansion and image-centered mode",
    )
    resend_api_key: str | None = Field(
        default=None,
        description="Resend API key (emails are only logged when unset)",
    )

    # fal.ai inpainting
    fal_base_url: str = Field(
        default="https://fal.run",
        description="Base URL of the synchronous fal.ai endpoint",
    )
    inpainting_model_id: str = Field(
        default="fal-ai/flux-general/inpainting",
        description="fal.ai model path used for masked inpainting",
    )

    # OpenAI
    openai_base_url: str | None = Field(
        default=None,
        description="Override for the OpenAI API base URL",
    )
    prompt_model: str = Field(
        default="gpt-4.1-mini",
        description="Chat model used for auto-prompt expansion",
    )
    prompt_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for auto-prompt expansion",
    )
    creative_image_model: str = Field(
        default="gpt-image-1",
        description="Image model used by image-centered mode",
    )
    creative_image_size: str = Field(default="1024x1024")
    creative_image_quality: str = Field(default="high")

    # Email
    resend_base_url: str = Field(default="https://api.resend.com")
    email_from: str = Field(default="Yumecan <onboarding@resend.dev>")
    email_to: str = Field(
        default="kiosk@example.com",
        description="Fixed recipient of every confirmation email",
    )
    email_subject: str = Field(default="<Yumecan> ゆめきゃん画像生成")

    # Network
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Timeout in seconds for vendor calls (None = no timeout)",
    )

    # Assets
    static_dir: Path = Field(default=_PACKAGE_DIR / "static")
    templates_dir: Path = Field(default=_PACKAGE_DIR / "templates")
    base_image_path: Path = Field(
        default=_PACKAGE_DIR / "static" / "images" / "base-image.jpg",
        description="Plaza photo every generation starts from",
    )
    mask_image_path: Path = Field(
        default=_PACKAGE_DIR / "static" / "images" / "mask-image.png",
        description="Inpainting mask (white = editable, black = fixed)",
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8787,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


# Global configuration instance
# Loads values from environment variables (YUMEMACHI_* prefix) and .env file.
config = YumemachiConfig()
