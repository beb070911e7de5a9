"""Core functionality for the Yumemachi Canvas kiosk.

- **prompt_builder**: Pure prompt and parameter assembly
- **prompt_expander**: Auto-prompt via a chat-completion model
- **model_adapters** / **adapters**: Image vendor adapters and their registry
- **generation**: One generation attempt, end to end
- **mailer**: Confirmation email
- **session**: Typed kiosk session state
- **config**: Configuration loaded from YUMEMACHI_* environment variables

Usage Example
-------------
    from yumemachi.core import GenerationService, config
    from yumemachi.core.models import GenerationOptions

    service = GenerationService(config)
    outcome = await service.generate(
        GenerationOptions(free_text="親子で遊べる噴水広場", building="fountain")
    )
    print(outcome.result.image_url)
"""

# Import adapters to ensure they're registered
from yumemachi.core.adapters import FalInpaintingAdapter, OpenAIImageAdapter  # noqa: F401
from yumemachi.core.config import YumemachiConfig, config
from yumemachi.core.generation import GenerationOutcome, GenerationService
from yumemachi.core.mailer import EmailSummary, Mailer
from yumemachi.core.model_adapters import ImageAdapterBase, model_registry
from yumemachi.core.session import KioskSession, Screen

__all__ = [
    "EmailSummary",
    "GenerationOutcome",
    "GenerationService",
    "ImageAdapterBase",
    "KioskSession",
    "Mailer",
    "Screen",
    "YumemachiConfig",
    "config",
    "model_registry",
]
