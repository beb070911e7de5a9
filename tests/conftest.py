"""Shared pytest fixtures for Yumemachi Canvas tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from yumemachi.core.config import YumemachiConfig
from yumemachi.core.errors import PromptGenerationError
from yumemachi.core.generation import GenerationService
from yumemachi.core.mailer import Mailer
from yumemachi.core.model_adapters import ImageAdapterBase
from yumemachi.core.models import GenerationOptions, GenerationRequest


class FakeExpander:
    """Stands in for PromptExpander; records every call."""

    def __init__(self, result: str = "A gentle family fountain with shallow play pools"):
        self.result = result
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def expand(self, text: str) -> str:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        if not self.result:
            raise PromptGenerationError("The language model returned an empty prompt")
        return self.result


class FakeImageAdapter(ImageAdapterBase):
    """Image adapter that records requests instead of calling a vendor."""

    name = "fake-image"
    description = "In-memory test adapter"

    def __init__(self, config, model_type="inpainting", image_url="https://cdn.example/out.jpg"):
        super().__init__(config)
        self.model_type = model_type
        self.image_url = image_url
        self.error: Exception | None = None
        self.requests: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> str:
        self.check_request(request)
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.image_url


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def base_image_path(temp_dir: Path) -> Path:
    """Write a small plaza stand-in photo and return its path."""
    path = temp_dir / "base-image.jpg"
    Image.new("RGB", (64, 48), (120, 140, 160)).save(path, format="JPEG")
    return path


@pytest.fixture
def test_config(temp_dir: Path, base_image_path: Path) -> YumemachiConfig:
    """Create a test configuration with no credentials and temporary assets.

    The mask path points at a file that does not exist, so the service
    synthesizes the plaza mask.
    """
    return YumemachiConfig(
        _env_file=None,
        fal_key=None,
        openai_api_key=None,
        resend_api_key=None,
        base_image_path=base_image_path,
        mask_image_path=temp_dir / "mask-image.png",
    )


@pytest.fixture
def fake_expander() -> FakeExpander:
    return FakeExpander()


@pytest.fixture
def fake_inpainting(test_config: YumemachiConfig) -> FakeImageAdapter:
    return FakeImageAdapter(test_config)


@pytest.fixture
def fake_text_to_image(test_config: YumemachiConfig) -> FakeImageAdapter:
    return FakeImageAdapter(
        test_config, model_type="text-to-image", image_url="data:image/png;base64,iVBORw0KGgo="
    )


@pytest.fixture
def generation_service(
    test_config: YumemachiConfig,
    fake_expander: FakeExpander,
    fake_inpainting: FakeImageAdapter,
    fake_text_to_image: FakeImageAdapter,
) -> GenerationService:
    """GenerationService wired to in-memory collaborators."""
    return GenerationService(
        test_config,
        expander=fake_expander,
        adapters={"inpainting": fake_inpainting, "text-to-image": fake_text_to_image},
    )


@pytest.fixture
def test_client(
    test_config: YumemachiConfig,
    fake_expander: FakeExpander,
    generation_service: GenerationService,
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with every vendor collaborator replaced by a fake.

    The lifespan runs first and installs the real collaborators; they are
    swapped out on ``app.state`` before any request is made.
    """
    from yumemachi.api.main import app

    with TestClient(app) as client:
        app.state.prompt_expander = fake_expander
        app.state.generation_service = generation_service
        app.state.mailer = Mailer(test_config)
        yield client


@pytest.fixture
def fountain_options() -> GenerationOptions:
    return GenerationOptions(free_text="親子で遊べる噴水広場", building="fountain")
