"""Integration tests for yumemachi.api.main - FastAPI REST API endpoints.

All tests use the FastAPI TestClient with fake collaborators installed on
``app.state`` so that no vendor is contacted.  Tests cover every endpoint:

- ``GET /`` - HTML page serving.
- ``GET /static/js/kiosk.js`` - Screen wiring script.
- ``GET /api/config`` - Choice lists and limits.
- ``POST /api/prompt/compile`` - Request preview.
- ``POST /api/translate-prompt`` - Auto-prompt expansion.
- ``POST /api/generate`` - Image generation and error mapping.
- ``POST /api/send-email`` - Confirmation email.
- ``POST /api/session/transition`` - Screen transitions.
"""

from __future__ import annotations

import httpx

from yumemachi.api.main import app
from yumemachi.core.errors import CollaboratorError
from yumemachi.core.generation import GenerationService
from yumemachi.core.mailer import EmailSummary, Mailer
from yumemachi.core.prompt_builder import BUILDING_PROMPTS, FIXED_PARAMETERS, SCENE_BASE
from yumemachi.core.prompt_expander import PromptExpander
from yumemachi.core.models import Building, GenerationOptions
from yumemachi.core.session import KioskSession


def _fresh_session() -> dict[str, str]:
    return KioskSession().start().to_storage()


# ---------------------------------------------------------------------------
# Index page and configuration.
# ---------------------------------------------------------------------------


class TestIndexPage:
    """Test GET / - kiosk HTML page."""

    def test_index_returns_html(self, test_client):
        resp = test_client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "ゆめまちキャンバス" in resp.text


class TestKioskScript:
    """Test GET /static/js/kiosk.js - screen wiring served to the kiosk."""

    def test_script_served(self, test_client):
        resp = test_client.get("/static/js/kiosk.js")
        assert resp.status_code == 200

    def test_no_html_injection_sinks(self, test_client):
        """Visitor text reaches the page only through textContent."""
        script = test_client.get("/static/js/kiosk.js").text
        assert "innerHTML" not in script
        assert "dd.textContent = value" in script

    def test_image_centered_disables_auto_prompt(self, test_client):
        script = test_client.get("/static/js/kiosk.js").text
        assert "input[name=auto_prompt]" in script
        assert 'mode.value === "image-centered"' in script
        assert "toggle.disabled = imageCentered" in script

    def test_summary_labels_match_email(self, test_client):
        """The confirm screen renders modes and buildings with the email's labels."""
        data = test_client.get("/api/config").json()
        for mode in data["image_modes"]:
            summary = EmailSummary.from_options(GenerationOptions(image_mode=mode["id"]))
            assert summary.image_mode == mode["label"]
        for building in data["buildings"]:
            summary = EmailSummary.from_options(GenerationOptions(building=building["id"]))
            assert summary.building == building["label"]


class TestGetConfig:
    """Test GET /api/config."""

    def test_choice_lists(self, test_client):
        data = test_client.get("/api/config").json()
        assert [m["id"] for m in data["image_modes"]] == [
            "faithful",
            "modern",
            "creative",
            "image-centered",
        ]
        assert {"id": "other", "label": "その他"} in data["buildings"]
        assert {"id": "anime", "label": "アニメ風", "default": False} in data["styles"]
        assert any(s["default"] for s in data["lightings"])

    def test_limits(self, test_client):
        data = test_client.get("/api/config").json()
        assert data["limits"] == {"free_text": 100, "other_building": 30, "nickname": 20}

    def test_adapters_listed(self, test_client):
        adapters = {a["name"]: a for a in test_client.get("/api/config").json()["adapters"]}
        assert adapters["fal-inpainting"]["model_type"] == "inpainting"
        assert adapters["openai-image"]["model_type"] == "text-to-image"


# ---------------------------------------------------------------------------
# Prompt preview and translation.
# ---------------------------------------------------------------------------


class TestCompilePrompt:
    """Test POST /api/prompt/compile."""

    def test_compile(self, test_client, fake_expander, fake_inpainting):
        resp = test_client.post(
            "/api/prompt/compile", json={"free_text": "親子で遊べる噴水広場", "building": "fountain"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["prompt"].startswith(SCENE_BASE)
        assert BUILDING_PROMPTS[Building.FOUNTAIN] in data["prompt"]
        assert data["parameters"] == {"strength": 0.75, "steps": 45, "guidance": 9.5}
        assert data["target"] == "inpainting"
        assert data["expansion_pending"] is False
        assert fake_expander.calls == []
        assert fake_inpainting.requests == []

    def test_auto_prompt_preview_makes_no_calls(self, test_client, fake_expander):
        resp = test_client.post("/api/prompt/compile", json={"free_text": "噴水", "auto_prompt": True})
        assert resp.json()["expansion_pending"] is True
        assert fake_expander.calls == []

    def test_too_long_is_400(self, test_client):
        resp = test_client.post("/api/prompt/compile", json={"free_text": "あ" * 101})
        assert resp.status_code == 400


class TestTranslatePrompt:
    """Test POST /api/translate-prompt."""

    def test_success(self, test_client, fake_expander):
        resp = test_client.post("/api/translate-prompt", json={"text": "噴水"})
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "prompt": fake_expander.result,
            "original_text": "噴水",
        }

    def test_empty_completion_is_502(self, test_client, fake_expander):
        fake_expander.result = ""
        resp = test_client.post("/api/translate-prompt", json={"text": "噴水"})
        assert resp.status_code == 502
        assert resp.json()["detail"].startswith("Prompt generation failed:")

    def test_blank_text_is_400(self, test_client, test_config):
        app.state.prompt_expander = PromptExpander(test_config)
        resp = test_client.post("/api/translate-prompt", json={"text": "  "})
        assert resp.status_code == 400

    def test_missing_key_is_500(self, test_client, test_config):
        app.state.prompt_expander = PromptExpander(test_config)
        resp = test_client.post("/api/translate-prompt", json={"text": "噴水"})
        assert resp.status_code == 500


# ---------------------------------------------------------------------------
# Generation.
# ---------------------------------------------------------------------------


class TestGenerate:
    """Test POST /api/generate."""

    def test_success_without_session(self, test_client, fake_inpainting):
        resp = test_client.post("/api/generate", json={"free_text": "噴水"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["result"]["image_url"] == "https://cdn.example/out.jpg"
        assert data["request"]["parameters"] == {
            "strength": FIXED_PARAMETERS.strength,
            "steps": FIXED_PARAMETERS.steps,
            "guidance": FIXED_PARAMETERS.guidance,
        }
        assert "image_data_uri" not in data["request"]
        assert KioskSession.from_storage(data["session"]).screen.value == "result"
        assert len(fake_inpainting.requests) == 1

    def test_success_with_session(self, test_client):
        resp = test_client.post(
            "/api/generate", json={"free_text": "噴水", "session": _fresh_session()}
        )
        assert resp.status_code == 200
        assert '"result"' == resp.json()["session"]["screen"]

    def test_image_centered(self, test_client, fake_text_to_image):
        resp = test_client.post(
            "/api/generate", json={"free_text": "光", "image_mode": "image-centered"}
        )
        assert resp.status_code == 200
        assert resp.json()["request"]["target"] == "text-to-image"
        assert resp.json()["result"]["image_url"].startswith("data:image/png;base64,")
        assert len(fake_text_to_image.requests) == 1

    def test_validation_error_is_400(self, test_client, fake_inpainting):
        resp = test_client.post(
            "/api/generate", json={"building": "other", "other_building": "あ" * 31}
        )
        assert resp.status_code == 400
        assert fake_inpainting.requests == []

    def test_auto_prompt_without_text_is_400(self, test_client):
        resp = test_client.post("/api/generate", json={"auto_prompt": True})
        assert resp.status_code == 400

    def test_vendor_failure_is_502(self, test_client, fake_inpainting):
        fake_inpainting.error = CollaboratorError("fal.ai API error: 500")
        resp = test_client.post("/api/generate", json={"free_text": "噴水"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Image generation failed: fal.ai API error: 500"

    def test_empty_expansion_is_502_and_skips_image(
        self, test_client, fake_expander, fake_inpainting
    ):
        fake_expander.result = ""
        resp = test_client.post("/api/generate", json={"free_text": "噴水", "auto_prompt": True})
        assert resp.status_code == 502
        assert resp.json()["detail"].startswith("Prompt generation failed:")
        assert fake_inpainting.requests == []

    def test_wrong_screen_is_409(self, test_client):
        resp = test_client.post(
            "/api/generate",
            json={"free_text": "噴水", "session": KioskSession().to_storage()},
        )
        assert resp.status_code == 409

    def test_corrupt_session_is_400(self, test_client):
        resp = test_client.post(
            "/api/generate", json={"free_text": "噴水", "session": {"screen": "{oops"}}
        )
        assert resp.status_code == 400

    def test_missing_credentials_is_500(self, test_client, test_config, fake_expander):
        app.state.generation_service = GenerationService(test_config, expander=fake_expander)
        resp = test_client.post("/api/generate", json={"free_text": "噴水"})
        assert resp.status_code == 500
        assert "fal.ai API key" in resp.json()["detail"]

    def test_unknown_mode_is_422(self, test_client):
        resp = test_client.post("/api/generate", json={"image_mode": "surreal"})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Email and session transitions.
# ---------------------------------------------------------------------------


def _confirm_session(test_client) -> dict[str, str]:
    data = test_client.post("/api/generate", json={"free_text": "噴水"}).json()
    resp = test_client.post(
        "/api/session/transition", json={"action": "confirm", "session": data["session"]}
    )
    return resp.json()["session"]


class TestSendEmail:
    """Test POST /api/send-email."""

    def test_without_session(self, test_client):
        resp = test_client.post(
            "/api/send-email",
            json={"nickname": "ゆめ", "options": {"free_text": "噴水"}, "image_url": None},
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert "session" not in resp.json()

    def test_with_session_completes(self, test_client):
        resp = test_client.post(
            "/api/send-email", json={"nickname": "ゆめ", "session": _confirm_session(test_client)}
        )
        assert resp.status_code == 200
        session = KioskSession.from_storage(resp.json()["session"])
        assert session.screen.value == "complete"
        assert session.nickname == "ゆめ"

    def test_provider_failure_still_success(self, test_client, test_config):
        config = test_config.model_copy(update={"resend_api_key": "re_test"})
        transport = httpx.MockTransport(lambda r: httpx.Response(500, json={"message": "down"}))
        app.state.mailer = Mailer(config, transport=transport)

        resp = test_client.post("/api/send-email", json={"nickname": "ゆめ"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["debug"]["status"] == 500

    def test_session_not_on_confirm_is_409(self, test_client):
        resp = test_client.post(
            "/api/send-email", json={"nickname": "ゆめ", "session": _fresh_session()}
        )
        assert resp.status_code == 409

    def test_long_nickname_is_400(self, test_client):
        resp = test_client.post("/api/send-email", json={"nickname": "あ" * 21})
        assert resp.status_code == 400

    def test_mistyped_session_is_400(self, test_client):
        session = {
            "screen": '"confirm"',
            "generationOptions": '{"building": "other", "other_building": 5}',
            "generationResult": '{"success": true, "image_url": "https://cdn.example/out.jpg"}',
        }
        resp = test_client.post("/api/send-email", json={"nickname": "ゆめ", "session": session})
        assert resp.status_code == 400


class TestSessionTransition:
    """Test POST /api/session/transition."""

    def test_start(self, test_client):
        resp = test_client.post("/api/session/transition", json={"action": "start"})
        assert resp.status_code == 200
        assert resp.json()["screen"] == "image-display"

    def test_retry_keeps_options(self, test_client):
        data = test_client.post(
            "/api/generate", json={"free_text": "噴水", "building": "cafe-stand"}
        ).json()
        resp = test_client.post(
            "/api/session/transition", json={"action": "retry", "session": data["session"]}
        )
        session = KioskSession.from_storage(resp.json()["session"])
        assert session.screen.value == "image-display"
        assert session.options.building is Building.CAFE_STAND

    def test_reset(self, test_client):
        resp = test_client.post(
            "/api/session/transition",
            json={"action": "reset", "session": _confirm_session(test_client)},
        )
        assert resp.json()["session"] == {"screen": '"top"'}

    def test_illegal_transition_is_409(self, test_client):
        resp = test_client.post("/api/session/transition", json={"action": "confirm"})
        assert resp.status_code == 409
