"""Tests for yumemachi.api.models - Pydantic request validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from yumemachi.api.models import (
    EmailRequest,
    GenerateRequest,
    SessionTransitionRequest,
    TranslateRequest,
)
from yumemachi.core.models import Building, ImageMode


class TestGenerateRequest:
    def test_defaults(self):
        req = GenerateRequest()
        assert req.image_mode is ImageMode.FAITHFUL
        assert req.building is Building.FOUNTAIN
        assert req.session is None

    def test_to_options(self):
        req = GenerateRequest(
            free_text="噴水",
            image_mode="creative",
            building="other",
            other_building="ミニ動物園",
            style="アニメ風",
        )
        options = req.to_options()
        assert options.image_mode is ImageMode.CREATIVE
        assert options.other_building == "ミニ動物園"
        assert options.style == "アニメ風"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            GenerateRequest(image_mode="surreal")

    def test_long_text_accepted_for_domain_validation(self):
        """Length limits are checked by the service so they map to 400."""
        assert len(GenerateRequest(free_text="あ" * 150).free_text) == 150


class TestOtherRequests:
    def test_translate_requires_text(self):
        with pytest.raises(ValidationError):
            TranslateRequest()

    def test_email_defaults(self):
        req = EmailRequest()
        assert req.nickname == ""
        assert req.options is None

    def test_transition_action_literal(self):
        assert SessionTransitionRequest(action="retry").action == "retry"
        with pytest.raises(ValidationError):
            SessionTransitionRequest(action="teleport")
