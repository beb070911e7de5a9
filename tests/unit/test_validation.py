"""Unit tests for validation utilities."""

import pytest

from yumemachi.core.errors import ValidationError, YumemachiError
from yumemachi.core.models import GenerationOptions, GenerationParameters
from yumemachi.core.validation import (
    validate_nickname,
    validate_options,
    validate_parameters,
    validate_prompt_content,
)


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_validation_error_is_service_error(self):
        assert issubclass(ValidationError, YumemachiError)

    def test_validation_error_message(self):
        msg = "Custom validation error"
        with pytest.raises(ValidationError, match=msg):
            raise ValidationError(msg)


class TestValidateOptions:
    """Tests for validate_options function."""

    def test_valid_options_pass(self, fountain_options):
        validate_options(fountain_options)  # Should not raise

    def test_free_text_optional(self):
        validate_options(GenerationOptions(free_text=""))

    def test_free_text_at_limit(self):
        validate_options(GenerationOptions(free_text="あ" * 100))

    def test_free_text_too_long(self):
        with pytest.raises(ValidationError, match="too long"):
            validate_options(GenerationOptions(free_text="あ" * 101))

    def test_other_building_at_limit(self):
        validate_options(GenerationOptions(building="other", other_building="あ" * 30))

    def test_other_building_too_long(self):
        with pytest.raises(ValidationError, match="Building description"):
            validate_options(GenerationOptions(building="other", other_building="あ" * 31))

    def test_other_text_ignored_for_templated_building(self):
        validate_options(GenerationOptions(building="fountain", other_building="あ" * 31))

    def test_auto_prompt_requires_text(self):
        with pytest.raises(ValidationError, match="auto-prompt"):
            validate_options(GenerationOptions(free_text="  ", auto_prompt=True))


class TestValidateParameters:
    def test_valid(self):
        validate_parameters(GenerationParameters(0.75, 45, 9.5))

    def test_wraps_value_error(self):
        with pytest.raises(ValidationError, match="Strength"):
            validate_parameters(GenerationParameters(2.0, 45, 9.5))


class TestValidateNickname:
    def test_returns_stripped(self):
        assert validate_nickname("  ゆめ  ") == "ゆめ"

    def test_empty_allowed(self):
        assert validate_nickname("") == ""

    def test_too_long(self):
        with pytest.raises(ValidationError):
            validate_nickname("あ" * 21)


class TestValidatePromptContent:
    def test_valid(self):
        validate_prompt_content("a plaza")

    @pytest.mark.parametrize("prompt", ["", "   ", "\n"])
    def test_blank_rejected(self, prompt):
        with pytest.raises(ValidationError):
            validate_prompt_content(prompt)
