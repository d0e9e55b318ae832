"""
Notewise Backend — Configuration Tests
========================================

What we test:
    ✅ GenerationConfig bounds and the missing-key check
    ✅ from_settings() reports every problem in one ConfigurationError
    ✅ Frozen config, masked key
    ✅ validate_config() on an unvalidated runtime copy
"""

import pydantic
import pytest

from notewise.config import GenerationConfig, Settings, validate_config
from notewise.exceptions import ConfigurationError


class TestGenerationConfig:
    def test_defaults(self):
        config = GenerationConfig(api_key="abc123")

        assert config.max_tokens == 8192
        assert config.timeout_ms == 10_000
        assert config.rate_limit_per_minute == 60
        assert config.debug is False

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_tokens", 0),
            ("max_tokens", 32769),
            ("timeout_ms", 999),
            ("timeout_ms", 60_001),
            ("rate_limit_per_minute", 0),
        ],
    )
    def test_out_of_range_values_are_rejected(self, field, value):
        with pytest.raises(pydantic.ValidationError):
            GenerationConfig(api_key="abc123", **{field: value})

    def test_blank_key_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            GenerationConfig(api_key="   ")

    def test_is_frozen(self):
        config = GenerationConfig(api_key="abc123")
        with pytest.raises(pydantic.ValidationError):
            config.max_tokens = 100

    def test_masked_hides_key(self):
        config = GenerationConfig(api_key="AIzaSyExampleKey12345")

        masked = config.masked()

        assert masked["api_key"] == "AIzaSyEx..."
        assert "AIzaSyExampleKey12345" not in repr(config)


class TestFromSettings:
    def test_builds_from_settings(self):
        source = Settings(gemini_api_key="abc123", gemini_model="gemini-x", gemini_timeout_ms=5000)

        config = GenerationConfig.from_settings(source)

        assert config.model == "gemini-x"
        assert config.timeout_ms == 5000

    def test_lists_every_problem(self):
        source = Settings(gemini_api_key="", gemini_max_tokens=0, gemini_timeout_ms=100)

        with pytest.raises(ConfigurationError) as exc_info:
            GenerationConfig.from_settings(source)

        problems = exc_info.value.context["problems"]
        assert len(problems) == 3
        assert any(p.startswith("api_key") for p in problems)
        assert any(p.startswith("max_tokens") for p in problems)
        assert any(p.startswith("timeout_ms") for p in problems)


class TestValidateConfig:
    def test_valid_config_has_no_problems(self):
        assert validate_config(GenerationConfig(api_key="abc123")) == []

    def test_runtime_copy_outside_bounds(self):
        config = GenerationConfig(api_key="abc123").model_copy(
            update={"timeout_ms": 500, "api_key": ""}
        )

        problems = validate_config(config)

        assert "API key is not set." in problems
        assert "timeout_ms is out of range (1000-60000 ms)." in problems
