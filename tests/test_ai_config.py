import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ai.ai.config import (  # noqa: E402
    DEFAULT_MODEL,
    AIConfig,
    load_ai_config,
    validate_ai_config,
    validate_api_key,
)
from resume_ai.ai.factory import build_fallback_manager, build_registry  # noqa: E402
from resume_ai.ai.providers.openai_provider import OpenAIProvider  # noqa: E402
from resume_ai.core.config import settings  # noqa: E402

VALID_KEY = "sk-test-0123456789abcdef"


class LoadConfigTests(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_ai_config()
        self.assertEqual(config.provider, "openai")
        self.assertEqual(config.model, DEFAULT_MODEL)
        self.assertIsNone(config.api_key)
        self.assertEqual(config.timeout_s, 30.0)
        self.assertEqual(config.max_retries, 0)
        self.assertIsNone(config.max_cost_per_request)

    def test_reads_environment(self):
        env = {
            "AI_PROVIDER": " OpenAI ",
            "OPENAI_MODEL": "gpt-4o",
            "OPENAI_API_KEY": f"  {VALID_KEY}  ",
            "OPENAI_TIMEOUT_S": "12.5",
            "AI_TEMPERATURE": "0.3",
            "AI_MAX_TOKENS": "not-a-number",
            "AI_MAX_COST_PER_REQUEST": "0.25",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_ai_config()
        self.assertEqual(config.provider, "openai")
        self.assertEqual(config.model, "gpt-4o")
        self.assertEqual(config.api_key, VALID_KEY)
        self.assertEqual(config.timeout_s, 12.5)
        self.assertEqual(config.temperature, 0.3)
        self.assertEqual(config.max_tokens, 2000)
        self.assertEqual(config.max_cost_per_request, 0.25)

    def test_ai_model_wins_over_openai_model(self):
        with patch.dict(os.environ, {"AI_MODEL": "gpt-4.1", "OPENAI_MODEL": "gpt-4o"}, clear=True):
            self.assertEqual(load_ai_config().model, "gpt-4.1")


class ValidateConfigTests(unittest.TestCase):
    def test_api_key_shapes(self):
        self.assertTrue(validate_api_key(VALID_KEY))
        self.assertFalse(validate_api_key(None))
        self.assertFalse(validate_api_key("short"))
        self.assertFalse(validate_api_key("your_openai_api_key_here"))
        self.assertFalse(validate_api_key("replace_me_with_a_real_key"))

    def test_valid_config(self):
        result = validate_ai_config(AIConfig(provider="openai", model="gpt-4o-mini", api_key=VALID_KEY))
        self.assertTrue(result.is_valid)
        self.assertEqual(result.warnings, [])

    def test_collects_every_problem(self):
        config = AIConfig(
            provider="acme",
            model="gpt-9",
            api_key="your_key_goes_here",
            temperature=1.5,
            max_tokens=0,
            timeout_s=0,
        )
        result = validate_ai_config(config)
        self.assertFalse(result.is_valid)
        self.assertEqual(len(result.errors), 5)
        self.assertIn("Unsupported AI_PROVIDER='acme'", result.errors)
        self.assertEqual(len(result.warnings), 1)

    def test_missing_key(self):
        result = validate_ai_config(AIConfig(provider="openai", model=DEFAULT_MODEL))
        self.assertEqual(result.errors, ["OPENAI_API_KEY is missing"])


class FactoryTests(unittest.TestCase):
    def test_invalid_config_gives_empty_registry(self):
        with self.assertLogs("resume_ai.ai.factory", level="WARNING") as captured:
            registry = build_registry(AIConfig(provider="openai", model=DEFAULT_MODEL))
        self.assertEqual(registry.get_provider_count(), 0)
        self.assertTrue(any("ai_provider_disabled" in line for line in captured.output))

    def test_valid_config_registers_openai(self):
        registry = build_registry(AIConfig(provider="openai", model="gpt-4o", api_key=VALID_KEY))
        self.assertEqual(registry.list_providers(), ["openai"])
        self.assertEqual(registry.get_default_provider_name(), "openai")
        self.assertIsInstance(registry.get_provider("openai"), OpenAIProvider)
        self.assertEqual(registry.get_provider_info("openai").display_name, "OpenAI")

    def test_fallback_manager_uses_settings(self):
        manager = build_fallback_manager()
        self.assertEqual(manager.config.max_retries, settings.retry_max_retries)
        self.assertEqual(manager.config.retry_delay_base, settings.retry_delay_base_ms)
        self.assertEqual(manager.config.retry_on_invalid_response, settings.retry_on_invalid_response)


if __name__ == "__main__":
    unittest.main()
