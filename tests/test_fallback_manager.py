import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ai.ai.errors import (  # noqa: E402
    AIProviderError,
    CostLimitExceededError,
    InvalidResponseError,
    NetworkError,
    ProviderTimeoutError,
    RateLimitError,
)
from resume_ai.ai.fallback import FallbackConfig, FallbackManager, normalize_error  # noqa: E402
from resume_ai.ai.registry import ProviderRegistry  # noqa: E402
from resume_ai.ai.types import ProviderInfo  # noqa: E402


class StubProvider:
    def __init__(self, name):
        self.name = name

    async def review_resume(self, request):
        raise NotImplementedError

    async def modify_resume(self, request):
        raise NotImplementedError

    async def enhance_resume(self, request):
        raise NotImplementedError

    def validate_response(self, response):
        return True

    def estimate_cost(self, request):
        return 0.0

    def get_provider_info(self):
        return ProviderInfo(self.name, self.name.title(), ("m",), "m")


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def failing_then(result, errors):
    pending = list(errors)
    calls = {"count": 0}

    async def call():
        calls["count"] += 1
        if pending:
            raise pending.pop(0)
        return result

    return call, calls


class NormalizeErrorTests(unittest.TestCase):
    def test_taxonomy_errors_pass_through(self):
        error = RateLimitError("slow down", "openai", retry_after=2)
        self.assertIs(normalize_error(error, "other"), error)

    def test_builtin_exceptions_map_by_type(self):
        self.assertIsInstance(normalize_error(asyncio.TimeoutError(), "p"), ProviderTimeoutError)
        self.assertIsInstance(normalize_error(ConnectionRefusedError("refused"), "p"), NetworkError)

    def test_message_patterns(self):
        self.assertIsInstance(normalize_error(RuntimeError("HTTP 429 Too Many Requests"), "p"), RateLimitError)
        self.assertIsInstance(normalize_error(RuntimeError("Rate limit exceeded"), "p"), RateLimitError)
        self.assertIsInstance(normalize_error(RuntimeError("request timed out"), "p"), ProviderTimeoutError)
        self.assertIsInstance(normalize_error(RuntimeError("ECONNREFUSED 127.0.0.1"), "p"), NetworkError)
        self.assertIsInstance(normalize_error(RuntimeError("fetch failed"), "p"), NetworkError)

    def test_unknown_errors_become_generic_provider_errors(self):
        error = normalize_error(ValueError("boom"), "gemini")
        self.assertIs(type(error), AIProviderError)
        self.assertEqual(error.provider, "gemini")
        self.assertEqual(str(error), "boom")


class FallbackManagerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.sleep = RecordingSleep()
        self.manager = FallbackManager(FallbackConfig(max_retries=3), sleep=self.sleep)

    async def test_success_on_first_attempt_does_not_sleep(self):
        call, calls = failing_then("ok", [])
        result = await self.manager.execute_with_retry(call, "p", "review")

        self.assertEqual(result, "ok")
        self.assertEqual(calls["count"], 1)
        self.assertEqual(self.sleep.delays, [])
        self.assertEqual(self.manager.get_statistics().total_errors, 0)

    async def test_recovers_after_transient_errors_with_exponential_backoff(self):
        call, calls = failing_then("ok", [NetworkError("down", "p"), ProviderTimeoutError("slow", "p")])
        result = await self.manager.execute_with_retry(call, "p", "review")

        self.assertEqual(result, "ok")
        self.assertEqual(calls["count"], 3)
        self.assertEqual(self.sleep.delays, [1.0, 2.0])
        stats = self.manager.get_statistics()
        self.assertEqual(stats.total_errors, 2)
        self.assertEqual(stats.total_retries, 2)
        self.assertEqual(stats.successful_recoveries, 1)
        self.assertEqual(stats.errors_by_type, {"NetworkError": 1, "ProviderTimeoutError": 1})

    async def test_gives_up_after_max_retries_plus_one_attempts(self):
        errors = [NetworkError(f"down {i}", "p") for i in range(10)]
        call, calls = failing_then("never", errors)

        with self.assertRaises(NetworkError) as ctx:
            await self.manager.execute_with_retry(call, "p", "review")

        self.assertEqual(str(ctx.exception), "down 3")
        self.assertEqual(calls["count"], 4)
        self.assertEqual(len(self.sleep.delays), 3)
        self.assertEqual(self.manager.get_statistics().successful_recoveries, 0)

    async def test_cost_limit_is_never_retried(self):
        call, calls = failing_then("never", [CostLimitExceededError("too expensive", "p", estimated_cost=2, limit=1)])

        with self.assertRaises(CostLimitExceededError):
            await self.manager.execute_with_retry(call, "p", "review")
        self.assertEqual(calls["count"], 1)

    async def test_invalid_response_not_retried_by_default(self):
        call, calls = failing_then("ok", [InvalidResponseError("garbage", "p")])

        with self.assertRaises(InvalidResponseError):
            await self.manager.execute_with_retry(call, "p", "modify")
        self.assertEqual(calls["count"], 1)

    async def test_invalid_response_retried_when_enabled(self):
        manager = FallbackManager(FallbackConfig(retry_on_invalid_response=True), sleep=self.sleep)
        call, calls = failing_then("ok", [InvalidResponseError("garbage", "p")])

        self.assertEqual(await manager.execute_with_retry(call, "p", "modify"), "ok")
        self.assertEqual(calls["count"], 2)

    async def test_raw_errors_are_normalised_and_chained(self):
        original = RuntimeError("429 from upstream")
        manager = FallbackManager(FallbackConfig(max_retries=0), sleep=self.sleep)
        call, _ = failing_then("never", [original])

        with self.assertRaises(RateLimitError) as ctx:
            await manager.execute_with_retry(call, "openai", "review")
        self.assertIs(ctx.exception.__cause__, original)
        self.assertEqual(ctx.exception.provider, "openai")

    async def test_zero_retries_means_single_attempt(self):
        manager = FallbackManager(FallbackConfig(max_retries=0), sleep=self.sleep)
        call, calls = failing_then("never", [NetworkError("down", "p")])

        with self.assertRaises(NetworkError):
            await manager.execute_with_retry(call, "p", "review")
        self.assertEqual(calls["count"], 1)
        self.assertEqual(self.sleep.delays, [])

    async def test_reset_statistics(self):
        call, _ = failing_then("ok", [NetworkError("down", "p")])
        await self.manager.execute_with_retry(call, "p", "review")

        snapshot = self.manager.get_statistics()
        snapshot.errors_by_type["Injected"] = 5
        self.assertNotIn("Injected", self.manager.get_statistics().errors_by_type)

        self.manager.reset_statistics()
        stats = self.manager.get_statistics()
        self.assertEqual(stats.total_errors, 0)
        self.assertIsNone(stats.last_error)


class RetryPolicyTests(unittest.TestCase):
    def test_calculate_retry_delay_caps_at_max(self):
        manager = FallbackManager(FallbackConfig(retry_delay_base=1000, max_retry_delay=5000))

        self.assertEqual(manager.calculate_retry_delay(1), 1000)
        self.assertEqual(manager.calculate_retry_delay(2), 2000)
        self.assertEqual(manager.calculate_retry_delay(3), 4000)
        self.assertEqual(manager.calculate_retry_delay(4), 5000)

    def test_rate_limit_retry_after_overrides_backoff(self):
        manager = FallbackManager(FallbackConfig(max_retry_delay=5000))

        self.assertEqual(manager.calculate_retry_delay(1, RateLimitError("x", retry_after=3)), 3000)
        self.assertEqual(manager.calculate_retry_delay(1, RateLimitError("x", retry_after=60)), 5000)

    def test_should_retry_follows_config_flags(self):
        manager = FallbackManager(FallbackConfig(retry_on_rate_limit=False, retry_on_timeout=False))

        self.assertFalse(manager.should_retry(RateLimitError("x")))
        self.assertFalse(manager.should_retry(ProviderTimeoutError("x")))
        self.assertTrue(manager.should_retry(NetworkError("x")))
        self.assertTrue(manager.should_retry(AIProviderError("x")))
        self.assertFalse(manager.should_retry(CostLimitExceededError("x")))

    def test_get_next_provider(self):
        registry = ProviderRegistry()
        manager = FallbackManager(registry=registry)
        registry.register_provider("alpha", StubProvider("alpha"))
        self.assertIsNone(manager.get_next_provider("alpha"))

        registry.register_provider("beta", StubProvider("beta"))
        self.assertEqual(manager.get_next_provider("Alpha"), "beta")
        self.assertEqual(manager.handle_failure(NetworkError("x"), "beta"), "alpha")
        self.assertIsNone(FallbackManager().get_next_provider("alpha"))


if __name__ == "__main__":
    unittest.main()
