from __future__ import annotations

import unittest
from datetime import timedelta
from types import SimpleNamespace

import httpx
import openai

from insight.prompts import build_user_prompt
from insight.providers import GeminiProvider, OpenAIProvider
from insight.sample import build_sample
from insight.summarizer import Summarizer, default_providers, pick_provider_order
from tests.fakes import NOW, StubProvider, make_video
from tracker.errors import ProviderError


def _openai_client(create) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _completion(content) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class BuildSampleTest(unittest.TestCase):
    def test_fields_are_capped_and_ordered_oldest_first(self) -> None:
        rows = [
            make_video("new", NOW - timedelta(days=1), views=10, title="x" * 300),
            make_video("old", NOW - timedelta(days=5), views=20, title="old one"),
        ]

        sample = build_sample(rows, max_rows=10)

        self.assertEqual([row["title"][:7] for row in sample], ["old one", "x" * 7])
        self.assertEqual(len(sample[1]["title"]), 140)
        self.assertEqual(sample[0]["d"], "2026-09-26")
        self.assertEqual(set(sample[0]), {"d", "title", "views", "likes", "comments", "ch"})
        self.assertEqual(sample[0]["ch"], "Test Channel")

    def test_keeps_most_recent_rows(self) -> None:
        rows = [make_video(f"v{index}", NOW - timedelta(hours=index), title=f"v{index}") for index in range(5)]

        sample = build_sample(rows, max_rows=2)

        self.assertEqual([row["title"] for row in sample], ["v1", "v0"])

    def test_accepts_client_dicts_with_camel_case_keys(self) -> None:
        rows = [
            {"publishedAt": "2026-09-01T08:00:00Z", "title": "A", "views": "7", "channelTitle": "LG"},
            {"published_at": "2026-08-01T08:00:00Z", "title": "B", "likes": None},
        ]

        sample = build_sample(rows)

        self.assertEqual([row["title"] for row in sample], ["B", "A"])
        self.assertEqual(sample[1]["views"], 7)
        self.assertEqual(sample[1]["ch"], "LG")
        self.assertEqual(sample[0]["likes"], 0)

    def test_prompt_mentions_period_and_row_count(self) -> None:
        prompt = build_user_prompt([{"d": "2026-09-01", "title": "A"}], 30)

        self.assertIn("last 30 days", prompt)
        self.assertIn("1 rows", prompt)


class SummarizerTest(unittest.TestCase):
    def test_first_provider_success_has_no_fallback(self) -> None:
        first = StubProvider("openai", text="report")
        second = StubProvider("gemini", text="other")

        summary = Summarizer([first, second]).summarize([], 30)

        self.assertEqual((summary.text, summary.provider, summary.fallbacks), ("report", "openai", 0))
        self.assertEqual(second.calls, 0)

    def test_falls_back_exactly_once(self) -> None:
        first = StubProvider("openai", error=True)
        second = StubProvider("gemini", text="from gemini")

        with self.assertLogs("insight.summarizer", level="WARNING") as logs:
            summary = Summarizer([first, second]).summarize([], 30)

        self.assertEqual(summary.provider, "gemini")
        self.assertEqual(summary.fallbacks, 1)
        self.assertEqual((first.calls, second.calls), (1, 1))
        self.assertIn("openai failed, fallback->gemini", logs.output[0])

    def test_all_failures_raise_provider_error(self) -> None:
        providers = [StubProvider("openai", error=True), StubProvider("gemini", error=True)]

        with self.assertLogs("insight.summarizer", level="WARNING"):
            with self.assertRaises(ProviderError) as ctx:
                Summarizer(providers).summarize([], 30)

        self.assertEqual(ctx.exception.provider, "gemini")

    def test_single_failing_provider_reraises_its_error(self) -> None:
        provider = StubProvider("openai", error=True)

        with self.assertLogs("insight.summarizer", level="WARNING") as logs:
            with self.assertRaises(ProviderError) as ctx:
                Summarizer([provider]).summarize([], 30)

        self.assertEqual(ctx.exception.provider, "openai")
        self.assertNotIn("fallback", logs.output[0])

    def test_requires_a_provider(self) -> None:
        with self.assertRaises(ValueError):
            Summarizer([])

    def test_provider_order(self) -> None:
        self.assertEqual(pick_provider_order("gemini", openai_key="k", gemini_key="k"), ["gemini", "openai"])
        self.assertEqual(pick_provider_order("openai", openai_key="", gemini_key="k"), ["openai", "gemini"])
        self.assertEqual(pick_provider_order("", openai_key="", gemini_key="k"), ["gemini", "openai"])
        self.assertEqual(pick_provider_order("", openai_key="k", gemini_key="k"), ["openai", "gemini"])
        self.assertEqual(pick_provider_order("", openai_key="", gemini_key=""), ["openai", "gemini"])

    def test_default_table_skips_providers_without_a_key(self) -> None:
        names = [provider.name for provider in default_providers("", openai_key="k", gemini_key="")]
        self.assertEqual(names, ["openai"])

        names = [provider.name for provider in default_providers("openai", openai_key="", gemini_key="k")]
        self.assertEqual(names, ["gemini"])

        names = [provider.name for provider in default_providers("gemini", openai_key="k", gemini_key="k")]
        self.assertEqual(names, ["gemini", "openai"])

    def test_default_table_without_keys_reports_missing_configuration(self) -> None:
        providers = default_providers("", openai_key="", gemini_key="")

        self.assertEqual([provider.name for provider in providers], ["openai", "gemini"])
        with self.assertLogs("insight.summarizer", level="WARNING"):
            with self.assertRaises(ProviderError) as ctx:
                Summarizer(providers).summarize([], 30)
        self.assertIn("GEMINI_API_KEY", str(ctx.exception))


class OpenAIProviderTest(unittest.TestCase):
    def test_returns_stripped_content(self) -> None:
        captured = {}

        def create(**kwargs):
            captured.update(kwargs)
            return _completion("  report text \n")

        provider = OpenAIProvider(client=_openai_client(create), model="test-model", max_tokens=100)

        self.assertEqual(provider.summarize([{"d": "2026-09-01"}], 7), "report text")
        self.assertEqual(captured["model"], "test-model")
        self.assertEqual(captured["max_tokens"], 100)
        self.assertEqual(captured["messages"][0]["role"], "system")

    def test_empty_content_is_a_provider_error(self) -> None:
        provider = OpenAIProvider(client=_openai_client(lambda **_: _completion(None)))

        with self.assertRaises(ProviderError):
            provider.summarize([], 7)

    def test_timeout_is_a_provider_error(self) -> None:
        def create(**_):
            raise openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))

        provider = OpenAIProvider(client=_openai_client(create))

        with self.assertRaises(ProviderError) as ctx:
            provider.summarize([], 7)
        self.assertEqual(ctx.exception.provider, "openai")

    def test_missing_key_is_a_provider_error(self) -> None:
        provider = OpenAIProvider(api_key="")

        self.assertFalse(provider.configured)
        with self.assertRaises(ProviderError):
            provider.summarize([], 7)


class GeminiProviderTest(unittest.TestCase):
    def test_returns_response_text(self) -> None:
        client = SimpleNamespace(models=SimpleNamespace(generate_content=lambda **_: SimpleNamespace(text="gemini report")))

        self.assertEqual(GeminiProvider(client=client).summarize([], 30), "gemini report")

    def test_client_failure_is_a_provider_error(self) -> None:
        def generate_content(**_):
            raise RuntimeError("deadline exceeded")

        client = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))

        with self.assertRaises(ProviderError):
            GeminiProvider(client=client).summarize([], 30)

    def test_missing_key_is_a_provider_error(self) -> None:
        with self.assertRaises(ProviderError):
            GeminiProvider(api_key="").summarize([], 30)


if __name__ == "__main__":
    unittest.main()
