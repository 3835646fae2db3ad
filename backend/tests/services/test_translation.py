from __future__ import annotations

from types import SimpleNamespace
from typing import Any, List

import anthropic
import httpx
import pytest
from querydesk_backend.app.services.cache.schema_cache import NO_TABLE_MESSAGE
from querydesk_backend.app.services.errors import (
    MalformedReplyError,
    NoDatasetError,
    TranslatorNotConfiguredError,
    UpstreamError,
)
from querydesk_backend.app.services.translation import (
    AnthropicTranslator,
    TranslationPipeline,
    Translator,
)
from querydesk_backend.app.services.translation.pipeline import build_prompt, parse_reply

SCHEMA = "Table: data_abc\nColumns:\n  - name (VARCHAR)\n  - age (VARCHAR)\n"

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class _ScriptedTranslator(Translator):
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: List[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class _FakeMessages:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: List[dict] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


def _client(messages: _FakeMessages) -> SimpleNamespace:
    return SimpleNamespace(messages=messages)


def _text_reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


class TestParseReply:
    def test_accepts_exact_object(self) -> None:
        assert parse_reply('{"sql": "SELECT * FROM t"}') == "SELECT * FROM t"

    @pytest.mark.parametrize(
        "reply",
        [
            'Here you go: {"sql": "SELECT 1"}',
            '```json\n{"sql": "SELECT 1"}\n```',
            '{"sql": "SELECT 1", "explanation": "one"}',
            '{"query": "SELECT 1"}',
            '{"sql": ""}',
            '{"sql": 42}',
            '["SELECT 1"]',
        ],
    )
    def test_rejects_anything_else(self, reply: str) -> None:
        with pytest.raises(MalformedReplyError) as exc_info:
            parse_reply(reply)

        assert exc_info.value.body == reply
        assert str(exc_info.value).startswith("Failed to parse AI response")


class TestTranslationPipeline:
    def test_prompt_embeds_schema_and_question(self) -> None:
        prompt = build_prompt("Show me people over 26", SCHEMA)

        assert "Database Schema:\n" + SCHEMA in prompt
        assert "Natural Language Query: Show me people over 26" in prompt
        assert '{"sql": "SELECT ... FROM <table> WHERE ..."}' in prompt
        assert "FROM data WHERE" not in prompt

    def test_translate_returns_sql(self) -> None:
        translator = _ScriptedTranslator('{"sql": "SELECT name FROM data_abc"}')

        sql = TranslationPipeline(translator).translate("names?", SCHEMA)

        assert sql == "SELECT name FROM data_abc"
        assert len(translator.prompts) == 1

    def test_no_table_skips_translator(self) -> None:
        translator = _ScriptedTranslator('{"sql": "SELECT 1"}')

        with pytest.raises(NoDatasetError, match="Please upload a CSV file first"):
            TranslationPipeline(translator).translate("names?", NO_TABLE_MESSAGE)

        assert translator.prompts == []


class TestAnthropicTranslator:
    def test_without_key_is_not_configured(self) -> None:
        translator = AnthropicTranslator(api_key=None)

        assert translator.configured is False
        with pytest.raises(TranslatorNotConfiguredError):
            translator.complete("prompt")

    def test_sends_single_user_message(self) -> None:
        messages = _FakeMessages(result=_text_reply('{"sql": "SELECT 1"}'))
        translator = AnthropicTranslator(
            api_key="sk-test", model="claude-test", max_tokens=1000, client=_client(messages)
        )

        assert translator.complete("the prompt") == '{"sql": "SELECT 1"}'
        assert messages.calls == [
            {
                "model": "claude-test",
                "max_tokens": 1000,
                "messages": [{"role": "user", "content": "the prompt"}],
            }
        ]

    def test_status_error_carries_status_and_body(self) -> None:
        response = httpx.Response(529, text='{"error": "overloaded"}', request=_REQUEST)
        error = anthropic.APIStatusError("overloaded", response=response, body=None)
        translator = AnthropicTranslator(api_key="sk-test", client=_client(_FakeMessages(error=error)))

        with pytest.raises(UpstreamError) as exc_info:
            translator.complete("prompt")

        assert exc_info.value.status_code == 529
        assert exc_info.value.body == '{"error": "overloaded"}'

    def test_connection_error_is_upstream_error(self) -> None:
        error = anthropic.APIConnectionError(request=_REQUEST)
        translator = AnthropicTranslator(api_key="sk-test", client=_client(_FakeMessages(error=error)))

        with pytest.raises(UpstreamError) as exc_info:
            translator.complete("prompt")

        assert exc_info.value.status_code is None

    def test_empty_content_is_malformed(self) -> None:
        messages = _FakeMessages(result=SimpleNamespace(content=[]))
        translator = AnthropicTranslator(api_key="sk-test", client=_client(messages))

        with pytest.raises(MalformedReplyError):
            translator.complete("prompt")
