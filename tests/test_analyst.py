"""
Tests for the OpenAI-backed roster analyst. No network access is made.
"""

import pytest

from conftest import numbered_text
from roster_dashboard import analyst as analyst_module
from roster_dashboard.analyst import RosterAnalyst, extract_response_text
from roster_dashboard.config import ANALYSIS_FALLBACK_MESSAGE, QUESTION_FALLBACK_MESSAGE
from roster_dashboard.parser import parse


class FakeResponses:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"output_text": self.reply}


class FakeClient:
    def __init__(self, reply=None, error=None):
        self.responses = FakeResponses(reply, error)


class FakeHttpResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


@pytest.fixture
def dataset():
    return parse(numbered_text(5))


@pytest.fixture(autouse=True)
def no_env_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def prompt_of(call):
    return call["input"][1]["content"][0]["text"]


def with_client(monkeypatch, roster_analyst, client):
    monkeypatch.setattr(roster_analyst, "_sdk_client", lambda: client)
    return client


class TestRosterAnalyst:
    def test_missing_key_returns_fallbacks(self, dataset):
        roster_analyst = RosterAnalyst()
        assert roster_analyst.analyze("f.csv", dataset.headers, dataset.rows) == ANALYSIS_FALLBACK_MESSAGE
        assert roster_analyst.ask("who?", dataset.headers, dataset.rows) == QUESTION_FALLBACK_MESSAGE

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        assert RosterAnalyst().api_key == "env-key"
        assert RosterAnalyst("explicit").api_key == "explicit"

    def test_invalid_settings_use_defaults(self):
        roster_analyst = RosterAnalyst("k", model="  ", sample_rows=0)
        assert roster_analyst.model == "gpt-4o-mini"
        assert roster_analyst.sample_rows == 30

    def test_ask_sends_bounded_sample(self, monkeypatch, dataset):
        roster_analyst = RosterAnalyst("k", sample_rows=2)
        client = with_client(monkeypatch, roster_analyst, FakeClient(reply=" Three rows. "))

        answer = roster_analyst.ask("How many?", dataset.headers, dataset.rows)

        assert answer == "Three rows."
        (call,) = client.responses.calls
        assert call["model"] == "gpt-4o-mini"
        prompt = prompt_of(call)
        assert '"S1"' in prompt and '"S2"' in prompt
        assert '"S3"' not in prompt
        assert 'User Question: "How many?"' in prompt
        assert "№ п/п, Фамилия, Расход" in prompt

    def test_analyze_names_source(self, monkeypatch, dataset):
        roster_analyst = RosterAnalyst("k", sample_rows=3)
        client = with_client(monkeypatch, roster_analyst, FakeClient(reply="Roster."))

        assert roster_analyst.analyze("roster.csv", dataset.headers, dataset.rows) == "Roster."
        prompt = prompt_of(client.responses.calls[0])
        assert 'named "roster.csv"' in prompt
        assert "first 3 rows" in prompt

    def test_empty_question_is_not_sent(self, monkeypatch, dataset):
        roster_analyst = RosterAnalyst("k")
        client = with_client(monkeypatch, roster_analyst, FakeClient(reply="x"))
        assert roster_analyst.ask("   ", dataset.headers, dataset.rows) == ""
        assert client.responses.calls == []

    def test_client_error_returns_fallback(self, monkeypatch, dataset):
        roster_analyst = RosterAnalyst("k")
        with_client(monkeypatch, roster_analyst, FakeClient(error=RuntimeError("boom")))
        assert roster_analyst.ask("q", dataset.headers, dataset.rows) == QUESTION_FALLBACK_MESSAGE
        assert roster_analyst.analyze("f", dataset.headers, dataset.rows) == ANALYSIS_FALLBACK_MESSAGE

    def test_empty_reply_returns_fallback(self, monkeypatch, dataset):
        roster_analyst = RosterAnalyst("k")
        with_client(monkeypatch, roster_analyst, FakeClient(reply=""))
        assert roster_analyst.ask("q", dataset.headers, dataset.rows) == QUESTION_FALLBACK_MESSAGE


class TestHttpFallback:
    def test_http_request_used_without_sdk(self, monkeypatch, dataset):
        calls = []

        def fake_post(url, headers, json, timeout):
            calls.append((url, headers, json))
            return FakeHttpResponse(
                200, {"output": [{"content": [{"type": "output_text", "text": "via http"}]}]}
            )

        monkeypatch.setattr(analyst_module, "OpenAI", None)
        monkeypatch.setattr(analyst_module.requests, "post", fake_post)

        answer = RosterAnalyst("secret").ask("q", dataset.headers, dataset.rows)

        assert answer == "via http"
        url, headers, payload = calls[0]
        assert url.endswith("/responses")
        assert headers["Authorization"] == "Bearer secret"
        assert payload["model"] == "gpt-4o-mini"

    def test_http_error_returns_fallback(self, monkeypatch, dataset):
        monkeypatch.setattr(analyst_module, "OpenAI", None)
        monkeypatch.setattr(
            analyst_module.requests,
            "post",
            lambda *args, **kwargs: FakeHttpResponse(401, {"error": "bad key"}),
        )
        assert RosterAnalyst("k").ask("q", dataset.headers, dataset.rows) == QUESTION_FALLBACK_MESSAGE

    def test_proxy_incompatible_sdk_falls_back(self, monkeypatch):
        def broken_client(api_key):
            raise TypeError("Client.__init__() got an unexpected keyword argument 'proxies'")

        monkeypatch.setattr(analyst_module, "OpenAI", broken_client)
        assert RosterAnalyst("k")._sdk_client() is None

    def test_other_sdk_type_errors_propagate(self, monkeypatch):
        def broken_client(api_key):
            raise TypeError("something else")

        monkeypatch.setattr(analyst_module, "OpenAI", broken_client)
        with pytest.raises(TypeError):
            RosterAnalyst("k")._sdk_client()


class TestExtractResponseText:
    def test_output_text_list(self):
        assert extract_response_text({"output_text": ["a ", None, " b"]}) == "a\nb"

    def test_chat_choices(self):
        response = {"choices": [{"message": {"content": " hello "}}]}
        assert extract_response_text(response) == "hello"

    def test_attribute_access(self):
        class Response:
            output_text = "attr"

        assert extract_response_text(Response()) == "attr"

    def test_no_text_raises(self):
        with pytest.raises(ValueError):
            extract_response_text({"output": [{"content": [{"type": "refusal"}]}]})
