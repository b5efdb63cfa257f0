# tests/test_llm_client.py
from unittest.mock import MagicMock, Mock, PropertyMock

import httpx
import openai
import pytest
from google.api_core import exceptions as google_exceptions

from support_rag.config import AssistantConfig
from support_rag.exceptions import GenerationConfigError, GenerationError
from support_rag.llm import client as client_module
from support_rag.llm.client import (
    BaseGenerationClient,
    GeminiClient,
    OpenAIClient,
    create_generation_client,
)


TURNS = [
    ("user", "What is the warranty?"),
    ("model", "- 1 year"),
    ("user", "[NEW CONTEXT]\nctx\n[/NEW CONTEXT]\nUSER QUESTION: Clasps?"),
]


@pytest.fixture
def mock_genai(monkeypatch):
    """Replace the google.generativeai module used by GeminiClient."""
    genai = MagicMock()
    monkeypatch.setattr(client_module, "genai", genai)
    return genai


@pytest.fixture
def mock_openai_cls(monkeypatch):
    """Replace the OpenAI constructor used by OpenAIClient."""
    openai_cls = MagicMock()
    monkeypatch.setattr(client_module, "OpenAI", openai_cls)
    return openai_cls


def _openai_response(text):
    message = Mock()
    message.content = text
    choice = Mock()
    choice.message = message
    response = Mock()
    response.choices = [choice]
    return response


def _http_response(status_code):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return httpx.Response(status_code, request=request)


class TestGeminiClient:

    def test_missing_key_is_unavailable(self, mock_genai):
        client = GeminiClient(api_key=None, model="gemini-2.5-flash")

        assert client.available is False
        mock_genai.configure.assert_not_called()

        with pytest.raises(GenerationConfigError):
            client.generate("system", TURNS, 0.3)

    def test_generate_builds_request(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.return_value.text = "  - Yes, clasps are covered.  "

        client = GeminiClient(api_key="test-key", model="gemini-2.5-flash")
        answer = client.generate("system rules", TURNS, 0.3)

        assert answer == "- Yes, clasps are covered."
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        mock_genai.GenerativeModel.assert_called_once_with(
            model_name="gemini-2.5-flash",
            system_instruction="system rules",
        )

        contents = model.generate_content.call_args.args[0]
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[-1]["parts"] == [TURNS[-1][1]]
        mock_genai.GenerationConfig.assert_called_once_with(temperature=0.3)

    def test_auth_failure_is_config_error(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.side_effect = google_exceptions.PermissionDenied("API key not valid")

        client = GeminiClient(api_key="bad-key", model="gemini-2.5-flash")

        with pytest.raises(GenerationConfigError):
            client.generate("system", TURNS, 0.3)

    def test_service_failure_is_transient(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.side_effect = google_exceptions.ServiceUnavailable("overloaded")

        client = GeminiClient(api_key="test-key", model="gemini-2.5-flash")

        with pytest.raises(GenerationError) as excinfo:
            client.generate("system", TURNS, 0.3)

        assert not isinstance(excinfo.value, GenerationConfigError)

    def test_blocked_response_returns_empty_text(self, mock_genai):
        response = Mock()
        type(response).text = PropertyMock(side_effect=ValueError("blocked"))
        mock_genai.GenerativeModel.return_value.generate_content.return_value = response

        client = GeminiClient(api_key="test-key", model="gemini-2.5-flash")

        assert client.generate("system", TURNS, 0.3) == ""

    def test_first_turn_must_be_user(self, mock_genai):
        client = GeminiClient(api_key="test-key", model="gemini-2.5-flash")

        with pytest.raises(GenerationError):
            client.generate("system", [("model", "hello")], 0.3)


class TestOpenAIClient:

    def test_maps_roles(self, mock_openai_cls):
        create = mock_openai_cls.return_value.chat.completions.create
        create.return_value = _openai_response("Answer")

        client = OpenAIClient(api_key="sk-test", model="gpt-4o-mini")
        answer = client.generate("system rules", TURNS, 0.3)

        assert answer == "Answer"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.3
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "assistant", "user"]
        assert kwargs["messages"][0]["content"] == "system rules"

    def test_auth_failure_is_config_error(self, mock_openai_cls):
        create = mock_openai_cls.return_value.chat.completions.create
        create.side_effect = openai.AuthenticationError(
            "Incorrect API key", response=_http_response(401), body=None
        )

        client = OpenAIClient(api_key="sk-bad", model="gpt-4o-mini")

        with pytest.raises(GenerationConfigError):
            client.generate("system", TURNS, 0.3)

    def test_connection_failure_is_transient(self, mock_openai_cls):
        create = mock_openai_cls.return_value.chat.completions.create
        create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )

        client = OpenAIClient(api_key="sk-test", model="gpt-4o-mini")

        with pytest.raises(GenerationError) as excinfo:
            client.generate("system", TURNS, 0.3)

        assert not isinstance(excinfo.value, GenerationConfigError)

    def test_none_content_becomes_empty(self, mock_openai_cls):
        mock_openai_cls.return_value.chat.completions.create.return_value = _openai_response(None)

        client = OpenAIClient(api_key="sk-test", model="gpt-4o-mini")

        assert client.generate("system", TURNS, 0.3) == ""

    def test_missing_key_is_unavailable(self, mock_openai_cls):
        client = OpenAIClient(api_key=None, model="gpt-4o-mini")

        assert client.available is False
        mock_openai_cls.assert_not_called()


class TestClientFactory:

    def test_base_client_is_abstract(self):
        with pytest.raises(TypeError):
            BaseGenerationClient(model="any")

    def test_default_provider_is_gemini(self, mock_genai):
        client = create_generation_client(AssistantConfig(gemini_api_key="test-key"))

        assert isinstance(client, GeminiClient)
        assert client.available is True
        assert client.model == "gemini-2.5-flash"

    def test_openai_provider(self, mock_openai_cls):
        client = create_generation_client(
            AssistantConfig(llm_provider="openai", openai_api_key="sk-test")
        )

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"
