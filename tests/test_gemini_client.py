"""Tests for the Gemini generateContent client."""

from unittest.mock import MagicMock

import pytest

from docverify.extraction.gemini_client import GeminiClient, InlineData, strip_data_url
from docverify.utils.config import GeminiConfig
from docverify.utils.exceptions import ConfigurationError, VendorError


class TestGeminiClient:
    """Tests for request shape and reply handling."""

    def test_request_shape(
        self, session: MagicMock, make_response, gemini_payload
    ) -> None:
        session.post.return_value = make_response(200, gemini_payload("{}"))
        client = GeminiClient("key-1", GeminiConfig(), session)

        client.generate("Analyze this")

        args, kwargs = session.post.call_args
        assert args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-2.5-pro:generateContent"
        )
        assert kwargs["params"] == {"key": "key-1"}
        assert kwargs["json"]["contents"][0]["parts"] == [{"text": "Analyze this"}]
        assert kwargs["json"]["generationConfig"] == {
            "temperature": 0.1,
            "maxOutputTokens": 1024,
        }

    def test_inline_data_and_overrides(
        self, session: MagicMock, make_response, gemini_payload
    ) -> None:
        session.post.return_value = make_response(200, gemini_payload("{}"))
        client = GeminiClient("key-1", GeminiConfig(), session)

        client.generate(
            "Classify",
            inline_data=InlineData("image/jpeg", "AAAA"),
            model="gemini-2.5-flash",
            max_output_tokens=512,
        )

        kwargs = session.post.call_args[1]
        assert "gemini-2.5-flash:generateContent" in session.post.call_args[0][0]
        assert kwargs["json"]["contents"][0]["parts"][1] == {
            "inline_data": {"mime_type": "image/jpeg", "data": "AAAA"}
        }
        assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 512

    def test_json_response_mime_type(
        self, session: MagicMock, make_response, gemini_payload
    ) -> None:
        session.post.return_value = make_response(200, gemini_payload("{}"))
        client = GeminiClient("key-1", GeminiConfig(), session)

        client.generate("Scan", response_mime_type="application/json")

        config = session.post.call_args[1]["json"]["generationConfig"]
        assert config["responseMimeType"] == "application/json"

    def test_returns_first_text_part(
        self, session: MagicMock, make_response, gemini_payload
    ) -> None:
        session.post.return_value = make_response(200, gemini_payload("hello"))
        assert GeminiClient("k", session=session).generate("p") == "hello"

    def test_empty_candidates(self, session: MagicMock, make_response) -> None:
        session.post.return_value = make_response(200, {"candidates": []})
        assert GeminiClient("k", session=session).generate("p") == ""

    def test_non_json_body(self, session: MagicMock, make_response) -> None:
        session.post.return_value = make_response(200, None)
        assert GeminiClient("k", session=session).generate("p") == ""

    def test_error_status_raises(self, session: MagicMock, make_response) -> None:
        session.post.return_value = make_response(
            429, {"error": {"message": "Resource has been exhausted"}}
        )
        with pytest.raises(VendorError) as exc_info:
            GeminiClient("k", session=session).generate("p")
        assert exc_info.value.status_code == 429
        assert "Resource has been exhausted" in str(exc_info.value)

    def test_missing_key_raises(self, session: MagicMock) -> None:
        client = GeminiClient(None, session=session)
        assert client.available is False
        with pytest.raises(ConfigurationError):
            client.generate("p")
        session.post.assert_not_called()


class TestStripDataUrl:
    def test_strips_prefix(self) -> None:
        assert strip_data_url("data:image/png;base64,AAAA") == "AAAA"

    def test_plain_base64_untouched(self) -> None:
        assert strip_data_url("AAAA") == "AAAA"
