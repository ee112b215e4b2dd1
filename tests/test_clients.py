import pytest
import requests
from unittest.mock import MagicMock, patch

from cvscanner.models.models import ExtractedField
from cvscanner.models.settings import Settings
from cvscanner.services.clients import EmbeddingClient, ExtractionClient, NarrativeClient
from cvscanner.utils.exceptions import EmbeddingError, ExtractionServiceError, NarrativeServiceError
from cvscanner.utils.utils import gemini_embed, gemini_generate, strip_code_fences


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error", response=resp)
    return resp


@pytest.fixture
def settings():
    return Settings(api_key="test-key", base_url="https://gemini.test/v1beta")


class TestStripCodeFences:
    """Test cases for fence stripping"""

    @pytest.mark.parametrize("raw", [
        '{"a": 1}',
        '```json\n{"a": 1}\n```',
        '```JSON\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '  ```json{"a": 1}```  ',
    ])
    def test_strips(self, raw):
        assert strip_code_fences(raw) == '{"a": 1}'

    def test_inner_backticks_kept(self):
        raw = '```json\n{"summary": "use ```code``` blocks"}\n```'
        assert strip_code_fences(raw) == '{"summary": "use ```code``` blocks"}'


class TestGeminiTransport:
    """Test cases for the Gemini REST helpers"""

    @patch('cvscanner.utils.utils.requests.post')
    def test_embed_request_and_values(self, mock_post):
        mock_post.return_value = _response({"embedding": {"values": [0.1, 0.2, 0.3]}})

        vec = gemini_embed("https://gemini.test/v1beta/", "k", "gemini-embedding-001", "hello", 30)

        assert vec.tolist() == [0.1, 0.2, 0.3]
        args, kwargs = mock_post.call_args
        assert args[0] == "https://gemini.test/v1beta/models/gemini-embedding-001:embedContent"
        assert kwargs["headers"]["x-goog-api-key"] == "k"
        assert kwargs["json"]["content"]["parts"] == [{"text": "hello"}]
        assert kwargs["timeout"] == 30

    @patch('cvscanner.utils.utils.requests.post')
    def test_embed_without_values(self, mock_post):
        mock_post.return_value = _response({"embedding": {}})
        with pytest.raises(ValueError):
            gemini_embed("https://gemini.test", "k", "m", "hello", 30)

    @patch('cvscanner.utils.utils.requests.post')
    def test_embed_rejects_null_values(self, mock_post):
        mock_post.return_value = _response({"embedding": {"values": [None, 0.5]}})
        with pytest.raises(ValueError):
            gemini_embed("https://gemini.test", "k", "m", "hello", 30)

    @patch('cvscanner.utils.utils.requests.post')
    def test_generate_joins_text_parts(self, mock_post):
        mock_post.return_value = _response({
            "candidates": [{"content": {"parts": [{"text": "{\"summary\": "}, {"text": "\"ok\"}"}]}}]
        })

        text = gemini_generate("https://gemini.test", "k", "gemini-2.5-flash", [{"text": "hi"}], 60, temperature=0.2)

        assert text == '{"summary": "ok"}'
        payload = mock_post.call_args.kwargs["json"]
        assert payload["generationConfig"] == {"temperature": 0.2}
        assert payload["contents"][0]["parts"] == [{"text": "hi"}]

    @patch('cvscanner.utils.utils.requests.post')
    def test_generate_without_candidates(self, mock_post):
        mock_post.return_value = _response({"promptFeedback": {"blockReason": "SAFETY"}})
        with pytest.raises(ValueError):
            gemini_generate("https://gemini.test", "k", "m", [{"text": "hi"}], 60)


class TestEmbeddingClient:
    """Test cases for the embedding adapter"""

    @patch('cvscanner.services.clients.gemini_embed')
    def test_uses_configured_model(self, mock_embed, settings):
        mock_embed.return_value = [1.0, 0.0]
        client = EmbeddingClient(settings)

        assert client.embed("test-key", "text") == [1.0, 0.0]
        mock_embed.assert_called_once_with("https://gemini.test/v1beta", "test-key", "gemini-embedding-001", "text", 30)

    @patch('cvscanner.utils.utils.requests.post')
    def test_http_error_becomes_embedding_error(self, mock_post, settings):
        mock_post.return_value = _response({"error": {"message": "API key not valid"}}, status_code=403)

        with pytest.raises(EmbeddingError) as exc_info:
            EmbeddingClient(settings).embed("bad-key", "text")

        assert exc_info.value.details["status_code"] == 403
        assert isinstance(exc_info.value.cause, requests.HTTPError)

    @patch('cvscanner.utils.utils.requests.post')
    def test_null_values_become_embedding_error(self, mock_post, settings):
        mock_post.return_value = _response({"embedding": {"values": [None, 0.5]}})

        with pytest.raises(EmbeddingError):
            EmbeddingClient(settings).embed("test-key", "text")

    @patch('cvscanner.services.clients.gemini_embed')
    def test_network_error_not_retried(self, mock_embed, settings):
        mock_embed.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(EmbeddingError):
            EmbeddingClient(settings).embed("test-key", "text")
        assert mock_embed.call_count == 1


class TestNarrativeClient:
    """Test cases for the narrative adapter"""

    def test_prompt_carries_computed_score(self):
        cv = [ExtractedField(section="Skills", field="Languages", value="Python")]
        prompt = NarrativeClient.build_prompt(cv, "Backend Engineer", "Build APIs in Python.", 73)

        assert "The match percentage is 73%" in prompt
        assert "Do NOT recompute" in prompt
        assert '"value": "Python"' in prompt
        assert "JOB TITLE: Backend Engineer" in prompt
        assert "Build APIs in Python." in prompt

    @patch('cvscanner.services.clients.gemini_generate')
    def test_returns_raw_text(self, mock_generate, settings):
        mock_generate.return_value = "```json\n{}\n```"
        text = NarrativeClient(settings).analyze("test-key", [], "Title", "Desc", 50)
        assert text == "```json\n{}\n```"

    @patch('cvscanner.services.clients.gemini_generate')
    def test_service_error(self, mock_generate, settings):
        mock_generate.side_effect = requests.Timeout("read timed out")
        with pytest.raises(NarrativeServiceError):
            NarrativeClient(settings).analyze("test-key", [], "Title", "Desc", 50)


class TestExtractionClient:
    """Test cases for the PDF extraction adapter"""

    @patch('cvscanner.services.clients.gemini_generate')
    def test_sends_pdf_inline(self, mock_generate, settings):
        mock_generate.return_value = "[]"
        ExtractionClient(settings).extract("test-key", b"%PDF-1.4")

        parts = mock_generate.call_args.args[3]
        assert parts[0]["inline_data"] == {"mime_type": "application/pdf", "data": "JVBERi0xLjQ="}
        assert "CV/Resume data extractor" in parts[1]["text"]

    @patch('cvscanner.services.clients.gemini_generate')
    def test_service_error(self, mock_generate, settings):
        mock_generate.side_effect = ValueError("generation response has no text")
        with pytest.raises(ExtractionServiceError):
            ExtractionClient(settings).extract("test-key", b"%PDF-1.4")
