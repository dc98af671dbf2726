import pytest
from unittest.mock import MagicMock, patch
from cutengine.errors import ServiceError
from cutengine.llm_editor import GeminiCleanupService, default_cleanup_service

@pytest.fixture
def mock_settings():
    with patch('cutengine.llm_editor.settings') as mock:
        mock.gemini_api_key = "test_key"
        mock.gemini_model = "gemini-test"
        yield mock

@pytest.fixture
def service(mock_settings):
    with patch('google.genai.Client') as mock_client:
        svc = GeminiCleanupService()
        svc.client = MagicMock()
        return svc

def test_clean_success(service):
    mock_response = MagicMock()
    mock_response.text = "I went to the store"
    service.client.models.generate_content.return_value = mock_response

    result = service.clean("um I went to the the store", "Remove mistakes.")

    assert result == "I went to the store"
    kwargs = service.client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert "Remove mistakes." in kwargs["contents"]
    assert "um I went to the the store" in kwargs["contents"]

def test_clean_strips_markdown(service):
    mock_response = MagicMock()
    mock_response.text = '```text\n"I went to the store"\n```'
    service.client.models.generate_content.return_value = mock_response

    assert service.clean("um I went to the store", "x") == "I went to the store"

def test_clean_error(service):
    service.client.models.generate_content.side_effect = Exception("API Error")

    # Surfaces as a ServiceError so the caller can fall back to rules
    with pytest.raises(ServiceError):
        service.clean("test", "x")

def test_clean_empty_response(service):
    mock_response = MagicMock()
    mock_response.text = ""
    service.client.models.generate_content.return_value = mock_response

    with pytest.raises(ServiceError):
        service.clean("test", "x")

def test_no_api_key():
    with patch('cutengine.llm_editor.settings') as mock:
        mock.gemini_api_key = None
        mock.gemini_model = "gemini-test"
        svc = GeminiCleanupService()
        assert not svc.is_available
        assert default_cleanup_service() is None
        with pytest.raises(ServiceError):
            svc.clean("test", "x")

def test_default_service_with_key(mock_settings):
    with patch('google.genai.Client') as mock_client:
        svc = default_cleanup_service()
        assert svc is not None
        mock_client.assert_called_once_with(api_key="test_key")

if __name__ == "__main__":
    pytest.main([__file__])
