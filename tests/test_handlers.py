import pytest
from fastapi.testclient import TestClient
from starlette.responses import PlainTextResponse

from api.handlers import FORWARDED_METHODS, forwarder_handler
from app import create_app
from conftest import MockForwarder
from core.config import Config


@pytest.fixture
def mock_forwarder():
    return MockForwarder()


@pytest.fixture
def client(mock_forwarder, logger):
    return TestClient(create_app(Config(), logger, forwarder=mock_forwarder))


class TestForwarderHandler:
    """The handler only delegates to its forwarder."""

    async def test_passes_request_and_response_through_unchanged(self):
        sentinel_response = PlainTextResponse("from forwarder", status_code=418)
        forwarder = MockForwarder(sentinel_response)
        sentinel_request = object()

        handler = forwarder_handler(forwarder)
        result = await handler(sentinel_request)

        assert result is sentinel_response
        assert forwarder.call_count == 1
        assert forwarder.last_request is sentinel_request

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
    def test_calls_forwarder_once_per_request(self, client, mock_forwarder, method):
        response = client.request(method, "/any/path?x=1")

        assert response.status_code == 200
        assert response.text == "mock response"
        assert mock_forwarder.call_count == 1
        assert mock_forwarder.last_request.method == method
        assert mock_forwarder.last_request.url.path == "/any/path"

    def test_calls_forwarder_once_with_body(self, client, mock_forwarder):
        client.post("/upload", content=b"payload")

        assert mock_forwarder.call_count == 1

    def test_docs_paths_are_forwarded(self, client, mock_forwarder):
        for path in ("/docs", "/redoc", "/openapi.json"):
            assert client.get(path).text == "mock response"

        assert mock_forwarder.call_count == 3

    def test_root_is_forwarded(self, client, mock_forwarder):
        client.get("/")

        assert mock_forwarder.call_count == 1

    def test_forwarded_methods_cover_common_verbs(self):
        assert {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"} <= set(FORWARDED_METHODS)


class TestCreateApp:
    def test_builds_upstream_forwarder_from_config(self, logger):
        config = Config.model_validate({"upstream": {"base_url": "http://backend:9000/"}})

        app = create_app(config, logger)

        assert app.state.forwarder.base_url == "http://backend:9000"

    def test_uses_injected_forwarder(self, logger, mock_forwarder):
        app = create_app(Config(), logger, forwarder=mock_forwarder)

        assert app.state.forwarder is mock_forwarder

    def test_lifespan_closes_own_client(self, logger):
        app = create_app(Config(), logger)

        with TestClient(app):
            pass

        assert app.state.forwarder._client.is_closed
