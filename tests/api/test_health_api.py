from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from newsletter.adapters.dev_email import DevEmailAdapter
from newsletter.api.main import create_app
from newsletter.api.middleware import REQUEST_ID_HEADER
from newsletter.config.models import AppConfig


@pytest.fixture
def client(app_config: AppConfig) -> Iterator[TestClient]:
    with TestClient(create_app(app_config, email_sender=DevEmailAdapter())) as client:
        yield client


def test_health_returns_200_with_empty_body(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.content == b""


def test_request_id_is_generated(client: TestClient) -> None:
    response = client.get("/health")

    assert response.headers[REQUEST_ID_HEADER]


def test_request_id_is_propagated(client: TestClient) -> None:
    response = client.get("/health", headers={REQUEST_ID_HEADER: "abc-123"})

    assert response.headers[REQUEST_ID_HEADER] == "abc-123"


def test_config_backend_dev_builds_dev_adapter(app_config: AppConfig) -> None:
    with TestClient(create_app(app_config)) as client:
        assert isinstance(client.app.state.email_sender, DevEmailAdapter)
        assert client.get("/health").status_code == 200
