"""Shared fixtures for all tests."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.core.config import Settings
from backend.core.gateway import CompletionGateway
from backend.core.uploads import UploadHandler
from backend.main import create_app


@pytest.fixture
def png_bytes() -> bytes:
    """2 KiB blob starting with the PNG signature."""
    signature = b"\x89PNG\r\n\x1a\n"
    return signature + b"\x00" * (2048 - len(signature))


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def settings(upload_dir) -> Settings:
    return Settings(
        groq_api_key="test-groq-key",
        text_model="test-text-model",
        vision_model="test-vision-model",
        environment="development",
        cors_origins=["http://localhost:5173"],
        upload_dir=str(upload_dir),
    )


@pytest.fixture
def uploads(upload_dir) -> UploadHandler:
    return UploadHandler(upload_dir)


@pytest.fixture
def mock_gateway():
    gateway = MagicMock(spec=CompletionGateway)
    gateway.complete.return_value = "Hi there"
    return gateway


@pytest.fixture
def app(settings, mock_gateway, uploads):
    return create_app(settings=settings, gateway=mock_gateway, uploads=uploads)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
