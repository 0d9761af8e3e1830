import pytest
from fastapi.testclient import TestClient

from imghost.config import Settings
from imghost.main import create_app


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "upload"


@pytest.fixture
def settings(storage_dir, tmp_path):
    return Settings(storage_dir=str(storage_dir), static_dir=str(tmp_path / "no-static"), max_upload_bytes=4096)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client
