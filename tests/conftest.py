import pytest
from fastapi.testclient import TestClient

from dreamxi.core.config import get_settings
from dreamxi.services.team_store import reset_store


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DREAMXI_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DREAMXI_STORE_BACKEND", "file")
    monkeypatch.delenv("DREAMXI_STRICT_FORMATION", raising=False)
    get_settings.cache_clear()
    reset_store()
    yield tmp_path
    get_settings.cache_clear()
    reset_store()


@pytest.fixture
def client(data_dir):
    from dreamxi.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def valid_team():
    return {
        "submitterName": "Sam",
        "goalkeeper": "Alisson",
        "defenders": ["Trent", "Van Dijk", "Konate", "Robertson"],
        "midfielders": ["Szoboszlai", "Mac Allister", "Jones", "Gravenberch"],
        "forwards": ["Salah", "Nunez"],
    }
