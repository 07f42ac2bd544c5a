import pytest

from salemap.config import ScanConfig


@pytest.fixture
def cfg(tmp_path):
    return ScanConfig(
        google_api_key="g-key",
        openai_api_key="o-key",
        output_path=str(tmp_path / "stores.geojson"),
        locations=((60.1700, 24.9400), (60.1690, 24.9383)),
    )


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch):
    # a developer's .env must not leak into tests
    monkeypatch.setattr("salemap.config.load_dotenv", lambda *a, **k: False)
