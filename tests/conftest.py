import pytest

from fakes import FakeLLM
from telemetry import metrics


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep metric rows in a temp dir and never reach a real Supabase project."""
    monkeypatch.setenv("METRICS_DIR", str(tmp_path / "metrics"))
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    monkeypatch.setattr(metrics, "_supabase_client", None)
    yield


@pytest.fixture()
def fake_llm():
    return FakeLLM()


@pytest.fixture()
def make_fake_llm():
    return FakeLLM
