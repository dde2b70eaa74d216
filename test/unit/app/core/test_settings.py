"""Tests for settings loading."""

from pathlib import Path

from app.core.settings import Settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("API_PORT", raising=False)
    st = Settings(_env_file=None)

    assert st.API_PORT == 3000
    assert st.LOG_FILE == Path("server_logs.txt")
    assert st.UPLOAD_DIR == Path("public/uploads")
    assert st.STATIC_PREFIX == "/static/"
    assert st.UPLOAD_FIELD == "image"
    assert st.REQUEST_TIMEOUT is None


def test_port_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    assert Settings(_env_file=None).API_PORT == 8080


def test_port_read_from_env_file(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("API_PORT", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("PORT=5050\nREQUEST_TIMEOUT=2.5\n", encoding="utf-8")

    st = Settings(_env_file=env_file)

    assert st.API_PORT == 5050
    assert st.REQUEST_TIMEOUT == 2.5
    assert st.api_url == "http://localhost:5050"


def test_project_metadata_from_pyproject() -> None:
    assert Settings.API_NAME == "robyn-crud-pipeline"
    assert Settings.API_VERSION == "0.1.0"
