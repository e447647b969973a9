"""Environment-driven configuration of the session database and the server."""

from formflow_db.config import get_async_url
from formflow_db.models.session import FormSession
from formflow_server.config import ServerSettings, load_settings


class TestDatabaseUrl:
    """``DATABASE_URL`` first, ``PG_*`` parts otherwise, always asyncpg."""

    def test_plain_url_gets_asyncpg_driver(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/forms")
        assert get_async_url() == "postgresql+asyncpg://u:p@db:5432/forms"

    def test_explicit_driver_kept(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/forms")
        assert get_async_url() == "postgresql+asyncpg://u:p@db/forms"

    def test_built_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("PG_HOST", "pg")
        monkeypatch.setenv("PG_DATABASE", "quotes")
        for key in ("PG_PORT", "PG_USER", "PG_PASSWORD"):
            monkeypatch.delenv(key, raising=False)
        assert get_async_url() == "postgresql+asyncpg://formflow:formflow@pg:5432/quotes"


class TestSchemaNames:
    def test_unnamed_index_follows_convention(self):
        names = {ix.name for ix in FormSession.__table__.indexes}
        assert "ix_form_sessions_form_id" in names
        assert "ix_answers_gin" in names


class TestServerSettings:
    def test_defaults(self):
        settings = ServerSettings()
        assert settings.port == 8080
        assert settings.cors_origins == ["*"]
        assert settings.create_schema is False

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "https://a.example, https://b.example,")
        monkeypatch.setenv("SERVER_FORMS_DIR", "/srv/forms")
        monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
        monkeypatch.setenv("SERVER_CREATE_SCHEMA", "yes")
        settings = load_settings()
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.forms_dir == "/srv/forms"
        assert settings.log_level == "DEBUG"
        assert settings.create_schema is True

    def test_empty_forms_dir_means_default(self, monkeypatch):
        monkeypatch.setenv("SERVER_FORMS_DIR", "")
        monkeypatch.delenv("SERVER_CREATE_SCHEMA", raising=False)
        settings = load_settings()
        assert settings.forms_dir is None
        assert settings.create_schema is False
