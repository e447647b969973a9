"""Settings read by ``create_app`` and ``cli`` from ``SERVER_*`` variables."""

import os
from dataclasses import dataclass, field

# Session listing page size; module-level so Query() defaults can use it
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8080
    # Origins allowed to embed the form runner; "*" during development
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    # YAML form definitions; None means forms/ at the repo root
    forms_dir: str | None = None
    log_level: str = "INFO"
    # No migrations ship, so the form_sessions table can be created on startup
    create_schema: bool = False


def _flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def load_settings() -> ServerSettings:
    origins = os.getenv("SERVER_CORS_ORIGINS", "*").split(",")
    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=[o.strip() for o in origins if o.strip()],
        forms_dir=os.getenv("SERVER_FORMS_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        create_schema=_flag("SERVER_CREATE_SCHEMA"),
    )
