"""Where the session store lives.

``DATABASE_URL`` wins when set.  Otherwise the URL is assembled from
``PG_HOST`` / ``PG_PORT`` / ``PG_USER`` / ``PG_PASSWORD`` / ``PG_DATABASE``,
each defaulting to the local ``formflow`` database.
"""

import os

_ASYNC_SCHEME = "postgresql+asyncpg://"

_PART_DEFAULTS = {
    "PG_HOST": "localhost",
    "PG_PORT": "5432",
    "PG_USER": "formflow",
    "PG_PASSWORD": "formflow",
    "PG_DATABASE": "formflow",
}


def get_async_url() -> str:
    """asyncpg URL for the form-session database."""
    url = os.getenv("DATABASE_URL")
    if not url:
        part = {key: os.getenv(key, default) for key, default in _PART_DEFAULTS.items()}
        return (
            f"{_ASYNC_SCHEME}{part['PG_USER']}:{part['PG_PASSWORD']}"
            f"@{part['PG_HOST']}:{part['PG_PORT']}/{part['PG_DATABASE']}"
        )
    if url.startswith("postgresql://"):
        return _ASYNC_SCHEME + url[len("postgresql://"):]
    return url
