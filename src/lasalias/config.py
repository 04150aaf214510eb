"""Configuration management for LAS Alias Manager."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


def _optional_path(env_name: str) -> Optional[Path]:
    """Read an optional path from the environment."""
    value = os.getenv(env_name)
    return Path(value) if value else None


class Settings(BaseModel):
    """Application settings."""

    # Alias dictionary (CSV) loaded at startup and written back on save
    database_path: Path = Path(os.getenv("ALIAS_DATABASE_PATH", "data/aliases.csv"))

    # Default folder of LAS files to analyze
    las_directory: Optional[Path] = _optional_path("LAS_DIRECTORY")
    include_subfolders: bool = os.getenv("INCLUDE_SUBFOLDERS", "true").lower() == "true"

    # Header parsing runs on a worker pool; session writes stay on the caller
    max_parse_workers: int = int(os.getenv("MAX_PARSE_WORKERS", "4"))

    # Base-name add/remove/rename write the dictionary straight back to disk
    autosave_dictionary: bool = os.getenv("AUTOSAVE_DICTIONARY", "true").lower() == "true"

    # Legacy ListNamesAlias.txt files are Windows-1251
    list_names_encoding: str = os.getenv("LIST_NAMES_ENCODING", "cp1251")

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()


settings = Settings()
