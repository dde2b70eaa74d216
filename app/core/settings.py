"""Unified settings for robyn-crud-pipeline."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict, empty when the file is not shipped."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


class Settings(BaseSettings):
    """Settings for the service, read once at startup from env and `.env`."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "robyn-crud-pipeline")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "Stub CRUD API")
    API_VERSION: ClassVar[str] = PROJECT.get("project", {}).get("version", "0.0.0")

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=3000, validation_alias=AliasChoices("PORT", "API_PORT"))

    # Paths (relative to the working directory)
    LOG_FILE: Path = Path("server_logs.txt")
    PUBLIC_DIR: Path = Path("public")
    STATIC_PREFIX: str = "/static/"
    UPLOAD_DIR: Path = Path("public/uploads")
    UPLOAD_FIELD: str = "image"

    # Seconds; None keeps requests unbounded
    REQUEST_TIMEOUT: float | None = None

    @property
    def api_url(self) -> str:
        return f"http://localhost:{self.API_PORT}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()  # type: ignore
