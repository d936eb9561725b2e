from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildstatus.models import BuildInfo


class ConfigurationError(Exception):
    """Raised when a required environment variable is missing."""


REQUIRED_ENV = {
    "github_token": 'envvar GITHUB_TOKEN ("user:token", ":token" or "token") is required',
    "github_user": 'envvar GITHUB_USER (the "user" in "github.com/user/repo") is required',
    "github_repo": 'envvar GITHUB_REPO (the "repo" in "github.com/user/repo") is required',
    "commit_sha": "envvar COMMIT_SHA is required",
}


class Settings(BaseSettings):
    """Build watcher configuration loaded from environment variables and .env files."""

    docker_host: str = "unix:///var/run/docker.sock"
    project_id: str = ""
    build_id: str = ""
    build_manifest: Optional[str] = None
    github_api: str = "https://api.github.com"
    github_token: Optional[str] = None
    github_user: Optional[str] = None
    github_repo: Optional[str] = None
    commit_sha: Optional[str] = None
    status_context: str = "gcb"
    debounce_seconds: float = Field(default=0.02, gt=0)
    refresh_seconds: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def require(self) -> "Settings":
        for field_name, message in REQUIRED_ENV.items():
            if not getattr(self, field_name):
                raise ConfigurationError(message)
        if not self.docker_host:
            self.docker_host = "unix:///var/run/docker.sock"
        if not self.github_api:
            self.github_api = "https://api.github.com"
        if not self.status_context:
            self.status_context = "gcb"
        return self

    def build_info(self) -> BuildInfo:
        return BuildInfo(
            project_id=self.project_id,
            build_id=self.build_id,
            context=self.status_context,
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached build watcher settings."""
    return Settings()
